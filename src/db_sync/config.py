"""
DB 동기화 설정 모듈
환경변수에서 실행 설정(동시 세션 수, 스테이징 경로 등)을 로드
YAML/TOML 파일에서 DB 및 SSH 프로필을 로드
"""

import tomllib
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from db_sync.exceptions import ConfigError

DEFAULT_OFFSET = 1000000000

# 모든 단계에서 제외되는 예약 테이블 (마이그레이션/리플리케이션 관리용)
TABLE_BLACKLIST = frozenset({"schema_migrations", "repli_chk", "repli_clock"})


def _find_project_root() -> Path:
    """프로젝트 루트 경로 탐색 (pyproject.toml 기준)"""
    current = Path(__file__).parent
    for _ in range(5):
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    return Path(__file__).parent.parent.parent


PROJECT_ROOT = _find_project_root()


class SyncSettings(BaseSettings):
    """동기화 실행 설정 (환경변수 DB_SYNC_*)"""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_prefix="DB_SYNC_",
        extra="ignore",
    )

    staging_base_dir: Path = Field(default=Path("/tmp"))
    max_fetch_sessions: int = Field(default=3, ge=1)
    max_delete_sessions: int = Field(default=3, ge=1)
    max_load_sessions: int = Field(default=3, ge=1)
    task_timeout: float | None = Field(default=None, gt=0)  # 테이블 작업당 제한 시간(초)
    fail_fast: bool = Field(default=False)  # 테이블 실패 시 실행 중단
    log_dir: str = Field(default="./logs")


# ============================================================
# 프로필 설정 모델
# ============================================================

class DatabaseProfile(BaseModel):
    """DB 프로필"""

    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    management_system: str = "mysql"
    name: str
    user: str
    password: str = ""
    offset: int = DEFAULT_OFFSET


class SSHProfile(BaseModel):
    """SSH 접속 프로필"""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = 22
    user: str
    key: str = "~/.ssh/id_rsa"  # 개인키 경로
    known_hosts: str | None = None  # 호스트 키 검증용 known_hosts 경로 (없으면 검증 안 함)

    def key_path(self) -> Path:
        return Path(self.key).expanduser().resolve()


class Endpoint(BaseModel):
    """DB + SSH 프로필 묶음 (소스 또는 타겟)"""

    model_config = ConfigDict(frozen=True)

    profile: str
    database: DatabaseProfile
    ssh: SSHProfile


class SyncFileConfig(BaseModel):
    """설정 파일 전체 구조"""

    database: dict[str, DatabaseProfile] = Field(default_factory=dict)
    ssh: dict[str, SSHProfile] = Field(default_factory=dict)

    def resolve(self, profile: str) -> Endpoint:
        """프로필 이름으로 DB/SSH 설정 조회"""
        if profile not in self.database:
            raise ConfigError(f"database 섹션에 프로필이 없습니다: {profile}")
        if profile not in self.ssh:
            raise ConfigError(f"ssh 섹션에 프로필이 없습니다: {profile}")
        return Endpoint(profile=profile, database=self.database[profile], ssh=self.ssh[profile])


class SyncContext(BaseModel):
    """한 번의 동기화 실행에 필요한 설정 (실행 시작 시 한 번 생성)"""

    model_config = ConfigDict(frozen=True)

    source: Endpoint
    target: Endpoint
    settings: SyncSettings = Field(default_factory=SyncSettings)
    blacklist: frozenset[str] = TABLE_BLACKLIST


def load_sync_config(config_path: str | Path) -> SyncFileConfig:
    """설정 파일 로드 (.toml 은 TOML, 그 외는 YAML)"""
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"설정 파일을 찾을 수 없습니다: {config_path}")

    try:
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"설정 파일 파싱 실패: {config_path}: {e}") from e

    data = _normalize_keys(data or {})
    try:
        return SyncFileConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"설정 파일 형식 오류: {config_path}\n{e}") from e


def _normalize_keys(data: dict) -> dict:
    """섹션 이름과 필드 이름을 소문자로 통일 (TOML 설정의 ManagementSystem 등)"""
    normalized = {}
    for section, profiles in data.items():
        if not isinstance(profiles, dict):
            normalized[section.lower()] = profiles
            continue
        normalized[section.lower()] = {
            name: {_snake_case(k): v for k, v in fields.items()} if isinstance(fields, dict) else fields
            for name, fields in profiles.items()
        }
    return normalized


def _snake_case(key: str) -> str:
    result = []
    for i, ch in enumerate(key):
        if ch.isupper() and i > 0 and not key[i - 1].isupper():
            result.append("_")
        result.append(ch.lower())
    return "".join(result)


def build_context(
    config_path: str | Path,
    source_profile: str,
    target_profile: str,
    settings: SyncSettings | None = None,
) -> SyncContext:
    """설정 파일과 프로필 이름으로 실행 컨텍스트 생성"""
    file_config = load_sync_config(config_path)
    return SyncContext(
        source=file_config.resolve(source_profile),
        target=file_config.resolve(target_profile),
        settings=settings or SyncSettings(),
    )
