"""
스테이징 디렉토리 관리
소스에서 가져온 테이블 목록/덤프 파일을 실행 단위 로컬 디렉토리에 저장
"""

import logging
import shutil
import time
from pathlib import Path

from db_sync.config import TABLE_BLACKLIST
from db_sync.exceptions import StagingError

logger = logging.getLogger(__name__)

STAGING_DIR_PREFIX = "db_sync_"


def filter_tables(lines: list[str], blacklist: frozenset[str] = TABLE_BLACKLIST) -> list[str]:
    """블랙리스트 테이블 제외 (순서 유지, 빈 줄/중복 제거)"""
    tables = []
    seen = set()
    for line in lines:
        table = line.strip()
        if not table or table in blacklist or table in seen:
            continue
        seen.add(table)
        tables.append(table)
    return tables


class StagingArea:
    """실행별 스테이징 디렉토리

    디렉토리 이름은 실행 시작 시각(unix timestamp)으로 정해지며
    이미 존재하는 디렉토리는 재사용하지 않는다.
    """

    def __init__(self, base_dir: str | Path, database: str, started_at: float | None = None):
        self.base_dir = Path(base_dir)
        self.database = database
        self.started_at = int(started_at if started_at is not None else time.time())
        self.path = self.base_dir / f"{STAGING_DIR_PREFIX}{self.started_at}"
        self._created = False

    @property
    def listing_path(self) -> Path:
        return self.path / f"{self.database}_list.txt"

    def dump_path(self, table: str) -> Path:
        return self.path / f"{self.database}_{table}.txt"

    def create(self) -> Path:
        """스테이징 디렉토리 생성"""
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            self.path.mkdir()
        except FileExistsError as e:
            raise StagingError(f"스테이징 디렉토리가 이미 존재합니다: {self.path}") from e
        except OSError as e:
            raise StagingError(f"스테이징 디렉토리 생성 실패: {self.path}: {e}") from e

        self._created = True
        logger.debug("스테이징 디렉토리 생성: %s", self.path)
        return self.path

    def _write_once(self, path: Path, raw: bytes) -> Path:
        try:
            with open(path, "xb") as f:
                f.write(raw)
        except FileExistsError as e:
            raise StagingError(f"이미 기록된 파일입니다: {path}") from e
        return path

    def write_listing(self, raw: bytes) -> Path:
        return self._write_once(self.listing_path, raw)

    def write_table_dump(self, table: str, raw: bytes) -> Path:
        return self._write_once(self.dump_path(table), raw)

    def read_table_dump(self, table: str) -> bytes:
        path = self.dump_path(table)
        if not path.exists():
            raise FileNotFoundError(f"덤프 파일을 찾을 수 없음: {path}")
        return path.read_bytes()

    def read_listing_lines(self, blacklist: frozenset[str] = TABLE_BLACKLIST) -> list[str]:
        """테이블 목록 파일을 다시 읽어 블랙리스트 적용"""
        # UTF-8이 아닌 테이블 이름도 바이트 그대로 보존
        try:
            text = self.listing_path.read_bytes().decode("utf-8", errors="surrogateescape")
        except OSError as e:
            raise StagingError(f"테이블 목록 파일을 읽을 수 없음: {self.listing_path}: {e}") from e
        return filter_tables(text.splitlines(), blacklist)

    def destroy(self) -> bool:
        """이 실행이 만든 스테이징 디렉토리 삭제 (실패해도 예외를 던지지 않음)"""
        if not self._created or not self.path.exists():
            return False
        try:
            shutil.rmtree(self.path)
        except OSError as e:
            logger.error("스테이징 디렉토리 삭제 실패: %s: %s", self.path, e)
            return False
        logger.debug("스테이징 디렉토리 삭제: %s", self.path)
        return True
