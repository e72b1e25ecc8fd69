"""설정 로드 테스트"""

import pytest

from db_sync.config import (
    DEFAULT_OFFSET,
    TABLE_BLACKLIST,
    SyncSettings,
    build_context,
    load_sync_config,
)
from db_sync.exceptions import ConfigError


class TestLoadSyncConfig:
    """설정 파일 로드 테스트"""

    def test_yaml_profiles(self, config_yaml):
        config = load_sync_config(config_yaml)

        assert set(config.database) == {"production", "staging"}
        production = config.database["production"]
        assert production.name == "app_production"
        assert production.user == "readonly"
        assert production.offset == DEFAULT_OFFSET
        assert config.ssh["production"].port == 2222
        assert config.ssh["staging"].port == 22
        assert config.ssh["production"].known_hosts == "~/.ssh/known_hosts"
        assert config.ssh["staging"].known_hosts is None
        assert config.database["staging"].password == ""

    def test_toml_profiles_with_original_key_names(self, tmp_path):
        path = tmp_path / "db_sync.toml"
        path.write_text(
            """
[database.production]
host = "localhost"
managementSystem = "mysql"
name = "app_production"
user = "readonly"
password = "secret"
offset = 2000000000

[ssh.production]
host = "db.example.com"
port = "22"
user = "deploy"
key = "~/.ssh/id_rsa"
""",
            encoding="utf-8",
        )

        config = load_sync_config(path)

        assert config.database["production"].management_system == "mysql"
        assert config.database["production"].offset == 2000000000
        assert config.ssh["production"].port == 22

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_sync_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("database: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_sync_config(path)

    def test_missing_required_field(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("database:\n  production:\n    host: localhost\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_sync_config(path)


class TestBuildContext:
    """실행 컨텍스트 생성 테스트"""

    def test_resolves_source_and_target(self, config_yaml, tmp_path):
        settings = SyncSettings(staging_base_dir=tmp_path)

        context = build_context(config_yaml, "production", "staging", settings)

        assert context.source.profile == "production"
        assert context.source.database.name == "app_production"
        assert context.source.ssh.host == "db.example.com"
        assert context.target.database.name == "app_staging"
        assert context.settings is settings
        assert context.blacklist == TABLE_BLACKLIST

    def test_unknown_profile(self, config_yaml):
        with pytest.raises(ConfigError, match="unknown"):
            build_context(config_yaml, "production", "unknown")

    def test_profile_missing_ssh_section(self, tmp_path):
        path = tmp_path / "db_sync.yaml"
        path.write_text("database:\n  production:\n    name: app\n    user: root\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="ssh"):
            build_context(path, "production", "production")


class TestSyncSettings:
    """실행 설정 테스트"""

    def test_defaults(self, monkeypatch):
        for key in ("MAX_FETCH_SESSIONS", "MAX_DELETE_SESSIONS", "MAX_LOAD_SESSIONS", "FAIL_FAST", "TASK_TIMEOUT"):
            monkeypatch.delenv(f"DB_SYNC_{key}", raising=False)

        settings = SyncSettings()

        assert settings.max_fetch_sessions == 3
        assert settings.max_delete_sessions == 3
        assert settings.max_load_sessions == 3
        assert settings.task_timeout is None
        assert settings.fail_fast is False

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("DB_SYNC_MAX_LOAD_SESSIONS", "5")
        monkeypatch.setenv("DB_SYNC_FAIL_FAST", "true")

        settings = SyncSettings()

        assert settings.max_load_sessions == 5
        assert settings.fail_fast is True

    def test_rejects_zero_sessions(self):
        with pytest.raises(ValueError):
            SyncSettings(max_fetch_sessions=0)
