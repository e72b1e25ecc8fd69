"""Pytest 설정 및 공용 fixture"""

import asyncio
import logging

import pytest

from db_sync.config import (
    DatabaseProfile,
    Endpoint,
    SSHProfile,
    SyncContext,
    SyncSettings,
)
from db_sync.exceptions import RemoteCommandError


class FakeExecutor:
    """명령을 기록하고 미리 정한 출력을 반환하는 실행기"""

    def __init__(self, outputs: dict[str, bytes] | None = None, fail_on: set[str] | None = None, delay: float = 0.0):
        self.outputs = outputs or {}
        self.fail_on = fail_on or set()
        self.delay = delay
        self.commands: list[str] = []
        self.closed = False

    async def run(self, command: str) -> bytes:
        self.commands.append(command)
        if self.delay:
            await asyncio.sleep(self.delay)
        for keyword in self.fail_on:
            if keyword in command:
                raise RemoteCommandError(command, 1, f"failed: {keyword}")
        for keyword, output in self.outputs.items():
            if keyword in command:
                return output
        return b""

    async def close(self) -> None:
        self.closed = True


def make_endpoint(profile: str, db_name: str, host: str) -> Endpoint:
    return Endpoint(
        profile=profile,
        database=DatabaseProfile(name=db_name, user="root", password="secret"),
        ssh=SSHProfile(host=host, user="deploy", key="~/.ssh/id_rsa"),
    )


@pytest.fixture(autouse=True)
def reset_logger():
    """테스트마다 db_sync 로거 핸들러 초기화"""
    yield
    logger = logging.getLogger("db_sync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def settings(tmp_path):
    return SyncSettings(staging_base_dir=tmp_path / "staging")


@pytest.fixture
def context(settings):
    return SyncContext(
        source=make_endpoint("production", "app_production", "db.example.com"),
        target=make_endpoint("staging", "app_staging", "staging-db.example.com"),
        settings=settings,
    )


@pytest.fixture
def config_yaml(tmp_path):
    path = tmp_path / "db_sync.yaml"
    path.write_text(
        """
database:
  production:
    host: localhost
    management_system: mysql
    name: app_production
    user: readonly
    password: secret
  staging:
    name: app_staging
    user: root
ssh:
  production:
    host: db.example.com
    port: 2222
    user: deploy
    key: ~/.ssh/id_rsa
    known_hosts: ~/.ssh/known_hosts
  staging:
    host: staging-db.example.com
    user: deploy
""",
        encoding="utf-8",
    )
    return path
