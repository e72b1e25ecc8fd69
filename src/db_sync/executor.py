"""
명령 실행 채널
- SSHExecutor: asyncssh 기반 원격 실행 (작업마다 별도 채널)
- LocalExecutor: 로컬 셸 실행 (LOAD DATA LOCAL INFILE 용)
"""

import asyncio
import logging
from pathlib import Path
from typing import Protocol

import asyncssh

from db_sync.commands import mask_password
from db_sync.config import SSHProfile
from db_sync.exceptions import ConnectionSetupError, RemoteCommandError

logger = logging.getLogger(__name__)


class CommandExecutor(Protocol):
    """명령 한 개를 실행하고 표준출력을 반환하는 채널"""

    async def run(self, command: str) -> bytes: ...

    async def close(self) -> None: ...


class SSHExecutor:
    """SSH 원격 명령 실행기"""

    def __init__(self, profile: SSHProfile):
        self.profile = profile
        self._conn: asyncssh.SSHClientConnection | None = None

    def _known_hosts(self) -> str | None:
        # 경로를 지정하지 않으면 호스트 키 검증 안 함
        if self.profile.known_hosts is None:
            return None
        return str(Path(self.profile.known_hosts).expanduser())

    async def connect(self) -> "SSHExecutor":
        """SSH 연결 (공개키 인증)"""
        key_path = self.profile.key_path()
        try:
            client_key = asyncssh.read_private_key(str(key_path))
        except (OSError, asyncssh.KeyImportError) as e:
            raise ConnectionSetupError(f"개인키를 읽을 수 없습니다: {key_path}: {e}") from e

        try:
            self._conn = await asyncssh.connect(
                self.profile.host,
                port=self.profile.port,
                username=self.profile.user,
                client_keys=[client_key],
                known_hosts=self._known_hosts(),
            )
        except (OSError, asyncssh.Error) as e:
            raise ConnectionSetupError(
                f"SSH 연결 실패: {self.profile.user}@{self.profile.host}:{self.profile.port}: {e}"
            ) from e

        logger.info("[SSH] %s:%s 연결 완료", self.profile.host, self.profile.port)
        return self

    async def run(self, command: str) -> bytes:
        if self._conn is None:
            raise ConnectionSetupError(f"SSH 연결이 없습니다: {self.profile.host}")

        # encoding=None: 덤프 결과를 바이트 그대로 받음
        result = await self._conn.run(command, check=False, encoding=None)
        if result.exit_status != 0:
            stderr = (result.stderr or b"").decode("utf-8", errors="replace")
            raise RemoteCommandError(mask_password(command), result.exit_status, stderr)
        return result.stdout or b""

    async def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            await self._conn.wait_closed()
            self._conn = None


class LocalExecutor:
    """로컬 셸 명령 실행기"""

    async def run(self, command: str) -> bytes:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            # 제한 시간 초과 등으로 취소되면 프로세스도 정리
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise

        if proc.returncode != 0:
            raise RemoteCommandError(
                mask_password(command),
                proc.returncode,
                stderr.decode("utf-8", errors="replace"),
            )
        return stdout

    async def close(self) -> None:
        return None


async def connect_ssh(profile: SSHProfile) -> SSHExecutor:
    """프로필로 SSH 실행기 생성 및 연결"""
    return await SSHExecutor(profile).connect()
