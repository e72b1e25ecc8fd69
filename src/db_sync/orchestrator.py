"""
DB 동기화 오케스트레이터
소스 연결 → 테이블 목록 → fetch → 타겟 연결 → delete → load → 정리
단계는 겹치지 않으며, 이전 단계의 모든 테이블 작업이 끝난 뒤 다음 단계 시작
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable

from db_sync.config import Endpoint, SSHProfile, SyncContext
from db_sync.exceptions import ConnectionSetupError, PhaseFailedError, SetupError, SyncError
from db_sync.executor import CommandExecutor, LocalExecutor, connect_ssh
from db_sync.lister import list_tables
from db_sync.phases import delete_tables, fetch_tables, load_tables
from db_sync.runner import PhaseResult
from db_sync.staging import StagingArea

logger = logging.getLogger(__name__)

Connector = Callable[[SSHProfile], Awaitable[CommandExecutor]]


class SyncState(str, Enum):
    IDLE = "idle"
    SOURCE_CONNECTED = "source_connected"
    LISTED = "listed"
    FETCHED = "fetched"
    TARGET_CONNECTED = "target_connected"
    DELETED = "deleted"
    LOADED = "loaded"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SyncReport:
    """동기화 실행 결과"""
    source: str
    target: str
    state: SyncState = SyncState.IDLE
    phases: list[PhaseResult] = field(default_factory=list)
    error: str | None = None
    staging_dir: Path | None = None
    elapsed: float = 0.0

    def failed_tables(self) -> list[tuple[str, str, str]]:
        """(단계, 테이블, 오류) 목록"""
        return [
            (result.phase, table, error)
            for result in self.phases
            for table, error in result.failed_tables
        ]

    @property
    def ok(self) -> bool:
        return self.state == SyncState.DONE and not self.failed_tables()


class DatabaseSyncer:
    """소스 DB 테이블을 타겟 DB로 동기화"""

    def __init__(
        self,
        context: SyncContext,
        connector: Connector = connect_ssh,
        load_executor: CommandExecutor | None = None,
        started_at: float | None = None,
    ):
        self.context = context
        self.connector = connector
        self.load_executor = load_executor or LocalExecutor()
        self.staging = StagingArea(
            context.settings.staging_base_dir,
            context.source.database.name,
            started_at=started_at,
        )
        self.report = SyncReport(source=context.source.profile, target=context.target.profile)

    def _transition(self, state: SyncState) -> None:
        logger.debug("상태 전이: %s → %s", self.report.state.value, state.value)
        self.report.state = state

    async def _connect(self, endpoint: Endpoint) -> CommandExecutor:
        logger.info("[Setting] %s(%s) 연결 중...", endpoint.profile, endpoint.ssh.host)
        try:
            return await self.connector(endpoint.ssh)
        except SetupError:
            raise
        except Exception as e:
            raise ConnectionSetupError(f"{endpoint.profile} 연결 실패: {e}") from e

    def _check_phase(self, result: PhaseResult) -> PhaseResult:
        self.report.phases.append(result)
        if self.context.settings.fail_fast and not result.ok:
            raise PhaseFailedError(result.phase, result.failed_tables)
        return result

    async def run(self) -> SyncReport:
        """전체 동기화 실행

        준비 단계 오류(연결, 목록 조회, 스테이징)와 fail-fast 중단은 SyncError로 전파된다.
        테이블 단위 실패는 report.phases에 기록되고 다음 단계로 진행한다.
        """
        source: CommandExecutor | None = None
        target: CommandExecutor | None = None
        started = time.monotonic()

        try:
            source = await self._connect(self.context.source)
            self._transition(SyncState.SOURCE_CONNECTED)

            self.report.staging_dir = self.staging.create()
            await list_tables(source, self.context.source.database, self.staging)
            self._transition(SyncState.LISTED)

            self._check_phase(await fetch_tables(self.context, self.staging, source))
            self._transition(SyncState.FETCHED)

            target = await self._connect(self.context.target)
            self._transition(SyncState.TARGET_CONNECTED)

            self._check_phase(await delete_tables(self.context, self.staging, target))
            self._transition(SyncState.DELETED)

            self._check_phase(await load_tables(self.context, self.staging, self.load_executor))
            self._transition(SyncState.LOADED)

            self._transition(SyncState.DONE)
            logger.info("[Finished] 모든 작업 완료")

        except SyncError as e:
            self.report.error = str(e)
            self._transition(SyncState.FAILED)
            logger.error("[Failed] %s", e)
            raise

        finally:
            for executor in (source, target, self.load_executor):
                if executor is None:
                    continue
                try:
                    await executor.close()
                except Exception as e:
                    logger.warning("실행 채널 종료 실패: %s", e)
            self.staging.destroy()
            self.report.elapsed = time.monotonic() - started

        return self.report
