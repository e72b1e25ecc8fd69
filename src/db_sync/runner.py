"""
테이블 단위 병렬 실행기
테이블마다 독립 태스크를 만들고 세마포어로 동시 실행 수를 제한
모든 태스크가 끝난 뒤 테이블별 결과를 모아 반환
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

TableAction = Callable[[str], Awaitable[Any]]


@dataclass
class TableOutcome:
    """테이블 처리 결과"""
    table: str
    status: str  # success, error, timeout, skipped
    error: str | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == "success"


@dataclass
class PhaseResult:
    """단계(fetch/delete/load) 결과"""
    phase: str
    outcomes: list[TableOutcome] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def succeeded_tables(self) -> list[str]:
        return [o.table for o in self.outcomes if o.ok]

    @property
    def failed_tables(self) -> list[tuple[str, str]]:
        return [(o.table, o.error or o.status) for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)


async def run_phase(
    phase: str,
    tables: list[str],
    action: TableAction,
    max_concurrency: int,
    *,
    timeout: float | None = None,
    fail_fast: bool = False,
) -> PhaseResult:
    """모든 테이블에 action 실행 (최대 max_concurrency 개 동시 실행)

    Args:
        phase: 로그/결과에 표시할 단계 이름
        tables: 대상 테이블 목록
        action: 테이블 하나를 처리하는 코루틴 함수
        max_concurrency: 동시에 실행 중인 action 최대 개수
        timeout: 테이블당 제한 시간(초), 초과 시 해당 테이블만 timeout 처리
        fail_fast: 실패 발생 후 아직 시작하지 않은 테이블은 skipped 처리

    Returns:
        테이블 순서대로 결과를 담은 PhaseResult
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency는 1 이상이어야 합니다: {max_concurrency}")

    semaphore = asyncio.Semaphore(max_concurrency)
    aborted = asyncio.Event()
    phase_started = time.monotonic()

    logger.info("[%s] 시작: %d개 테이블 (동시 %d개)", phase, len(tables), max_concurrency)

    async def run_with_semaphore(table: str) -> TableOutcome:
        # 슬롯은 action이 끝날 때까지 유지 (동시 세션 수 제한)
        async with semaphore:
            if fail_fast and aborted.is_set():
                logger.warning("\t[%s] %s 건너뜀 (이전 실패)", phase, table)
                return TableOutcome(table=table, status="skipped", error="이전 테이블 실패로 건너뜀")

            logger.info("\t[%s] %s 시작", phase, table)
            started = time.monotonic()
            try:
                if timeout is not None:
                    await asyncio.wait_for(action(table), timeout)
                else:
                    await action(table)
            except Exception as e:
                # 제한 시간을 지정하지 않았다면 action 자체의 TimeoutError는 일반 오류
                if timeout is not None and isinstance(e, asyncio.TimeoutError):
                    status, error = "timeout", f"제한 시간 초과 ({timeout}초)"
                else:
                    status, error = "error", str(e) or type(e).__name__
                outcome = TableOutcome(
                    table=table,
                    status=status,
                    error=error,
                    elapsed=time.monotonic() - started,
                )
            else:
                outcome = TableOutcome(table=table, status="success", elapsed=time.monotonic() - started)

        if outcome.ok:
            logger.info("\t[%s] %s 완료 (%.2fs)", phase, table, outcome.elapsed)
        else:
            aborted.set()
            logger.error("\t[%s] %s 실패: %s", phase, table, outcome.error)
        return outcome

    results = await asyncio.gather(
        *[run_with_semaphore(t) for t in tables],
        return_exceptions=True,
    )

    outcomes = []
    for table, res in zip(tables, results):
        if isinstance(res, BaseException):
            outcomes.append(TableOutcome(table=table, status="error", error=str(res) or type(res).__name__))
        else:
            outcomes.append(res)

    result = PhaseResult(phase=phase, outcomes=outcomes, elapsed=time.monotonic() - phase_started)
    if result.ok:
        logger.info("[%s] 완료: %d개 테이블 (%.2fs)", phase, len(outcomes), result.elapsed)
    else:
        logger.warning(
            "[%s] 완료: 성공 %d개, 실패 %d개 (%.2fs)",
            phase,
            len(result.succeeded_tables),
            len(result.failed_tables),
            result.elapsed,
        )
    return result
