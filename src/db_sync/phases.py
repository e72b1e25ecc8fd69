"""
동기화 단계 정의 (fetch / delete / load)
세 단계 모두 같은 목록 파일을 읽고 같은 병렬 실행기(run_phase)를 사용
"""

from db_sync.commands import delete_table_command, load_infile_command, select_table_command
from db_sync.config import SyncContext
from db_sync.executor import CommandExecutor
from db_sync.runner import PhaseResult, run_phase
from db_sync.staging import StagingArea

FETCH = "Fetch"
DELETE = "Delete"
LOAD = "Load Infile"


async def fetch_tables(
    context: SyncContext,
    staging: StagingArea,
    executor: CommandExecutor,
) -> PhaseResult:
    """소스에서 테이블 전체 행을 조회해 덤프 파일로 저장"""
    tables = staging.read_listing_lines(context.blacklist)
    db = context.source.database

    async def fetch(table: str) -> None:
        raw = await executor.run(select_table_command(db, table))
        staging.write_table_dump(table, raw)

    return await run_phase(
        FETCH,
        tables,
        fetch,
        context.settings.max_fetch_sessions,
        timeout=context.settings.task_timeout,
        fail_fast=context.settings.fail_fast,
    )


async def delete_tables(
    context: SyncContext,
    staging: StagingArea,
    executor: CommandExecutor,
) -> PhaseResult:
    """타겟 테이블의 기존 행 삭제"""
    tables = staging.read_listing_lines(context.blacklist)
    db = context.target.database

    async def delete(table: str) -> None:
        await executor.run(delete_table_command(db, table))

    return await run_phase(
        DELETE,
        tables,
        delete,
        context.settings.max_delete_sessions,
        timeout=context.settings.task_timeout,
        fail_fast=context.settings.fail_fast,
    )


async def load_tables(
    context: SyncContext,
    staging: StagingArea,
    executor: CommandExecutor,
) -> PhaseResult:
    """덤프 파일을 타겟 테이블에 LOAD DATA LOCAL INFILE"""
    tables = staging.read_listing_lines(context.blacklist)
    db = context.target.database
    ssh = context.target.ssh

    async def load(table: str) -> None:
        dump_path = staging.dump_path(table)
        if not dump_path.exists():
            raise FileNotFoundError(f"덤프 파일을 찾을 수 없음: {dump_path}")
        await executor.run(load_infile_command(db, ssh, table, dump_path))

    return await run_phase(
        LOAD,
        tables,
        load,
        context.settings.max_load_sessions,
        timeout=context.settings.task_timeout,
        fail_fast=context.settings.fail_fast,
    )
