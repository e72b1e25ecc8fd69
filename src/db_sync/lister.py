"""소스 DB 테이블 목록 조회"""

import logging
from pathlib import Path

from db_sync.commands import list_tables_command
from db_sync.config import DatabaseProfile
from db_sync.exceptions import ListingError
from db_sync.executor import CommandExecutor
from db_sync.staging import StagingArea

logger = logging.getLogger(__name__)


async def list_tables(
    executor: CommandExecutor,
    database: DatabaseProfile,
    staging: StagingArea,
) -> Path:
    """show tables 결과를 그대로 목록 파일에 저장

    블랙리스트 필터링은 목록 파일을 읽을 때(StagingArea.read_listing_lines) 적용된다.
    """
    logger.info("[Fetch] 테이블 목록 조회 중... (%s)", database.name)
    try:
        raw = await executor.run(list_tables_command(database))
    except Exception as e:
        raise ListingError(f"테이블 목록 조회 실패: {e}") from e

    path = staging.write_listing(raw)
    logger.info("[Fetch] 테이블 목록 조회 완료: %s", path)
    return path
