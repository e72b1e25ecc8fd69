"""로깅 설정"""

import logging
import sys
from datetime import datetime
from pathlib import Path


def setup_logger(verbose: bool = False, log_dir: str | None = "./logs") -> logging.Logger:
    """db_sync 로거 설정 (콘솔 + 일자별 파일)"""
    logger = logging.getLogger("db_sync")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # 이미 핸들러가 설정되어 있으면 반환
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_format = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # log_dir이 없으면 파일 로그 생략
    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(
            log_path / f"sync_{datetime.now().strftime('%Y%m%d')}.log",
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(console_format)
        logger.addHandler(file_handler)

    return logger
