from db_sync.utils.logger import setup_logger

__all__ = ["setup_logger"]
