"""
Logging sinks and batch checkpoint save/load.
"""

import json
from pathlib import Path
from typing import List

from loguru import logger

import contact_finder.config as cfg


class ErrorHandler:
    """Log file setup plus checkpointing, so an interrupted batch can resume."""

    def __init__(self, setup_logging: bool = True) -> None:
        if setup_logging:
            self._setup_logging()

    # -- Logging -----------------------------------------------------------

    @staticmethod
    def _setup_logging() -> None:
        """Add a rotating file sink next to loguru's default stderr sink."""
        cfg.LOGS_DIR.mkdir(parents=True, exist_ok=True)
        log_path = cfg.LOGS_DIR / "contact_finder_{time:YYYY-MM-DD}.log"
        logger.add(
            str(log_path),
            rotation="10 MB",
            retention="7 days",
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {message}",
        )
        logger.info("Logging initialised  ->  {}", cfg.LOGS_DIR)

    # -- Checkpoint (save / load) ------------------------------------------

    @staticmethod
    def _checkpoint_path(run_name: str) -> Path:
        return cfg.LOGS_DIR / f"resume_{run_name}.json"

    @staticmethod
    def save_checkpoint(data: List[dict], run_name: str) -> None:
        """Persist processed rows so a crashed run can resume."""
        path = ErrorHandler._checkpoint_path(run_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False, default=str)
        logger.debug("Checkpoint saved ({} records)  ->  {}", len(data), path)

    @staticmethod
    def load_checkpoint(run_name: str) -> List[dict] | None:
        path = ErrorHandler._checkpoint_path(run_name)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        logger.info("Checkpoint loaded ({} records)  <-  {}", len(data), path)
        return data

    @staticmethod
    def clear_checkpoint(run_name: str) -> None:
        """Remove checkpoint after a successful export."""
        path = ErrorHandler._checkpoint_path(run_name)
        if path.exists():
            path.unlink()
            logger.debug("Checkpoint cleared  ->  {}", path)
