# -*- coding: utf-8 -*-
from __future__ import annotations
import logging, logging.handlers, os
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

def setup_logging(settings) -> Optional[Path]:
    """Configure rotating file logging under SCAN_HUB_DATA_ROOT/logs/scan_hub.log"""
    level = logging.getLevelName(str(settings.SCAN_HUB_LOG_LEVEL).upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger()  # root
    logger.setLevel(level)
    pkg_logger = logging.getLogger("scan_hub")
    pkg_logger.setLevel(level)

    if not settings.SCAN_HUB_LOG_TO_FILE:
        return None

    root = Path(settings.SCAN_HUB_DATA_ROOT).expanduser()
    log_dir = root / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "scan_hub.log"

    fmt = logging.Formatter(LOG_FORMAT)
    handler = logging.handlers.RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    handler.setFormatter(fmt)
    handler.setLevel(level)

    # avoid duplicate handlers
    if not any(isinstance(h, logging.handlers.RotatingFileHandler) and getattr(h, 'baseFilename', '') == os.path.abspath(log_path) for h in logger.handlers):
        logger.addHandler(handler)

    # also wire uvicorn loggers (if present)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        if not any(getattr(h, 'baseFilename', '') == os.path.abspath(log_path) for h in lg.handlers if hasattr(h, 'baseFilename')):
            lg.addHandler(handler)

    return log_path
