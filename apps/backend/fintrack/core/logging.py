from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", log_dir: Path | None = None) -> None:
    """Configure application logging (console, plus ``server.log`` when ``log_dir`` is set).

    Idempotent: safe to call multiple times.
    """
    formatter = logging.Formatter(LOG_FORMAT)
    resolved_level = logging.getLevelName(level.upper())
    if not isinstance(resolved_level, int):
        resolved_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)

    if not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        root_logger.addHandler(stream_handler)

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    server_log_path = str((log_dir / "server.log").resolve())
    server_handler: logging.FileHandler | None = None

    # uvicorn and uvicorn.access do not propagate to the root logger
    for logger_name in ("", "uvicorn", "uvicorn.access"):
        lg = logging.getLogger(logger_name)
        if any(
            getattr(h, "baseFilename", None) == server_log_path
            for h in lg.handlers
            if isinstance(h, logging.FileHandler)
        ):
            continue
        if server_handler is None:
            server_handler = logging.FileHandler(server_log_path)
            server_handler.setLevel(logging.DEBUG)
            server_handler.setFormatter(formatter)
        lg.addHandler(server_handler)
