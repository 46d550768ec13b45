# utils/logging_setup.py
from __future__ import annotations
import logging
import logging.handlers
from pathlib import Path

FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO", log_dir: Path | None = None) -> None:
    """
    Consola y, si hay log_dir, un fichero diario (log.txt rotado a medianoche).
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    formatter = logging.Formatter(FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.TimedRotatingFileHandler(
            log_dir / "log.txt", when="midnight", backupCount=30, encoding="utf-8",
        )
        fh.setFormatter(formatter)
        root.addHandler(fh)
