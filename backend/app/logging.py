import logging
import logging.handlers
import os
import sys
from pathlib import Path


def configure_logging():
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")

    root = logging.getLogger()
    root.setLevel(level)

    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root.addHandler(console_handler)

    logs_dir = Path(os.getenv("LOG_DIR", Path(__file__).parent / "logs"))
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_file = logs_dir / "projectmates.log"
    file_handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    # realtime client is chatty at INFO
    logging.getLogger("realtime").setLevel(max(level, logging.WARNING))
