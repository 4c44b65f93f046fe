"""
Central place for process-wide settings and long-lived singletons
(the run store).
"""
import logging
import os
from pathlib import Path

from rules.save_load import RunStore

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

SAVE_DIR = Path(os.environ.get("SUPERBEATMAKER_SAVE_DIR") or (BASE_DIR / "saves"))
LOG_LEVEL = os.environ.get("SUPERBEATMAKER_LOG_LEVEL", "WARNING").upper()
CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get(
        "SUPERBEATMAKER_CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173",
    ).split(",")
    if o.strip()
]

STORE = RunStore(SAVE_DIR)


def configure_logging(level: str | None = None) -> None:
    level_name = (level or LOG_LEVEL).upper()
    numeric = getattr(logging, level_name, None)
    if not isinstance(numeric, int):
        logger.warning("Unknown log level %r; using WARNING", level_name)
        numeric = logging.WARNING
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
