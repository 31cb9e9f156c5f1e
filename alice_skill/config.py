import os
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

# Load .env from project root BEFORE reading any setting
PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=PROJECT_ROOT / ".env", override=False)

DEFAULT_DB_PATH = PROJECT_ROOT / "database" / "skill.db"

RUN_ADDR = os.getenv("RUN_ADDR", ":8080")
DATABASE_URI = os.getenv("DATABASE_URI", f"sqlite:///{DEFAULT_DB_PATH.as_posix()}")
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")


def parse_address(addr: str) -> Tuple[str, int]:
    """Split ``host:port`` into its parts; an empty host listens on all interfaces."""
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid run address: {addr!r}")
    return host or "0.0.0.0", int(port)
