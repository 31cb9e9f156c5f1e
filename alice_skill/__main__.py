import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from . import config
from .db.database import build_store
from .db.store import StoreError
from .logging_config import setup_logging

logger = logging.getLogger("alice_skill")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Flags override environment variables, which override defaults."""
    parser = argparse.ArgumentParser(prog="alice_skill", description="Voice skill webhook backend")
    parser.add_argument("command", nargs="?", choices=["serve", "bootstrap"], default="serve")
    parser.add_argument("-a", dest="address", default=config.RUN_ADDR, help="address and port to run server")
    parser.add_argument("-d", dest="database_uri", default=config.DATABASE_URI, help="database URI")
    parser.add_argument("-l", dest="log_level", default=config.LOG_LEVEL, help="log level")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    store = build_store(args.database_uri)

    if args.command == "bootstrap":
        try:
            store.bootstrap()
        except StoreError as e:
            logger.error("bootstrap failed: %s", e)
            return 1
        return 0

    from .main import create_app

    host, port = config.parse_address(args.address)
    logger.info("running server on %s:%d", host, port)
    uvicorn.run(create_app(store=store), host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
