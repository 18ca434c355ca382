from __future__ import annotations

import logging
import sys

from typedhttp import Store, run_server

from .config import ServiceConfig, load_config
from .handlers import build_handler
from .models import Record

logger = logging.getLogger("recordsvc")


def make_store(config: ServiceConfig) -> Store[Record]:
    db: Store[Record] = Store()
    if config.seed:
        db.set("james", Record(name="james"))
    return db


def main() -> None:
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    handler = build_handler(make_store(config))
    logger.info("serving records on %s:%s", config.host, config.port)
    run_server(handler, config.port, host=config.host)


if __name__ == "__main__":  # pragma: no cover - cli entry point
    try:
        main()
    except Exception as exc:  # noqa: BLE001
        logger.critical("fatal error: %s", exc)
        sys.exit(1)
