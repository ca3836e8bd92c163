#!/usr/bin/env python3
"""
For You feed server entrypoint: python -m foryou_server.server
"""

import logging

import uvicorn

from .app import app
from .config import get_config


def main() -> None:
    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
