"""Protean Engine runner for the Ordering domain.

Runs the Engine that consumes inbound Catalogue events (product listed,
price and stock changes, activation, deletion) and applies them to the
local CatalogProduct records. Only needed when event processing is async
(PROTEAN_ENV=production); in sync mode handlers run in-process.

Usage:
    python src/server.py
"""

import asyncio

from protean.server.engine import Engine

from ordering.domain import ordering
from ordering.utils.logging import configure_logging


async def run():
    ordering.init()
    engine = Engine(ordering)
    await engine.run()


def main():
    configure_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
