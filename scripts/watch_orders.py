#!/usr/bin/env python3
"""
Watch the order board from a terminal.

Usage:
    ORDER_STORE_URL=https://store.example/api python scripts/watch_orders.py

Polls the order store the way the operator view does and prints the bucket
sizes whenever one of them changes. Exits when the polling lifetime ends
(ORDER_POLL_LIFETIME, default 120s) or on Ctrl+C.
"""

import asyncio
import logging.config
import sys

from cafe_schemas import Order, OrderStatus

from apps.web.config import settings
from apps.web.orders.adapters import HttpOrderStore
from apps.web.orders.polling import PollingScheduler, SchedulerState
from apps.web.orders.registry import OrderRegistry

logger = logging.getLogger("watch_orders")


def print_bucket(status: OrderStatus, bucket: tuple[Order, ...]) -> None:
    print(f"{status.value:>10}: {len(bucket)} order(s)")
    for order in bucket:
        total = order.total if order.total is not None else "?"
        print(f"            {order.id}  {order.email or '-'}  R${total}")


async def watch() -> int:
    store = HttpOrderStore()
    registry = OrderRegistry(on_change=print_bucket)
    scheduler = PollingScheduler(store, registry)

    try:
        await scheduler.start()
        while scheduler.state is SchedulerState.POLLING:
            await asyncio.sleep(1)
    finally:
        scheduler.close()
        await store.close()

    failed = sorted(status.value for status in scheduler.errors)
    if failed:
        logger.warning("Last cycle failed for: %s", ", ".join(failed))
        return 1
    return 0


def main() -> int:
    logging.config.dictConfig(settings.LOGGING)
    try:
        return asyncio.run(watch())
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
