"""Minimal example sending a few GELF messages to a local Graylog input."""

from __future__ import annotations

import asyncio
import logging
import os

import gelfudp


async def main() -> None:
    errors = gelfudp.ErrorChannel()
    errors.subscribe(lambda err: print(f"dropped: {type(err).__name__}: {err}"))

    client = gelfudp.create_client({"defaults": {"app": "gelfudp-demo", "env": "dev"}}, errors=errors)
    async with client:
        await client.info("started", pid=os.getpid())

        logger = logging.getLogger("examples.orders")
        logger.setLevel(logging.INFO)
        logger.addHandler(gelfudp.GELFUDPHandler(client))
        for order_id in range(1, 4):
            logger.info("processed order", extra={"order_id": order_id, "total": order_id * 19.99})

        try:
            raise RuntimeError("payment gateway unavailable")
        except RuntimeError as exc:
            await client.error(exc, order_id=4)


if __name__ == "__main__":
    asyncio.run(main())
