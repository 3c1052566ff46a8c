"""
Basic usage example for cloudlog.

Writes a few entries through a batching Logger, then reads them back with
a filtered, paginated query. Runs against the in-memory fake service so no
credentials or network are needed; pass no transport to talk to the real
endpoint configured by ``CLOUDLOG_CORE__ENDPOINT``.
"""

import asyncio
import logging
from dataclasses import dataclass

from cloudlog import Client, Entry, Filter, PageSize, Severity, json_field
from cloudlog.testing import FakeLoggingService


@dataclass
class Checkout:
    order_id: str = json_field(name="orderId")
    total: float = 0.0
    coupon: str = json_field(default="", omitempty=True)


async def main() -> None:
    """Demonstrate writing and querying logs."""
    fake = FakeLoggingService(projects=["demo-project"])

    async with Client(
        "demo-project",
        transport=fake,
        on_error=lambda exc: print(f"log write failed: {exc}"),
    ) as client:
        logger = client.logger("checkout", common_labels={"service": "shop"})

        logger.log(Entry(payload="service started", severity=Severity.INFO))
        logger.log(Entry(payload=Checkout("o-1", total=41.5), severity=Severity.NOTICE))
        logger.log(Entry(payload={"error": "card declined"}, severity=Severity.ERROR))

        # Route a stdlib logger into the same log
        std = logger.standard_logger(Severity.WARNING)
        std.warning("inventory low for sku %s", "A-17")

        await logger.flush()

        async for entry in client.entries(Filter("severity >= NOTICE"), PageSize(2)):
            print(entry.timestamp, entry.severity, entry.payload)

        await client.ping()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
