"""
Testing utilities for code that logs through cloudlog.

``FakeLoggingService`` is an in-memory transport; pass it to ``Client`` to
exercise the full write and query paths without a network.

Pytest fixtures require the testing extra: ``pip install cloudlog[testing]``

Example:
    from cloudlog import Client, Entry
    from cloudlog.testing import FakeLoggingService

    async def test_writes():
        fake = FakeLoggingService(projects=["my-project"])
        async with Client("my-project", transport=fake) as client:
            lg = client.logger("app")
            lg.log(Entry(payload="hello"))
            await lg.flush()
        assert fake.entries()[0].text_payload == "hello"
"""

from .fake import FakeLoggingService, parse_filter

__all__ = ["FakeLoggingService", "parse_filter"]
