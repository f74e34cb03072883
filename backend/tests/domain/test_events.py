import pytest
from esports_hub.domain.events import ChangeNotifier, ResourceChanged


def _event(collection: str = "teams") -> ResourceChanged:
    return ResourceChanged(collection=collection, action="team.created", resource_id=1, principal_id="u-1")


@pytest.mark.asyncio
async def test_publish_reaches_sync_and_async_subscribers() -> None:
    notifier = ChangeNotifier()
    seen: list[str] = []

    def sync_subscriber(event: ResourceChanged) -> None:
        seen.append(f"sync:{event.collection}")

    async def async_subscriber(event: ResourceChanged) -> None:
        seen.append(f"async:{event.collection}")

    notifier.subscribe(sync_subscriber)
    notifier.subscribe(async_subscriber)
    await notifier.publish(_event())

    assert seen == ["sync:teams", "async:teams"]


@pytest.mark.asyncio
async def test_unsubscribe_stops_delivery() -> None:
    notifier = ChangeNotifier()
    seen: list[ResourceChanged] = []
    unsubscribe = notifier.subscribe(seen.append)

    await notifier.publish(_event())
    unsubscribe()
    unsubscribe()
    await notifier.publish(_event())

    assert len(seen) == 1


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    notifier = ChangeNotifier()
    seen: list[ResourceChanged] = []

    def broken(event: ResourceChanged) -> None:
        raise RuntimeError("boom")

    notifier.subscribe(broken)
    notifier.subscribe(seen.append)
    await notifier.publish(_event("watch_parties"))

    assert len(seen) == 1
    assert "change subscriber failed" in caplog.text
