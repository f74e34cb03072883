from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceChanged:
    """Published after a mutation commits so readers can refresh that collection."""

    collection: str
    action: str
    resource_id: Optional[int]
    principal_id: str


Subscriber = Callable[[ResourceChanged], Union[None, Awaitable[None]]]


class ChangeNotifier:
    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def publish(self, event: ResourceChanged) -> None:
        # Runs after commit; subscriber errors are logged only.
        for callback in list(self._subscribers):
            try:
                result = callback(event)
                if result is not None:
                    await result
            except Exception:
                logger.exception("change subscriber failed for %s.%s", event.collection, event.action)
