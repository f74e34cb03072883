from typing import Any

import pytest
from esports_hub.domain.events import ChangeNotifier, ResourceChanged
from esports_hub.workflows import base
from fakes import FakeSession, Store


@pytest.fixture
def store() -> Store:
    return Store()


@pytest.fixture
def session_factory(store: Store) -> Any:
    return lambda: FakeSession(store)


@pytest.fixture
def events() -> list[ResourceChanged]:
    return []


@pytest.fixture
def notifier(events: list[ResourceChanged]) -> ChangeNotifier:
    notifier = ChangeNotifier()
    notifier.subscribe(events.append)
    return notifier


@pytest.fixture
def audit_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_emit(**kwargs: Any) -> None:
        calls.append(kwargs)

    monkeypatch.setattr(base, "emit_audit_log", fake_emit)
    return calls
