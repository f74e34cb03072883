from datetime import date, datetime
from typing import Any

import pytest
from esports_hub.domain.errors import ErrorCode
from esports_hub.domain.events import ChangeNotifier, ResourceChanged
from esports_hub.domain.principal import Principal
from esports_hub.schemas import TournamentForm
from esports_hub.usecases import watch_parties as party_uc
from esports_hub.usecases.tournaments import NO_WATCH_PARTY
from esports_hub.workflows import tournaments as tournament_workflow
from esports_hub.workflows.tournaments import TournamentWorkflow
from fakes import FakeAttendanceLedger, FakeTournamentRepository, FakeWatchPartyRepository, Store, use_fake_repositories


@pytest.fixture
def workflow(
    monkeypatch: pytest.MonkeyPatch,
    session_factory: Any,
    notifier: ChangeNotifier,
) -> TournamentWorkflow:
    use_fake_repositories(monkeypatch, tournament_workflow)
    return TournamentWorkflow(session_factory, notifier)


def _form(name: str, *, game: str = "Rocket League", day: int = 1) -> TournamentForm:
    return TournamentForm(name=name, game_title=game, event_date=date(2030, 3, day), genre="Sports")


async def _party(store: Store, owner: Principal, tournament_id: int) -> int:
    party = await party_uc.create_watch_party(
        FakeTournamentRepository(store),
        FakeWatchPartyRepository(store),
        FakeAttendanceLedger(store),
        principal=owner,
        tournament_id=tournament_id,
        party_at=datetime(2030, 3, 1, 18, 0),
        location="Lab A",
        max_attendees=10,
    )
    return party.id


@pytest.mark.asyncio
async def test_create_update_delete(
    workflow: TournamentWorkflow,
    store: Store,
    audit_calls: list[dict[str, Any]],
    events: list[ResourceChanged],
) -> None:
    alice, bob = store.add_user("alice"), store.add_user("bob")

    created = await workflow.create(alice, _form("Spring Cup"))
    duplicate = await workflow.create(bob, _form("Spring Cup", day=2))
    assert created.id is not None
    foreign = await workflow.update(bob, created.id, _form("Bob Cup"))
    renamed = await workflow.update(alice, created.id, _form("Summer Cup"))
    deleted = await workflow.delete(alice, created.id)

    assert created.success is True
    assert duplicate.code == ErrorCode.DUPLICATE_NAME
    assert foreign.code == ErrorCode.FORBIDDEN
    assert renamed.success and deleted.success
    assert store.tournaments == {}
    assert [c["action"] for c in audit_calls] == ["tournament.created", "tournament.updated", "tournament.deleted"]
    assert all(c["resource_type"] == "tournament" for c in audit_calls)
    assert [e.collection for e in events[:2]] == ["tournaments", "watch_parties"]


@pytest.mark.asyncio
async def test_register_and_unregister(workflow: TournamentWorkflow, store: Store) -> None:
    alice, bob = store.add_user("alice"), store.add_user("bob")
    created = await workflow.create(alice, _form("Spring Cup"))
    assert created.id is not None

    no_party = await workflow.register(bob, created.id)
    party_id = await _party(store, alice, created.id)
    registered = await workflow.register(bob, created.id)
    again = await workflow.register(bob, created.id)
    owner_out = await workflow.unregister(alice, created.id)
    unregistered = await workflow.unregister(bob, created.id)
    not_registered = await workflow.unregister(bob, created.id)

    assert no_party.code == ErrorCode.NOT_FOUND
    assert no_party.error == NO_WATCH_PARTY
    assert registered.success is True
    assert again.code == ErrorCode.ALREADY_LINKED
    assert owner_out.code == ErrorCode.OWNER_CANNOT_LEAVE
    assert unregistered.success is True
    assert not_registered.code == ErrorCode.NOT_LINKED
    assert store.attendees_of(party_id) == {"alice"}


@pytest.mark.asyncio
async def test_views(workflow: TournamentWorkflow, store: Store) -> None:
    alice, bob = store.add_user("alice"), store.add_user("bob")
    cup = await workflow.create(alice, _form("Spring Cup", day=1))
    league = await workflow.create(alice, _form("Valorant League", game="Valorant", day=2))
    assert cup.id is not None and league.id is not None
    await _party(store, alice, cup.id)
    await workflow.register(bob, cup.id)

    mine = await workflow.list_mine(bob)
    available = await workflow.list_available(bob)
    alice_available = await workflow.list_available(alice, "valorant")
    options = await workflow.list_options(bob)

    assert [(v.name, v.is_owner) for v in mine] == [("Spring Cup", False)]
    assert mine[0].registered_at is not None
    assert [(v.name, v.watch_party_count) for v in available] == [("Valorant League", 0)]
    assert [(v.name, v.is_owner) for v in alice_available] == [("Valorant League", True)]
    assert [o.name for o in options] == ["Spring Cup", "Valorant League"]
