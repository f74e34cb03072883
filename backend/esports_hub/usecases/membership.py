from datetime import datetime
from typing import Optional

from ..domain.errors import AlreadyLinkedError, NotFoundError, NotLinkedError
from ..domain.repositories import MembershipLedger, WatchPartyRepository
from ..domain.services import SeatSnapshot, validate_attendance, validate_leave
from ..models import WatchParty


async def link(
    ledger: MembershipLedger,
    *,
    user_id: str,
    resource_id: int,
    already_message: Optional[str] = None,
) -> datetime:
    # The composite key still rejects a racing duplicate inside ledger.add.
    if await ledger.is_member(user_id, resource_id):
        raise AlreadyLinkedError(already_message)
    return await ledger.add(user_id, resource_id)


async def unlink(
    ledger: MembershipLedger,
    *,
    user_id: str,
    resource_id: int,
    owner_id: Optional[str],
    not_member_message: Optional[str] = None,
    owner_message: Optional[str] = None,
) -> None:
    is_member = await ledger.is_member(user_id, resource_id)
    validate_leave(
        is_member=is_member,
        is_owner=owner_id == user_id,
        not_member_message=not_member_message,
        owner_message=owner_message,
    )
    # A concurrent leave may have removed the row after the membership check.
    if not await ledger.remove(user_id, resource_id):
        raise NotLinkedError(not_member_message)


async def reserve_seat(
    party_repo: WatchPartyRepository,
    ledger: MembershipLedger,
    *,
    party_id: int,
    user_id: str,
    already_message: Optional[str] = None,
    full_message: Optional[str] = None,
) -> tuple[WatchParty, datetime]:
    """Take one seat in a watch party.

    The party row is locked first so concurrent joins for the same party
    are serialized by the store between the occupancy count and the insert.
    """
    party = await party_repo.get_for_update(party_id)
    if party is None:
        raise NotFoundError("Watch party not found")

    snapshot = SeatSnapshot(
        max_attendees=party.max_attendees,
        attendees=await ledger.count(party.id),
        already_attending=await ledger.is_member(user_id, party.id),
    )
    validate_attendance(snapshot, already_message=already_message, full_message=full_message)

    joined_at = await ledger.add(user_id, party.id)
    return party, joined_at


async def occupancy(ledger: MembershipLedger, *, resource_id: int) -> int:
    return await ledger.count(resource_id)
