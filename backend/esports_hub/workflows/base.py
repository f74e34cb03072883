from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, ClassVar, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import DomainError, UnauthenticatedError
from ..domain.events import ChangeNotifier, ResourceChanged
from ..domain.principal import Principal, resolve_principal
from ..utils.audit_log import AuditAction, AuditLogError, ResourceType, emit_audit_log
from .outcome import Outcome

logger = logging.getLogger(__name__)

T = TypeVar("T")

SessionFactory = Callable[[], Any]
Mutation = Callable[[AsyncSession, Principal], Awaitable[Optional[int]]]
Query = Callable[[AsyncSession, Principal], Awaitable[T]]


class Workflow:
    """Runs one use case per transaction and reports the result as an `Outcome`.

    Domain errors roll the transaction back and come back as failed outcomes.
    Store errors are logged and reported with a generic message. Only a missing
    principal escapes, as `UnauthenticatedError`.
    """

    resource_type: ClassVar[ResourceType]
    collections: ClassVar[tuple[str, ...]]

    def __init__(self, session_factory: SessionFactory, notifier: ChangeNotifier) -> None:
        self.session_factory = session_factory
        self.notifier = notifier

    async def _mutate(
        self,
        principal: Optional[Principal],
        *,
        action: AuditAction,
        verb: str,
        operation: Mutation,
        return_id: bool = False,
    ) -> Outcome:
        who = resolve_principal(principal, action=verb)
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    resource_id = await operation(session, who)
                    # Inside the transaction: no commit without its audit line.
                    emit_audit_log(
                        action=action,
                        principal_id=who.id,
                        resource_type=self.resource_type,
                        resource_id=resource_id,
                    )
        except UnauthenticatedError:
            raise
        except DomainError as exc:
            logger.info("%s rejected for %s: %s", action, who.id, exc.message)
            return Outcome.fail(exc)
        except (SQLAlchemyError, AuditLogError):
            logger.exception("Error trying to %s", verb)
            return Outcome.failed(f"Failed to {verb}")

        for collection in self.collections:
            await self.notifier.publish(
                ResourceChanged(
                    collection=collection,
                    action=action,
                    resource_id=resource_id,
                    principal_id=who.id,
                )
            )
        return Outcome.ok(resource_id if return_id else None)

    async def _query(
        self,
        principal: Optional[Principal],
        *,
        verb: str,
        operation: Query[list[T]],
    ) -> list[T]:
        who = resolve_principal(principal, action=verb)
        try:
            async with self.session_factory() as session:
                return await operation(session, who)
        except SQLAlchemyError:
            logger.exception("Error trying to %s", verb)
            return []
