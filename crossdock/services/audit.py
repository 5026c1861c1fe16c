"""
Audit log — append-only record of operator actions.

Every state-changing operation calls record() inside its own transaction,
so an event exists if and only if the action it describes was committed.
"""

import logging
from decimal import Decimal

from crossdock.exceptions import Unauthenticated
from crossdock.models.audit import AuditEvent
from crossdock.models.enums import AuditEventType

logger = logging.getLogger('crossdock')


def require_user(user):
    """Return the acting user, or raise Unauthenticated."""
    if user is None or not getattr(user, 'is_authenticated', False):
        raise Unauthenticated('UNAUTHENTICATED')
    return user


class AuditLog:
    """Write and read audit events."""

    @classmethod
    def record(cls, event_type: AuditEventType, user, pallet=None, sku: str = '',
               destination: str = '', qty: Decimal | None = None,
               raw_code: str = '', note: str = '') -> AuditEvent:
        event = AuditEvent.objects.create(
            event_type=event_type,
            user=user,
            pallet=pallet,
            sku=sku,
            destination=destination,
            qty=qty,
            raw_code=raw_code,
            note=note,
        )
        logger.debug(
            "crossdock.audit",
            extra={
                "event": event_type,
                "pallet": str(pallet) if pallet else None,
                "sku": sku,
                "destination": destination,
                "qty": str(qty) if qty is not None else None,
            },
        )
        return event

    @classmethod
    def for_pallet(cls, pallet, event_type: AuditEventType | None = None):
        """Events of a pallet, oldest first."""
        qs = AuditEvent.objects.filter(pallet=pallet)
        if event_type is not None:
            qs = qs.filter(event_type=event_type)
        return qs

    @classmethod
    def recent(cls, limit: int = 50):
        """Latest events, newest first (activity feeds)."""
        return AuditEvent.objects.select_related('pallet', 'user').order_by('-timestamp', '-pk')[:limit]
