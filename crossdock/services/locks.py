"""
Pallet locks — exclusive working claim of one operator on a pallet.

Acquire and release are single conditional UPDATEs: the WHERE clause carries
the "free or mine" check, so two operators scanning the same pallet at the
same instant cannot both win. The pallet is only read afterwards, to build
the error when the UPDATE touched nothing.
"""

import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from crossdock.exceptions import Conflict, NotFound, WrongState
from crossdock.models.enums import AuditEventType, PalletStatus
from crossdock.models.pallet import Pallet
from crossdock.services.audit import AuditLog, require_user

logger = logging.getLogger('crossdock')


def _pallet_code(pallet) -> str:
    return getattr(pallet, 'code', pallet)


class PalletLocks:
    """Lock lifecycle methods."""

    @classmethod
    def acquire(cls, pallet, user, raw_code: str = '') -> Pallet:
        """
        Take the pallet for user.

        Idempotent: re-acquiring a pallet you already hold refreshes locked_at.

        Raises:
            Unauthenticated('UNAUTHENTICATED')
            NotFound('PALLET_NOT_FOUND')
            WrongState('PALLET_BLOCKED')
            Conflict('PALLET_LOCKED'): Held by another user
        """
        user = require_user(user)
        code = _pallet_code(pallet)
        now = timezone.now()

        with transaction.atomic():
            updated = (
                Pallet.objects.filter(code=code)
                .lockable_by(user)
                .update(locked_by=user, locked_at=now, updated_at=now)
            )

            if not updated:
                current = Pallet.objects.filter(code=code).first()
                if current is None:
                    raise NotFound('PALLET_NOT_FOUND', pallet=code)
                if current.status == PalletStatus.BLOCKED:
                    raise WrongState('PALLET_BLOCKED', pallet=code)
                logger.warning(
                    "crossdock.pallet.lock_refused",
                    extra={"pallet": code, "user": user.pk, "holder": current.locked_by_id},
                )
                raise Conflict('PALLET_LOCKED', pallet=code, holder=current.locked_by_id)

            locked = Pallet.objects.get(code=code)
            AuditLog.record(
                AuditEventType.SCAN_PALLET,
                user,
                pallet=locked,
                raw_code=raw_code or code,
            )

        logger.info(
            "crossdock.pallet.locked",
            extra={"pallet": code, "user": user.pk},
        )
        return locked

    @classmethod
    def release(cls, pallet, user, force: bool = False) -> Pallet:
        """
        Release the pallet.

        The holder can always release. Anyone else needs force=True
        (administrative unlock). Releasing a free pallet is a no-op that
        is still recorded.

        Raises:
            Unauthenticated('UNAUTHENTICATED')
            NotFound('PALLET_NOT_FOUND')
            Conflict('PALLET_LOCKED'): Held by another user and not forced
        """
        user = require_user(user)
        code = _pallet_code(pallet)
        now = timezone.now()

        with transaction.atomic():
            qs = Pallet.objects.filter(code=code)
            if not force:
                qs = qs.filter(Q(locked_by__isnull=True) | Q(locked_by=user))
            updated = qs.update(locked_by=None, locked_at=None, updated_at=now)

            if not updated:
                current = Pallet.objects.filter(code=code).first()
                if current is None:
                    raise NotFound('PALLET_NOT_FOUND', pallet=code)
                raise Conflict('PALLET_LOCKED', pallet=code, holder=current.locked_by_id)

            released = Pallet.objects.get(code=code)
            AuditLog.record(
                AuditEventType.UNLOCK,
                user,
                pallet=released,
                note='Liberación forzada' if force else '',
            )

        logger.info(
            "crossdock.pallet.released",
            extra={"pallet": code, "user": user.pk, "forced": force},
        )
        return released

    @classmethod
    def ensure_holder(cls, pallet: Pallet, user) -> None:
        """
        Check that user holds pallet.

        Call with a row freshly read under select_for_update().

        Raises:
            Conflict('PALLET_LOCKED'): Held by another user
            Conflict('PALLET_NOT_LOCKED'): Held by nobody
        """
        if pallet.locked_by_id is None:
            raise Conflict('PALLET_NOT_LOCKED', pallet=pallet.code)
        if pallet.locked_by_id != user.pk:
            raise Conflict('PALLET_LOCKED', pallet=pallet.code, holder=pallet.locked_by_id)

    @classmethod
    def stale(cls, older_than: timedelta):
        """Pallets locked for longer than older_than."""
        return Pallet.objects.locked_before(timezone.now() - older_than)

    @classmethod
    def release_stale(cls, older_than: timedelta, user) -> int:
        """
        Force-release every pallet locked for longer than older_than.

        Locks never expire by themselves; this is an explicit supervisor
        action (see the release_pallet_locks management command).

        Returns:
            Number of pallets released
        """
        user = require_user(user)
        count = 0
        for code in cls.stale(older_than).values_list('code', flat=True):
            cls.release(code, user, force=True)
            count += 1

        if count:
            logger.info(
                "crossdock.pallet.stale_released",
                extra={"released": count, "user": user.pk},
            )
        return count
