"""
Container registry — open, close and dispatch shipping containers.

Container codes are prefix + zero-padded counter (22O00000001), derived from
the highest existing code with the same prefix. Computing "last + 1" and
inserting are two statements, so concurrent creators can collide; the
unique constraints on code and on the open container per destination turn
a collision into an IntegrityError, and the whole lookup-compute-insert
sequence is retried a bounded number of times.
"""

import logging
from dataclasses import dataclass

from django.db import IntegrityError, transaction
from django.db.models import BigIntegerField
from django.db.models.functions import Cast, Substr
from django.utils import timezone

from crossdock.conf import crossdock_settings
from crossdock.exceptions import Conflict, NotFound, ValidationFailed, WrongState
from crossdock.models.container import Container
from crossdock.models.enums import AuditEventType, ContainerKind, ContainerStatus
from crossdock.services.audit import AuditLog, require_user

logger = logging.getLogger('crossdock')


@dataclass(frozen=True)
class ClosedContainer:
    """Result of closing a container."""

    code: str
    line_count: int


def _pk(obj):
    return getattr(obj, 'pk', obj)


class ContainerRegistry:
    """Container lifecycle methods."""

    @classmethod
    def get_or_create_open(cls, manifest, destination: str, user) -> Container:
        """
        Return the OPEN container of (manifest, destination), creating it if needed.

        Safe to call concurrently: every caller ends up with the same row.

        Raises:
            Unauthenticated('UNAUTHENTICATED')
            Conflict('CODE_EXHAUSTED'): Every attempt collided
        """
        user = require_user(user)

        def lookup():
            return Container.objects.open_for(manifest, destination).first()

        return cls._insert_with_retry(
            crossdock_settings.CONTAINER_CODE_PREFIX,
            lookup=lookup,
            manifest_id=_pk(manifest),
            destination=destination,
            status=ContainerStatus.OPEN,
            kind=ContainerKind.NORMAL,
            created_by=user,
        )

    @classmethod
    def create_surplus(cls, manifest, user) -> Container:
        """
        Create a CLOSED surplus container.

        Surplus containers never go through get_or_create_open: each report
        gets its own container, with the surplus destination sentinel.
        """
        user = require_user(user)
        return cls._insert_with_retry(
            crossdock_settings.SURPLUS_CODE_PREFIX,
            lookup=None,
            manifest_id=_pk(manifest),
            destination=crossdock_settings.SURPLUS_DESTINATION,
            status=ContainerStatus.CLOSED,
            kind=ContainerKind.SURPLUS,
            created_by=user,
            closed_at=timezone.now(),
        )

    @classmethod
    def is_editable(cls, container) -> bool:
        """True iff the container is OPEN (read from the database)."""
        return Container.objects.filter(pk=_pk(container), status=ContainerStatus.OPEN).exists()

    @classmethod
    def open_for_manifest(cls, manifest):
        """OPEN regular containers of a manifest, newest first."""
        return Container.objects.open().filter(
            manifest=manifest,
            kind=ContainerKind.NORMAL,
        ).order_by('-created_at')

    @classmethod
    def close(cls, container, user) -> ClosedContainer:
        """
        Close an OPEN container.

        Transition: OPEN -> CLOSED

        Raises:
            NotFound('CONTAINER_NOT_FOUND')
            WrongState('CONTAINER_NOT_OPEN')
            ValidationFailed('CONTAINER_EMPTY'): No lines to ship
        """
        user = require_user(user)

        with transaction.atomic():
            try:
                locked = Container.objects.select_for_update().get(pk=_pk(container))
            except Container.DoesNotExist:
                raise NotFound('CONTAINER_NOT_FOUND', container=_pk(container)) from None

            if locked.status != ContainerStatus.OPEN:
                raise WrongState(
                    'CONTAINER_NOT_OPEN',
                    container=locked.code,
                    current=locked.status,
                )

            line_count = locked.lines.count()
            if not line_count:
                raise ValidationFailed('CONTAINER_EMPTY', container=locked.code)

            locked.status = ContainerStatus.CLOSED
            locked.closed_at = timezone.now()
            locked.save(update_fields=['status', 'closed_at'])

            AuditLog.record(
                AuditEventType.CLOSE,
                user,
                destination=locked.destination,
                note=f"Contenedor {locked.code} cerrado con {line_count} líneas",
            )

        logger.info(
            "crossdock.container.closed",
            extra={"container": locked.code, "lines": line_count, "user": user.pk},
        )
        return ClosedContainer(code=locked.code, line_count=line_count)

    @classmethod
    def close_for_destination(cls, manifest, destination: str, user) -> ClosedContainer:
        """
        Close the OPEN container of a destination.

        Raises:
            NotFound('CONTAINER_NOT_FOUND'): Destination has no open container
            (plus everything close() raises)
        """
        container = Container.objects.open_for(manifest, destination).first()
        if container is None:
            raise NotFound('CONTAINER_NOT_FOUND', manifest=_pk(manifest), destination=destination)
        return cls.close(container, user)

    @classmethod
    def dispatch(cls, container, user) -> Container:
        """
        Mark a CLOSED container as shipped. Called by the dispatch process.

        Transition: CLOSED -> DISPATCHED (terminal, lines can no longer be reversed)
        """
        user = require_user(user)

        with transaction.atomic():
            try:
                locked = Container.objects.select_for_update().get(pk=_pk(container))
            except Container.DoesNotExist:
                raise NotFound('CONTAINER_NOT_FOUND', container=_pk(container)) from None

            if locked.status != ContainerStatus.CLOSED:
                raise WrongState(
                    'CONTAINER_NOT_CLOSED',
                    container=locked.code,
                    current=locked.status,
                )

            locked.status = ContainerStatus.DISPATCHED
            locked.dispatched_at = timezone.now()
            locked.save(update_fields=['status', 'dispatched_at'])

        logger.info(
            "crossdock.container.dispatched",
            extra={"container": locked.code, "user": user.pk},
        )
        return locked

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _next_code(cls, prefix: str) -> str:
        """
        Highest existing code with prefix, plus one.

        Compared as numbers, so codes of different widths (rows written
        before CODE_DIGITS changed) still order correctly.

        Raises:
            Conflict('CODE_OVERFLOW'): Next number does not fit in CODE_DIGITS
        """
        digits = crossdock_settings.CODE_DIGITS
        last = (
            Container.objects.with_prefix(prefix)
            .annotate(number=Cast(Substr('code', len(prefix) + 1), BigIntegerField()))
            .order_by('-number')
            .values_list('number', flat=True)
            .first()
        )
        number = (last or 0) + 1
        if number >= 10 ** digits:
            raise Conflict('CODE_OVERFLOW', prefix=prefix, digits=digits)
        return f"{prefix}{number:0{digits}d}"

    @classmethod
    def _insert_with_retry(cls, prefix: str, lookup=None, **fields) -> Container:
        """
        Lookup, compute the next code and insert, up to CODE_MAX_ATTEMPTS times.

        Each insert runs in its own savepoint so a collision does not break
        the caller's transaction.
        """
        attempts = crossdock_settings.CODE_MAX_ATTEMPTS

        for attempt in range(1, attempts + 1):
            if lookup is not None:
                existing = lookup()
                if existing is not None:
                    return existing

            code = cls._next_code(prefix)
            try:
                with transaction.atomic():
                    container = Container.objects.create(code=code, **fields)
            except IntegrityError:
                logger.warning(
                    "crossdock.container.code_collision",
                    extra={"code": code, "attempt": attempt},
                )
                continue

            logger.info(
                "crossdock.container.created",
                extra={
                    "container": container.code,
                    "destination": container.destination,
                    "kind": container.kind,
                },
            )
            return container

        raise Conflict('CODE_EXHAUSTED', prefix=prefix, attempts=attempts)
