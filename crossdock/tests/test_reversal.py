"""
Tests for reversals.
"""

from decimal import Decimal

import pytest
from django.db.models.query import QuerySet

from crossdock import distribution
from crossdock.exceptions import NotFound, ValidationFailed, WrongState
from crossdock.models import (
    AuditEvent,
    AuditEventType,
    Container,
    ContainerLine,
    ContainerStatus,
    DemandStatus,
    InventoryLine,
    Manifest,
    ManifestStatus,
    Pallet,
    PalletStatus,
)
from crossdock.services.confirmation import Confirmation
from crossdock.services.containers import ContainerRegistry
from crossdock.services.reversal import Reversal


pytestmark = pytest.mark.django_db


def _available(pallet, sku='A1'):
    return InventoryLine.objects.get(pallet=pallet, sku=sku).qty_available


class TestReverse:
    """Tests for Reversal.reverse()."""

    def test_round_trip(self, locked_pallet, line_s1, user):
        """Confirm then reverse restores inventory and demand."""
        container_line = Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('10'), user)

        deleted = Reversal.reverse(container_line, user)

        line_s1.refresh_from_db()
        assert deleted.pk is None
        assert _available(locked_pallet) == Decimal('100')
        assert line_s1.qty_confirmed == Decimal('0')
        assert line_s1.status == DemandStatus.PENDING
        assert ContainerLine.objects.count() == 0

    def test_container_survives(self, locked_pallet, line_s1, user):
        container_line = Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('10'), user)

        Reversal.reverse(container_line.pk, user)

        assert Container.objects.filter(pk=container_line.container_id).exists()

    def test_other_lines_untouched(self, locked_pallet, line_s1, user):
        first = Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('10'), user)
        second = Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('5'), user)

        Reversal.reverse(first, user)

        line_s1.refresh_from_db()
        assert list(ContainerLine.objects.all()) == [second]
        assert line_s1.qty_confirmed == Decimal('5')
        assert line_s1.status == DemandStatus.PARTIAL
        assert _available(locked_pallet) == Decimal('95')

    def test_leaving_done_clears_metadata(self, locked_pallet, line_s1, line_s2, user):
        container_line = Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('40'), user)
        line_s1.refresh_from_db()
        assert line_s1.done_by == user

        Reversal.reverse(container_line, user)

        line_s1.refresh_from_db()
        assert line_s1.status == DemandStatus.PENDING
        assert line_s1.done_by is None
        assert line_s1.done_at is None

    def test_manifest_and_pallet_reopen(self, locked_pallet, line_s1, line_s2, user):
        Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('40'), user)
        last = Confirmation.confirm(locked_pallet, 'A1', line_s2, Decimal('60'), user)
        assert Manifest.objects.get(pk=line_s1.manifest_id).status == ManifestStatus.DONE
        assert Pallet.objects.get(pk=locked_pallet.pk).status == PalletStatus.DEPLETED

        Reversal.reverse(last, user)

        manifest = Manifest.objects.get(pk=line_s1.manifest_id)
        assert manifest.status == ManifestStatus.IN_PROGRESS
        assert manifest.completed_lines == 1
        assert Pallet.objects.get(pk=locked_pallet.pk).status == PalletStatus.OPEN

    def test_closed_container_can_be_reversed(self, locked_pallet, line_s1, user):
        container_line = Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('10'), user)
        ContainerRegistry.close(container_line.container, user)

        distribution.reverse(container_line, user)

        assert _available(locked_pallet) == Decimal('100')

    def test_records_reverse_event(self, locked_pallet, line_s1, user):
        container_line = Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('10'), user)

        Reversal.reverse(container_line, user)

        event = AuditEvent.objects.get(event_type=AuditEventType.REVERSE)
        assert event.qty == Decimal('10')
        assert event.sku == 'A1'
        assert event.destination == 'S1'
        assert container_line.container.code in event.note
        # The original confirmation stays in the trail
        assert AuditEvent.objects.filter(event_type=AuditEventType.CONFIRM_QTY).count() == 1


class TestReverseRejections:

    def test_dispatched_container(self, locked_pallet, line_s1, user):
        container_line = Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('10'), user)
        container = container_line.container
        ContainerRegistry.close(container, user)
        ContainerRegistry.dispatch(container, user)

        with pytest.raises(WrongState) as exc:
            Reversal.reverse(container_line, user)

        assert exc.value.code == 'CONTAINER_DISPATCHED'
        line_s1.refresh_from_db()
        assert _available(locked_pallet) == Decimal('90')
        assert line_s1.qty_confirmed == Decimal('10')
        assert ContainerLine.objects.filter(pk=container_line.pk).exists()
        assert Container.objects.get(pk=container.pk).status == ContainerStatus.DISPATCHED

    def test_unknown_line(self, db, user):
        with pytest.raises(NotFound) as exc:
            Reversal.reverse(12345, user)

        assert exc.value.code == 'LINE_NOT_FOUND'

    def test_twice(self, locked_pallet, line_s1, user):
        container_line = Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('10'), user)
        pk = container_line.pk
        Reversal.reverse(container_line, user)

        with pytest.raises(NotFound):
            Reversal.reverse(pk, user)

    def test_would_exceed_initial(self, locked_pallet, line_s1, user):
        container_line = Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('10'), user)
        InventoryLine.objects.filter(pallet=locked_pallet).update(qty_available=Decimal('95'))

        with pytest.raises(ValidationFailed) as exc:
            Reversal.reverse(container_line, user)

        assert exc.value.code == 'EXCEEDS_INITIAL'
        assert _available(locked_pallet) == Decimal('95')


class TestLockOrder:
    """Confirm and reverse take row locks in the same order."""

    def _record_locks(self, monkeypatch):
        original = QuerySet.select_for_update
        locked = []

        def recording(qs, *args, **kwargs):
            locked.append(qs.model.__name__)
            return original(qs, *args, **kwargs)

        monkeypatch.setattr(QuerySet, 'select_for_update', recording)
        return locked

    def test_reverse_follows_confirm_order(self, locked_pallet, line_s1, user, monkeypatch):
        locked = self._record_locks(monkeypatch)
        container_line = Confirmation.confirm(locked_pallet, 'A1', line_s1, Decimal('10'), user)
        confirm_order = [name for name in dict.fromkeys(locked) if name != 'Manifest']

        locked.clear()
        Reversal.reverse(container_line, user)
        reverse_order = [name for name in dict.fromkeys(locked) if name != 'Manifest']

        assert confirm_order == ['Pallet', 'DemandLine', 'InventoryLine', 'Container']
        assert reverse_order == ['Pallet', 'DemandLine', 'InventoryLine', 'Container', 'ContainerLine']
