"""
Tests for surplus reports.
"""

from decimal import Decimal

import pytest

from crossdock import distribution
from crossdock.exceptions import Conflict, NotFound, ValidationFailed
from crossdock.models import (
    AuditEvent,
    AuditEventType,
    Container,
    ContainerKind,
    ContainerStatus,
    DemandLine,
    InventoryLine,
    Pallet,
    PalletStatus,
)
from crossdock.services.reversal import Reversal


pytestmark = pytest.mark.django_db


def _available(pallet, sku='A1'):
    return InventoryLine.objects.get(pallet=pallet, sku=sku).qty_available


class TestReportSurplus:
    """Tests for distribution.report_surplus()."""

    def test_creates_closed_surplus_container(self, locked_pallet, manifest, user):
        container = distribution.report_surplus('P1', manifest, [('A1', Decimal('7'))], user)

        assert container.kind == ContainerKind.SURPLUS
        assert container.is_surplus
        assert container.status == ContainerStatus.CLOSED
        assert container.destination == 'SOBRANTE'
        assert container.code.startswith('SOB')
        line = container.lines.get()
        assert line.qty == Decimal('7')
        assert line.demand_line is None
        assert _available(locked_pallet) == Decimal('93')

    def test_demand_untouched(self, locked_pallet, manifest, line_s1, user):
        distribution.report_surplus(locked_pallet, manifest, [{'sku': 'A1', 'qty': '7'}], user)

        assert DemandLine.objects.get(pk=line_s1.pk).qty_confirmed == Decimal('0')

    def test_records_adjust_events(self, locked_pallet, manifest, second_sku, user):
        container = distribution.report_surplus(
            'P1', manifest, [('A1', 5), ('B1', 2)], user,
        )

        events = AuditEvent.objects.filter(event_type=AuditEventType.ADJUST)
        assert events.count() == 2
        assert {e.sku for e in events} == {'A1', 'B1'}
        assert all(e.destination == 'SOBRANTE' for e in events)
        assert all(container.code in e.note for e in events)

    def test_zero_entries_skipped(self, locked_pallet, manifest, second_sku, user):
        container = distribution.report_surplus(
            'P1', manifest, [('A1', 0), ('B1', 3)], user,
        )

        assert [l.sku for l in container.lines.all()] == ['B1']
        assert _available(locked_pallet) == Decimal('100')

    def test_clears_pallet(self, locked_pallet, manifest, user):
        distribution.report_surplus('P1', manifest, [('A1', 100)], user)

        assert Pallet.objects.get(pk=locked_pallet.pk).status == PalletStatus.DEPLETED

    def test_surplus_line_reversible(self, locked_pallet, manifest, user):
        container = distribution.report_surplus('P1', manifest, [('A1', 10)], user)

        Reversal.reverse(container.lines.get(), user)

        assert _available(locked_pallet) == Decimal('100')


class TestReportSurplusRejections:

    def test_nothing_to_report(self, locked_pallet, manifest, user):
        with pytest.raises(ValidationFailed) as exc:
            distribution.report_surplus('P1', manifest, [('A1', 0)], user)

        assert exc.value.code == 'NOTHING_TO_REPORT'
        assert Container.objects.count() == 0

    def test_over_available_entries_skipped(self, locked_pallet, manifest, second_sku, user, caplog):
        with caplog.at_level('WARNING', logger='crossdock'):
            container = distribution.report_surplus(
                'P1', manifest, [('A1', 5), ('B1', 11)], user,
            )

        assert [l.sku for l in container.lines.all()] == ['A1']
        assert _available(locked_pallet) == Decimal('95')
        assert _available(locked_pallet, 'B1') == Decimal('10')
        assert AuditEvent.objects.filter(event_type=AuditEventType.ADJUST).count() == 1
        assert any(r.getMessage() == 'crossdock.surplus.skipped' and r.sku == 'B1' for r in caplog.records)

    def test_all_over_available(self, locked_pallet, manifest, second_sku, user):
        with pytest.raises(ValidationFailed) as exc:
            distribution.report_surplus('P1', manifest, [('A1', 101), ('B1', 11)], user)

        assert exc.value.code == 'NOTHING_TO_REPORT'
        assert exc.value.data['skipped'] == ['A1', 'B1']
        assert _available(locked_pallet) == Decimal('100')
        assert Container.objects.count() == 0
        assert not AuditEvent.objects.filter(event_type=AuditEventType.ADJUST).exists()

    @pytest.mark.parametrize('qty', ['muchos', '0.0005'])
    def test_malformed_quantity(self, locked_pallet, manifest, user, qty):
        with pytest.raises(ValidationFailed) as exc:
            distribution.report_surplus('P1', manifest, [('A1', qty)], user)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert _available(locked_pallet) == Decimal('100')
        assert Container.objects.count() == 0

    def test_unknown_sku(self, locked_pallet, manifest, user):
        with pytest.raises(NotFound) as exc:
            distribution.report_surplus('P1', manifest, [('ZZ', 1)], user)

        assert exc.value.code == 'INVENTORY_NOT_FOUND'

    def test_requires_lock(self, pallet, manifest, user):
        with pytest.raises(Conflict) as exc:
            distribution.report_surplus('P1', manifest, [('A1', 1)], user)

        assert exc.value.code == 'PALLET_NOT_LOCKED'
