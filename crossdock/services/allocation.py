"""
Allocation engine — which destination receives the scanned SKU next.

A scan session (one operator, one pallet, one SKU at a time) exposes a
single active demand line. In AUTO mode it is the first open line by
destination ascending; in MANUAL mode it is the line the operator picked,
kept until it completes or the operator goes back to AUTO.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from crossdock.exceptions import NotFound, ValidationFailed
from crossdock.models.demand import DemandLine
from crossdock.models.enums import AllocationMode, AuditEventType, ScanOutcome
from crossdock.models.pallet import InventoryLine, Pallet
from crossdock.services.audit import AuditLog, require_user
from crossdock.services.locks import PalletLocks

logger = logging.getLogger('crossdock')


@dataclass
class ScanSession:
    """Working state of one operator distributing one SKU of one pallet."""

    pallet: Pallet
    user: Any
    sku: str = ''
    line: DemandLine | None = None
    mode: AllocationMode = AllocationMode.AUTO
    destination: str = ''

    @property
    def is_active(self) -> bool:
        return bool(self.sku) and self.line is not None


@dataclass(frozen=True)
class Advance:
    """What happened to the session after a confirmation."""

    outcome: ScanOutcome
    line: DemandLine | None
    previous_destination: str = ''
    destination_changed: bool = False


@dataclass(frozen=True)
class DestinationProgress:
    destination: str
    truck: str
    qty_to_send: Decimal
    qty_confirmed: Decimal
    pending: Decimal
    status: str
    line_id: int


@dataclass(frozen=True)
class SkuProgress:
    """Totals of one SKU on one pallet, and the per-destination breakdown."""

    sku: str
    total: Decimal
    confirmed: Decimal
    destinations: list[DestinationProgress] = field(default_factory=list)

    @property
    def percentage(self) -> int:
        if not self.total:
            return 0
        return round(self.confirmed * 100 / self.total)


@dataclass(frozen=True)
class PalletSnapshot:
    """What the operator sees right after taking a pallet."""

    pallet: Pallet
    inventory: list[InventoryLine]
    pending_lines: list[DemandLine]


class AllocationEngine:
    """Target selection for scan sessions."""

    @classmethod
    def snapshot(cls, pallet: Pallet) -> PalletSnapshot:
        """Inventory still available and demand still open for a pallet."""
        return PalletSnapshot(
            pallet=pallet,
            inventory=list(pallet.inventory.filter(qty_available__gt=0).order_by('sku')),
            pending_lines=list(
                DemandLine.objects.open()
                .filter(pallet_code=pallet.code)
                .order_by('sku', 'destination', 'pk')
            ),
        )

    @classmethod
    def resolve_scan(cls, pallet: Pallet, raw_code: str) -> str:
        """
        Turn a scanned code into a SKU of this pallet.

        Exact SKU match first, then barcode lookup among this pallet's
        demand lines.

        Raises:
            NotFound('SKU_NOT_FOUND'): Neither matches
            NotFound('SKU_DEPLETED'): SKU has nothing left on the pallet
        """
        code = (raw_code or '').strip()
        inventory = InventoryLine.objects.filter(pallet=pallet, sku=code).first()

        if inventory is None and code:
            sku = (
                DemandLine.objects.filter(pallet_code=pallet.code, barcode=code)
                .values_list('sku', flat=True)
                .first()
            )
            if sku:
                inventory = InventoryLine.objects.filter(pallet=pallet, sku=sku).first()

        if inventory is None:
            raise NotFound('SKU_NOT_FOUND', pallet=pallet.code, raw_code=code)

        if inventory.qty_available <= 0:
            raise NotFound('SKU_DEPLETED', pallet=pallet.code, sku=inventory.sku)

        return inventory.sku

    @classmethod
    def candidate_lines(cls, pallet: Pallet, sku: str) -> list[DemandLine]:
        """
        Open demand lines for (pallet, sku), destination ascending.

        Raises:
            NotFound('NO_DEMAND')
        """
        lines = cls._open_lines(pallet, sku)
        if not lines:
            raise NotFound('NO_DEMAND', pallet=pallet.code, sku=sku)
        return lines

    @classmethod
    def select_default(cls, candidates: list[DemandLine]) -> DemandLine:
        """
        First candidate with something pending.

        Raises:
            NotFound('NO_DEMAND')
        """
        line = cls._first_pending(candidates)
        if line is None:
            raise NotFound('NO_DEMAND')
        return line

    @classmethod
    def start(cls, pallet: Pallet, raw_code: str, user) -> ScanSession:
        """
        Open a session for a scanned SKU, in AUTO mode.

        Raises:
            Conflict('PALLET_LOCKED' | 'PALLET_NOT_LOCKED')
            NotFound('SKU_NOT_FOUND' | 'SKU_DEPLETED' | 'NO_DEMAND')
        """
        user = require_user(user)
        pallet = Pallet.objects.get(pk=pallet.pk)
        PalletLocks.ensure_holder(pallet, user)

        sku = cls.resolve_scan(pallet, raw_code)
        line = cls.select_default(cls.candidate_lines(pallet, sku))

        AuditLog.record(
            AuditEventType.SCAN_SKU,
            user,
            pallet=pallet,
            sku=sku,
            destination=line.destination,
            raw_code=raw_code,
        )
        logger.info(
            "crossdock.allocation.started",
            extra={"pallet": pallet.code, "sku": sku, "destination": line.destination},
        )
        return ScanSession(
            pallet=pallet,
            user=user,
            sku=sku,
            line=line,
            mode=AllocationMode.AUTO,
            destination=line.destination,
        )

    @classmethod
    def select_manual(cls, session: ScanSession, destination: str) -> DemandLine:
        """
        Make destination the active target (MANUAL mode).

        Raises:
            NotFound('LINE_NOT_FOUND'): SKU has no demand for destination
            ValidationFailed('LINE_COMPLETE'): Nothing pending there
        """
        lines = list(
            DemandLine.objects.for_pallet_sku(session.pallet.code, session.sku)
            .filter(destination=destination)
            .order_by('pk')
        )
        if not lines:
            raise NotFound(
                'LINE_NOT_FOUND',
                pallet=session.pallet.code,
                sku=session.sku,
                destination=destination,
            )

        line = cls._first_pending(lines)
        if line is None:
            raise ValidationFailed('LINE_COMPLETE', destination=destination, pending=Decimal('0'))

        previous = session.destination
        session.line = line
        session.mode = AllocationMode.MANUAL
        session.destination = line.destination

        logger.info(
            "crossdock.allocation.manual",
            extra={"pallet": session.pallet.code, "sku": session.sku,
                   "from": previous, "to": destination},
        )
        return line

    @classmethod
    def auto_mode(cls, session: ScanSession) -> DemandLine:
        """Back to AUTO: re-select the first pending destination."""
        line = cls.select_default(cls.candidate_lines(session.pallet, session.sku))
        session.mode = AllocationMode.AUTO
        session.line = line
        session.destination = line.destination
        return line

    @classmethod
    def advance(cls, session: ScanSession, line: DemandLine) -> Advance:
        """
        Move the session on after `line` received a confirmation.

        - MANUAL and still pending: keep the line.
        - Otherwise: back to AUTO and pick the first pending destination.
        - No destination left or SKU exhausted: NEXT_SKU.
        - Whole pallet exhausted: PALLET_COMPLETE.
        """
        line = DemandLine.objects.get(pk=line.pk)
        previous = session.destination

        if session.mode == AllocationMode.MANUAL and line.pending > 0:
            session.line = line
            return Advance(ScanOutcome.CONTINUE, line, previous_destination=previous)

        session.mode = AllocationMode.AUTO
        next_line = cls._first_pending(cls._open_lines(session.pallet, session.sku))

        if next_line is not None and cls._sku_available(session.pallet, session.sku) > 0:
            changed = bool(previous) and previous != next_line.destination
            if changed:
                logger.info(
                    "crossdock.allocation.destination_changed",
                    extra={"pallet": session.pallet.code, "sku": session.sku,
                           "from": previous, "to": next_line.destination},
                )
            session.line = next_line
            session.destination = next_line.destination
            return Advance(
                ScanOutcome.CONTINUE,
                next_line,
                previous_destination=previous,
                destination_changed=changed,
            )

        session.sku = ''
        session.line = None
        session.destination = ''

        pallet_left = InventoryLine.objects.filter(
            pallet=session.pallet, qty_available__gt=0,
        ).exists()
        outcome = ScanOutcome.NEXT_SKU if pallet_left else ScanOutcome.PALLET_COMPLETE
        logger.info(
            "crossdock.allocation.finished",
            extra={"pallet": session.pallet.code, "outcome": outcome},
        )
        return Advance(outcome, None, previous_destination=previous)

    @classmethod
    def progress(cls, pallet: Pallet, sku: str) -> SkuProgress:
        """All demand of a SKU on a pallet, done or not."""
        lines = list(
            DemandLine.objects.for_pallet_sku(pallet.code, sku).order_by('destination', 'pk')
        )
        return SkuProgress(
            sku=sku,
            total=sum((l.qty_to_send for l in lines), Decimal('0')),
            confirmed=sum((l.qty_confirmed for l in lines), Decimal('0')),
            destinations=[
                DestinationProgress(
                    destination=l.destination,
                    truck=l.truck,
                    qty_to_send=l.qty_to_send,
                    qty_confirmed=l.qty_confirmed,
                    pending=l.pending,
                    status=l.status,
                    line_id=l.pk,
                )
                for l in lines
            ],
        )

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _open_lines(cls, pallet: Pallet, sku: str) -> list[DemandLine]:
        return list(
            DemandLine.objects.open()
            .for_pallet_sku(pallet.code, sku)
            .order_by('destination', 'pk')
        )

    @classmethod
    def _first_pending(cls, lines) -> DemandLine | None:
        for line in lines:
            if line.pending > 0:
                return line
        return None

    @classmethod
    def _sku_available(cls, pallet: Pallet, sku: str) -> Decimal:
        value = (
            InventoryLine.objects.filter(pallet=pallet, sku=sku)
            .values_list('qty_available', flat=True)
            .first()
        )
        return value if value is not None else Decimal('0')
