"""
Distribution Service — The single public interface for operator actions.

Usage:
    from crossdock import distribution, CrossdockError

    snapshot = distribution.scan_pallet('PAL-001', user)
    session = distribution.scan_sku('PAL-001', '7790001', user)
    result = distribution.confirm(session, Decimal('40'))
    if result.advance.outcome == ScanOutcome.NEXT_SKU:
        ...
"""

from dataclasses import dataclass
from decimal import Decimal

from crossdock.exceptions import NotFound
from crossdock.models.container import Container, ContainerLine
from crossdock.models.demand import DemandLine
from crossdock.models.pallet import Pallet
from crossdock.services.allocation import (
    Advance,
    AllocationEngine,
    PalletSnapshot,
    ScanSession,
    SkuProgress,
)
from crossdock.services.confirmation import Confirmation
from crossdock.services.containers import ClosedContainer, ContainerRegistry
from crossdock.services.locks import PalletLocks
from crossdock.services.reversal import Reversal
from crossdock.services.surplus import Surplus


@dataclass(frozen=True)
class Confirmed:
    """A confirmation and where the session went next."""

    container_line: ContainerLine
    advance: Advance


class Distribution:
    """
    Single interface for crossdock operations.

    Parameter convention: (what, ..., user)
    Follows the operator flow: take pallet, scan SKU, confirm, close.

    IMPORTANT: State-changing methods delegate to services that run
    in atomic transactions. See each service's docstring.
    """

    # ══════════════════════════════════════════════════════════════
    # PALLET
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def scan_pallet(cls, pallet_code: str, user, raw_code: str = '') -> PalletSnapshot:
        """Take the pallet and return what is left to distribute on it."""
        pallet = PalletLocks.acquire(pallet_code, user, raw_code=raw_code)
        return AllocationEngine.snapshot(pallet)

    @classmethod
    def unlock(cls, pallet_code: str, user, force: bool = False) -> Pallet:
        return PalletLocks.release(pallet_code, user, force=force)

    # ══════════════════════════════════════════════════════════════
    # ALLOCATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def scan_sku(cls, pallet, raw_code: str, user) -> ScanSession:
        """Start distributing a SKU (AUTO mode)."""
        return AllocationEngine.start(cls._pallet(pallet), raw_code, user)

    @classmethod
    def select_destination(cls, session: ScanSession, destination: str) -> DemandLine:
        return AllocationEngine.select_manual(session, destination)

    @classmethod
    def auto_mode(cls, session: ScanSession) -> DemandLine:
        return AllocationEngine.auto_mode(session)

    @classmethod
    def progress(cls, pallet, sku: str) -> SkuProgress:
        return AllocationEngine.progress(cls._pallet(pallet), sku)

    # ══════════════════════════════════════════════════════════════
    # TRANSACTIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def confirm(cls, session: ScanSession, qty: Decimal) -> Confirmed:
        """
        Confirm qty for the session's active line, then advance the session.

        Raises:
            NotFound('NO_DEMAND'): Session has no active line
            (plus everything Confirmation.confirm raises)
        """
        if not session.is_active:
            raise NotFound('NO_DEMAND', pallet=session.pallet.code, sku=session.sku)

        container_line = Confirmation.confirm(
            session.pallet, session.sku, session.line, qty, session.user,
        )
        advance = AllocationEngine.advance(session, container_line.demand_line)
        return Confirmed(container_line=container_line, advance=advance)

    @classmethod
    def reverse(cls, container_line, user) -> ContainerLine:
        return Reversal.reverse(container_line, user)

    @classmethod
    def report_surplus(cls, pallet, manifest, entries, user) -> Container:
        return Surplus.report(cls._pallet(pallet), manifest, entries, user)

    # ══════════════════════════════════════════════════════════════
    # CONTAINERS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def close_container(cls, container, user) -> ClosedContainer:
        return ContainerRegistry.close(container, user)

    @classmethod
    def close_destination(cls, manifest, destination: str, user) -> ClosedContainer:
        return ContainerRegistry.close_for_destination(manifest, destination, user)

    @classmethod
    def open_containers(cls, manifest):
        return ContainerRegistry.open_for_manifest(manifest)

    # ══════════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _pallet(cls, pallet) -> Pallet:
        """Accept a Pallet or its code."""
        if isinstance(pallet, Pallet):
            return pallet
        try:
            return Pallet.objects.get(code=pallet)
        except Pallet.DoesNotExist:
            raise NotFound('PALLET_NOT_FOUND', pallet=pallet) from None
