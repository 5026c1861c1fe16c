"""
Surplus — close out what is left on a pallet once its demand is served.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from crossdock.conf import crossdock_settings
from crossdock.exceptions import NotFound, ValidationFailed
from crossdock.models.container import Container, ContainerLine
from crossdock.models.enums import AuditEventType
from crossdock.models.pallet import InventoryLine, Pallet
from crossdock.services.audit import AuditLog, require_user
from crossdock.services.containers import ContainerRegistry
from crossdock.services.locks import PalletLocks
from crossdock.services.progress import sync_pallet_status
from crossdock.services.quantities import to_quantity

logger = logging.getLogger('crossdock')


def _normalize(entries) -> list[tuple[str, Decimal]]:
    """Accept (sku, qty) pairs or {'sku': ..., 'qty': ...} mappings."""
    normalized = []
    for entry in entries:
        if isinstance(entry, dict):
            sku, qty = entry['sku'], entry['qty']
        else:
            sku, qty = entry
        normalized.append((sku, to_quantity(qty)))
    return normalized


class Surplus:
    """Report surplus stock."""

    @classmethod
    def report(cls, pallet: Pallet, manifest, entries, user) -> Container:
        """
        Move leftover units into a new CLOSED surplus container.

        Only entries with 0 < qty <= available are moved; the rest are
        skipped and logged. Demand lines are not touched.

        Returns:
            The surplus Container

        Raises:
            Unauthenticated('UNAUTHENTICATED')
            Conflict('PALLET_LOCKED' | 'PALLET_NOT_LOCKED')
            NotFound('INVENTORY_NOT_FOUND'): SKU not on this pallet
            ValidationFailed('NOTHING_TO_REPORT'): No entry could be moved
            ValidationFailed('INVALID_QUANTITY'): Not a number or too precise
            Conflict('CODE_EXHAUSTED')

        Concurrency:
            - Runs under transaction.atomic()
            - select_for_update() on pallet and each inventory row
        """
        user = require_user(user)
        normalized = _normalize(entries)
        destination = crossdock_settings.SURPLUS_DESTINATION

        with transaction.atomic():
            locked_pallet = Pallet.objects.select_for_update().get(pk=pallet.pk)
            PalletLocks.ensure_holder(locked_pallet, user)

            container = None
            total = Decimal('0')
            skipped = []

            for sku, qty in normalized:
                if qty <= 0:
                    continue

                inventory = (
                    InventoryLine.objects.select_for_update()
                    .filter(pallet=locked_pallet, sku=sku)
                    .first()
                )
                if inventory is None:
                    raise NotFound('INVENTORY_NOT_FOUND', pallet=locked_pallet.code, sku=sku)

                if qty > inventory.qty_available:
                    logger.warning(
                        "crossdock.surplus.skipped",
                        extra={"pallet": locked_pallet.code, "sku": sku,
                               "requested": str(qty), "available": str(inventory.qty_available)},
                    )
                    skipped.append(sku)
                    continue

                if container is None:
                    container = ContainerRegistry.create_surplus(manifest, user)

                ContainerLine.objects.create(
                    container=container,
                    pallet=locked_pallet,
                    sku=sku,
                    qty=qty,
                    demand_line=None,
                )
                InventoryLine.objects.filter(pk=inventory.pk).update(
                    qty_available=F('qty_available') - qty,
                    updated_at=timezone.now(),
                )
                AuditLog.record(
                    AuditEventType.ADJUST,
                    user,
                    pallet=locked_pallet,
                    sku=sku,
                    destination=destination,
                    qty=qty,
                    note=f"Sobrante reportado en contenedor {container.code}",
                )
                total += qty

            if container is None:
                raise ValidationFailed('NOTHING_TO_REPORT', pallet=locked_pallet.code, skipped=skipped)

            sync_pallet_status(locked_pallet)

        logger.info(
            "crossdock.surplus",
            extra={"pallet": locked_pallet.code, "container": container.code, "qty": str(total)},
        )
        return container
