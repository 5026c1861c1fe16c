"""
Confirmation — move units from a pallet into a destination's container.

The whole operation (inventory decrement, demand progress, container line,
audit event) is one transaction: either all of it is visible or none of it.
"""

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from crossdock.exceptions import Conflict, NotFound, ValidationFailed
from crossdock.models.container import Container, ContainerLine
from crossdock.models.demand import DemandLine
from crossdock.models.enums import AuditEventType, DemandStatus
from crossdock.models.pallet import InventoryLine, Pallet
from crossdock.services.audit import AuditLog, require_user
from crossdock.services.containers import ContainerRegistry
from crossdock.services.locks import PalletLocks
from crossdock.services.progress import sync_manifest, sync_pallet_status
from crossdock.services.quantities import to_quantity

logger = logging.getLogger('crossdock')


class Confirmation:
    """Confirm quantities against demand lines."""

    @classmethod
    def confirm(cls, pallet: Pallet, sku: str, line: DemandLine, qty, user) -> ContainerLine:
        """
        Send qty units of sku from pallet to line's destination.

        1. Validates qty against the line's pending quantity
        2. Validates qty against the pallet's available quantity
        3. Gets (or creates) the destination's OPEN container
        4. Decrements inventory, advances the line, appends a container line
           and records CONFIRM_QTY

        Returns:
            The created ContainerLine

        Raises:
            Unauthenticated('UNAUTHENTICATED')
            ValidationFailed('INVALID_QUANTITY'): qty <= 0, not a number or too precise
            ValidationFailed('LINE_MISMATCH'): Line is not for this pallet/SKU
            ValidationFailed('EXCEEDS_PENDING')
            ValidationFailed('EXCEEDS_AVAILABLE')
            NotFound('LINE_NOT_FOUND' | 'INVENTORY_NOT_FOUND')
            Conflict('PALLET_LOCKED' | 'PALLET_NOT_LOCKED'): User does not hold the pallet
            Conflict('CONTAINER_NOT_EDITABLE')
            Conflict('CODE_EXHAUSTED')

        Concurrency:
            - Runs under transaction.atomic()
            - select_for_update() on pallet, demand line, inventory and container
            - Validations use the locked rows, not the caller's copies
        """
        user = require_user(user)
        qty = to_quantity(qty)

        if qty <= 0:
            raise ValidationFailed('INVALID_QUANTITY', requested=qty)

        with transaction.atomic():
            locked_pallet = Pallet.objects.select_for_update().get(pk=pallet.pk)
            PalletLocks.ensure_holder(locked_pallet, user)

            try:
                demand = DemandLine.objects.select_for_update().get(pk=line.pk)
            except DemandLine.DoesNotExist:
                raise NotFound('LINE_NOT_FOUND', line=line.pk) from None

            if demand.pallet_code != locked_pallet.code or demand.sku != sku:
                raise ValidationFailed(
                    'LINE_MISMATCH',
                    pallet=locked_pallet.code,
                    sku=sku,
                    line=demand.pk,
                )

            pending = demand.pending
            if qty > pending:
                raise ValidationFailed('EXCEEDS_PENDING', pending=pending, requested=qty)

            inventory = (
                InventoryLine.objects.select_for_update()
                .filter(pallet=locked_pallet, sku=sku)
                .first()
            )
            if inventory is None:
                raise NotFound('INVENTORY_NOT_FOUND', pallet=locked_pallet.code, sku=sku)

            if qty > inventory.qty_available:
                raise ValidationFailed(
                    'EXCEEDS_AVAILABLE',
                    available=inventory.qty_available,
                    requested=qty,
                )

            container = ContainerRegistry.get_or_create_open(
                demand.manifest_id, demand.destination, user,
            )
            container = Container.objects.select_for_update().get(pk=container.pk)
            if not container.is_editable:
                raise Conflict('CONTAINER_NOT_EDITABLE', container=container.code)

            InventoryLine.objects.filter(pk=inventory.pk).update(
                qty_available=F('qty_available') - qty,
                updated_at=timezone.now(),
            )

            was_done = demand.status == DemandStatus.DONE
            demand.save(update_fields=demand.set_confirmed(demand.qty_confirmed + qty, user))

            container_line = ContainerLine.objects.create(
                container=container,
                pallet=locked_pallet,
                sku=sku,
                qty=qty,
                demand_line=demand,
            )

            AuditLog.record(
                AuditEventType.CONFIRM_QTY,
                user,
                pallet=locked_pallet,
                sku=sku,
                destination=demand.destination,
                qty=qty,
            )

            if was_done != (demand.status == DemandStatus.DONE):
                sync_manifest(demand.manifest_id)
            sync_pallet_status(locked_pallet)

        logger.info(
            "crossdock.confirm",
            extra={
                "pallet": locked_pallet.code,
                "sku": sku,
                "destination": demand.destination,
                "qty": str(qty),
                "container": container.code,
                "line_status": demand.status,
            },
        )
        return container_line
