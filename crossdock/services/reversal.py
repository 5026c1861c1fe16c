"""
Reversal — exact inverse of a confirmation, one container line at a time.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from crossdock.exceptions import NotFound, ValidationFailed, WrongState
from crossdock.models.container import Container, ContainerLine
from crossdock.models.demand import DemandLine
from crossdock.models.enums import AuditEventType, ContainerStatus, DemandStatus
from crossdock.models.pallet import InventoryLine, Pallet
from crossdock.services.audit import AuditLog, require_user
from crossdock.services.progress import sync_manifest, sync_pallet_status

logger = logging.getLogger('crossdock')


class Reversal:
    """Undo confirmations."""

    @classmethod
    def reverse(cls, container_line, user) -> ContainerLine:
        """
        Give a container line's units back to its pallet.

        1. Refuses lines of DISPATCHED containers
        2. Returns qty to the pallet inventory
        3. Takes qty off the demand line (status recomputed, completion
           metadata cleared when it leaves DONE)
        4. Deletes the line (the container itself stays) and records REVERSE

        Surplus lines have no demand line; only the inventory is restored.
        Other lines in the same container, from this or other pallets, are
        not touched.

        Returns:
            The deleted ContainerLine (pk is None)

        Raises:
            Unauthenticated('UNAUTHENTICATED')
            NotFound('LINE_NOT_FOUND' | 'INVENTORY_NOT_FOUND')
            WrongState('CONTAINER_DISPATCHED')
            ValidationFailed('EXCEEDS_INITIAL'): Inventory would exceed qty_initial

        Concurrency:
            - Runs under transaction.atomic()
            - select_for_update() on pallet, demand line, inventory, container
              and container line, in the same order as Confirmation.confirm
        """
        user = require_user(user)
        line_pk = getattr(container_line, 'pk', container_line)

        with transaction.atomic():
            # Row locks follow Confirmation.confirm: pallet, demand line,
            # inventory, container. The unlocked read only finds the keys.
            found = (
                ContainerLine.objects.filter(pk=line_pk)
                .values('pallet_id', 'demand_line_id', 'container_id', 'sku')
                .first()
            )
            if found is None:
                raise NotFound('LINE_NOT_FOUND', line=line_pk)

            pallet = Pallet.objects.select_for_update().get(pk=found['pallet_id'])

            demand = None
            if found['demand_line_id'] is not None:
                demand = DemandLine.objects.select_for_update().get(pk=found['demand_line_id'])

            inventory = (
                InventoryLine.objects.select_for_update()
                .filter(pallet=pallet, sku=found['sku'])
                .first()
            )
            container = Container.objects.select_for_update().get(pk=found['container_id'])

            try:
                line = ContainerLine.objects.select_for_update().get(pk=line_pk)
            except ContainerLine.DoesNotExist:
                raise NotFound('LINE_NOT_FOUND', line=line_pk) from None

            if container.status == ContainerStatus.DISPATCHED:
                raise WrongState('CONTAINER_DISPATCHED', container=container.code)

            if inventory is None:
                raise NotFound('INVENTORY_NOT_FOUND', pallet=pallet.code, sku=line.sku)

            if inventory.qty_available + line.qty > inventory.qty_initial:
                raise ValidationFailed(
                    'EXCEEDS_INITIAL',
                    available=inventory.qty_available,
                    requested=line.qty,
                )

            InventoryLine.objects.filter(pk=inventory.pk).update(
                qty_available=F('qty_available') + line.qty,
                updated_at=timezone.now(),
            )

            destination = container.destination
            if demand is not None:
                was_done = demand.status == DemandStatus.DONE
                new_confirmed = max(Decimal('0'), demand.qty_confirmed - line.qty)
                demand.save(update_fields=demand.set_confirmed(new_confirmed, user))
                destination = demand.destination

                if was_done != (demand.status == DemandStatus.DONE):
                    sync_manifest(demand.manifest_id)

            qty, sku = line.qty, line.sku
            line.delete()

            AuditLog.record(
                AuditEventType.REVERSE,
                user,
                pallet=pallet,
                sku=sku,
                destination=destination,
                qty=qty,
                note=f"Reverso de línea en contenedor {container.code}",
            )
            sync_pallet_status(pallet)

        logger.info(
            "crossdock.reverse",
            extra={
                "container": container.code,
                "pallet": pallet.code,
                "sku": sku,
                "qty": str(qty),
            },
        )
        return line
