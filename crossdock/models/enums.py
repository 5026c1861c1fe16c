"""
Enums for Crossdock models.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class ManifestStatus(models.TextChoices):
    """Lifecycle of an imported distribution manifest."""
    DRAFT = 'draft', _('Borrador')
    IN_PROGRESS = 'in_progress', _('En Progreso')
    DONE = 'done', _('Completada')


class PalletStatus(models.TextChoices):
    """
    Pallet status.

    OPEN:     Available for distribution.
    DEPLETED: Every SKU on it has been distributed or reported as surplus.
    BLOCKED:  Set by supervisors; cannot be scanned.
    """
    OPEN = 'open', _('Abierto')
    DEPLETED = 'depleted', _('Agotado')
    BLOCKED = 'blocked', _('Bloqueado')


class DemandStatus(models.TextChoices):
    """Progress of a demand line towards its destination."""
    PENDING = 'pending', _('Pendiente')
    PARTIAL = 'partial', _('Parcial')
    DONE = 'done', _('Completa')

    @classmethod
    def for_quantities(cls, qty_to_send: Decimal, qty_confirmed: Decimal) -> 'DemandStatus':
        """Status is a pure function of (to_send, confirmed)."""
        if qty_confirmed <= 0:
            return cls.PENDING
        if qty_confirmed < qty_to_send:
            return cls.PARTIAL
        return cls.DONE


class ContainerStatus(models.TextChoices):
    """Container lifecycle: OPEN → CLOSED → DISPATCHED."""
    OPEN = 'open', _('Abierto')
    CLOSED = 'closed', _('Cerrado')
    DISPATCHED = 'dispatched', _('Despachado')


class ContainerKind(models.TextChoices):
    NORMAL = 'normal', _('Normal')
    SURPLUS = 'surplus', _('Sobrante')


class AuditEventType(models.TextChoices):
    """Every state-changing operator action."""
    SCAN_PALLET = 'scan_pallet', _('Escaneo de pallet')
    SCAN_SKU = 'scan_sku', _('Escaneo de SKU')
    CONFIRM_QTY = 'confirm_qty', _('Cantidad confirmada')
    REVERSE = 'reverse', _('Reverso')
    CLOSE = 'close', _('Cierre de contenedor')
    UNLOCK = 'unlock', _('Liberación de pallet')
    ADJUST = 'adjust', _('Ajuste (sobrante)')


class AllocationMode(models.TextChoices):
    """How the active destination of a scan session is chosen."""
    AUTO = 'auto', _('Automático')      # First pending destination, ascending
    MANUAL = 'manual', _('Manual')      # Picked by the operator


class ScanOutcome(models.TextChoices):
    """What the operator should do after a confirmation."""
    CONTINUE = 'continue', _('Continuar')                    # Active line kept or advanced
    NEXT_SKU = 'next_sku', _('Escanear siguiente SKU')
    PALLET_COMPLETE = 'pallet_complete', _('Pallet agotado')
