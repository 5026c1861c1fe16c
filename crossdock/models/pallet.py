"""
Pallet model — Incoming unit being distributed, and its inventory.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from crossdock.models.enums import PalletStatus


class PalletQuerySet(models.QuerySet):
    """Custom QuerySet for Pallet with lock filters."""

    def locked(self):
        """Pallets currently held by an operator."""
        return self.filter(locked_by__isnull=False)

    def locked_before(self, cutoff):
        """Pallets whose lock was taken before cutoff."""
        return self.locked().filter(locked_at__lt=cutoff)

    def lockable_by(self, user):
        """
        Pallets the user may take right now: not blocked, and either free
        or already held by the same user.
        """
        return self.exclude(status=PalletStatus.BLOCKED).filter(
            Q(locked_by__isnull=True) | Q(locked_by=user)
        )


class Pallet(models.Model):
    """
    Physical pallet received at the dock.

    LOCKING:
    - locked_by/locked_at form an exclusive claim by one operator.
    - The claim is taken with a single conditional UPDATE
      (see services.locks.PalletLocks.acquire), never read-then-write.
    - There is no expiry. A claim lasts until explicitly released.
    """

    code = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Código'),
    )
    location = models.CharField(
        max_length=50,
        blank=True,
        default='',
        verbose_name=_('Ubicación'),
    )
    status = models.CharField(
        max_length=20,
        choices=PalletStatus.choices,
        default=PalletStatus.OPEN,
        db_index=True,
        verbose_name=_('Estado'),
    )
    locked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Tomado por'),
    )
    locked_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_('Tomado en'),
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PalletQuerySet.as_manager()

    class Meta:
        verbose_name = _('Pallet')
        verbose_name_plural = _('Pallets')
        ordering = ['code']

    @property
    def is_locked(self) -> bool:
        return self.locked_by_id is not None

    def is_held_by(self, user) -> bool:
        return self.locked_by_id is not None and self.locked_by_id == user.pk

    @property
    def available(self) -> Decimal:
        """Sum of available quantity across all SKUs."""
        return self.inventory.aggregate(
            t=Coalesce(Sum('qty_available'), Decimal('0'))
        )['t']

    def __str__(self) -> str:
        return self.code


class InventoryLine(models.Model):
    """
    Quantity of one SKU on a pallet.

    qty_initial is set by ingestion and never changes.
    qty_available only moves inside Confirmation, Reversal and Surplus.
    """

    pallet = models.ForeignKey(
        Pallet,
        on_delete=models.CASCADE,
        related_name='inventory',
        verbose_name=_('Pallet'),
    )
    sku = models.CharField(
        max_length=64,
        verbose_name=_('SKU'),
    )
    qty_initial = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Cantidad inicial'),
    )
    qty_available = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Cantidad disponible'),
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Inventario de pallet')
        verbose_name_plural = _('Inventario de pallets')
        ordering = ['pallet', 'sku']
        constraints = [
            models.UniqueConstraint(
                fields=['pallet', 'sku'],
                name='unique_inventory_pallet_sku',
            ),
            models.CheckConstraint(
                condition=Q(qty_available__gte=0) & Q(qty_available__lte=F('qty_initial')),
                name='inventory_available_within_initial',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.pallet_id}:{self.sku} {self.qty_available}/{self.qty_initial}"
