"""
DemandLine model — How much of a SKU a destination still needs.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from crossdock.models.enums import DemandStatus


class DemandLineQuerySet(models.QuerySet):
    """Custom QuerySet for DemandLine."""

    def open(self):
        """Lines still waiting for units (PENDING or PARTIAL)."""
        return self.filter(status__in=[DemandStatus.PENDING, DemandStatus.PARTIAL])

    def for_pallet_sku(self, pallet_code: str, sku: str):
        return self.filter(pallet_code=pallet_code, sku=sku)


class DemandLine(models.Model):
    """
    Quantity of a SKU, sitting on a given pallet, to be sent to one destination.

    LIFECYCLE (pure function of qty_confirmed vs qty_to_send):

        PENDING (0) ──confirm──► PARTIAL (<) ──confirm──► DONE (≥)
           ▲                        │  ▲                     │
           └────────reverse─────────┘  └───────reverse───────┘

    done_by/done_at are set on the transition into DONE and cleared on the
    way out.
    """

    manifest = models.ForeignKey(
        'crossdock.Manifest',
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('Carga'),
    )
    pallet_code = models.CharField(
        max_length=50,
        db_index=True,
        verbose_name=_('Pallet'),
    )
    sku = models.CharField(
        max_length=64,
        verbose_name=_('SKU'),
    )
    barcode = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Código de barra'),
    )
    description = models.CharField(
        max_length=255,
        blank=True,
        default='',
        verbose_name=_('Descripción'),
    )
    destination = models.CharField(
        max_length=64,
        verbose_name=_('Tienda'),
    )
    truck = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Camión'),
    )

    qty_to_send = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Cantidad a enviar'),
    )
    qty_confirmed = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Cantidad confirmada'),
    )
    status = models.CharField(
        max_length=20,
        choices=DemandStatus.choices,
        default=DemandStatus.PENDING,
        db_index=True,
        verbose_name=_('Estado'),
    )

    done_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Completada por'),
    )
    done_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_('Completada en'),
    )
    created_at = models.DateTimeField(default=timezone.now)

    objects = DemandLineQuerySet.as_manager()

    class Meta:
        verbose_name = _('Línea de pedido')
        verbose_name_plural = _('Líneas de pedido')
        ordering = ['pallet_code', 'sku', 'destination']
        constraints = [
            models.CheckConstraint(
                condition=Q(qty_confirmed__gte=0) & Q(qty_confirmed__lte=F('qty_to_send')),
                name='demand_confirmed_within_to_send',
            ),
        ]
        indexes = [
            models.Index(fields=['pallet_code', 'sku', 'status'], name='demand_pallet_sku_status_idx'),
            models.Index(fields=['pallet_code', 'barcode'], name='demand_pallet_barcode_idx'),
        ]

    @property
    def pending(self) -> Decimal:
        return self.qty_to_send - self.qty_confirmed

    def set_confirmed(self, qty_confirmed: Decimal, user=None) -> list[str]:
        """
        Apply a new confirmed quantity and recompute status.

        Returns the list of changed fields, ready for save(update_fields=...).
        """
        was_done = self.status == DemandStatus.DONE
        self.qty_confirmed = qty_confirmed
        self.status = DemandStatus.for_quantities(self.qty_to_send, qty_confirmed)
        fields = ['qty_confirmed', 'status']

        if self.status == DemandStatus.DONE and not was_done:
            self.done_by = user
            self.done_at = timezone.now()
            fields += ['done_by', 'done_at']
        elif self.status != DemandStatus.DONE and was_done:
            self.done_by = None
            self.done_at = None
            fields += ['done_by', 'done_at']

        return fields

    def __str__(self) -> str:
        return f"{self.sku} → {self.destination}: {self.qty_confirmed}/{self.qty_to_send}"
