"""
Container model — Shipping unit per (manifest, destination).
"""

import re

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from crossdock.models.enums import ContainerKind, ContainerStatus


class ContainerQuerySet(models.QuerySet):
    """Custom QuerySet for Container."""

    def open(self):
        return self.filter(status=ContainerStatus.OPEN)

    def open_for(self, manifest, destination: str):
        """The (at most one) OPEN regular container of a destination."""
        return self.open().filter(
            manifest=manifest,
            destination=destination,
            kind=ContainerKind.NORMAL,
        )

    def with_prefix(self, prefix: str):
        """Codes made of prefix followed only by digits."""
        return self.filter(code__regex=r'^' + re.escape(prefix) + r'[0-9]+$')


class Container(models.Model):
    """
    Shipping container accumulating confirmed quantities for one destination.

    LIFECYCLE:

        OPEN ──close()──► CLOSED ──dispatch()──► DISPATCHED

    - Regular containers are created lazily by the first confirmation for a
      destination. At most one is OPEN per (manifest, destination); the
      conditional unique constraint below is what guarantees it.
    - Surplus containers are born CLOSED, with the surplus destination sentinel.
    - Lines can be reversed until the container is DISPATCHED.
    """

    code = models.CharField(
        max_length=20,
        unique=True,
        verbose_name=_('Código'),
    )
    manifest = models.ForeignKey(
        'crossdock.Manifest',
        on_delete=models.PROTECT,
        related_name='containers',
        verbose_name=_('Carga'),
    )
    destination = models.CharField(
        max_length=64,
        verbose_name=_('Tienda'),
    )
    status = models.CharField(
        max_length=20,
        choices=ContainerStatus.choices,
        default=ContainerStatus.OPEN,
        db_index=True,
        verbose_name=_('Estado'),
    )
    kind = models.CharField(
        max_length=20,
        choices=ContainerKind.choices,
        default=ContainerKind.NORMAL,
        verbose_name=_('Tipo'),
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Creado por'),
    )
    created_at = models.DateTimeField(default=timezone.now)
    closed_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Cerrado en'))
    dispatched_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Despachado en'))

    objects = ContainerQuerySet.as_manager()

    class Meta:
        verbose_name = _('Contenedor')
        verbose_name_plural = _('Contenedores')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['manifest', 'destination'],
                condition=Q(status='open', kind='normal'),
                name='unique_open_container_per_destination',
            ),
        ]
        indexes = [
            models.Index(fields=['manifest', 'destination', 'status'], name='container_manifest_dest_idx'),
        ]

    @property
    def is_editable(self) -> bool:
        return self.status == ContainerStatus.OPEN

    @property
    def is_surplus(self) -> bool:
        return self.kind == ContainerKind.SURPLUS

    def __str__(self) -> str:
        return f"{self.code} → {self.destination} [{self.get_status_display()}]"


class ContainerLine(models.Model):
    """
    Quantity of a SKU from a pallet placed into a container.

    demand_line is the demand this line satisfies; None for surplus lines.
    Lines are only ever added or deleted (by reversal), never edited.
    """

    container = models.ForeignKey(
        Container,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('Contenedor'),
    )
    pallet = models.ForeignKey(
        'crossdock.Pallet',
        on_delete=models.PROTECT,
        related_name='container_lines',
        verbose_name=_('Pallet'),
    )
    sku = models.CharField(
        max_length=64,
        verbose_name=_('SKU'),
    )
    qty = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Cantidad'),
    )
    demand_line = models.ForeignKey(
        'crossdock.DemandLine',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='container_lines',
        verbose_name=_('Línea de pedido'),
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('Línea de contenedor')
        verbose_name_plural = _('Líneas de contenedor')
        ordering = ['created_at', 'pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(qty__gt=0),
                name='container_line_qty_positive',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.qty}x {self.sku}"
