"""
AuditEvent model — Append-only log of operator actions.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from crossdock.models.enums import AuditEventType


class AuditEvent(models.Model):
    """
    Immutable record of a state-changing action.

    Rules:
    - NEVER update() or delete()
    - A reversal is a new REVERSE event, the CONFIRM_QTY event stays
    - Pure sink: nothing reads it to decide business rules
    """

    event_type = models.CharField(
        max_length=20,
        choices=AuditEventType.choices,
        db_index=True,
        verbose_name=_('Evento'),
    )
    pallet = models.ForeignKey(
        'crossdock.Pallet',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='events',
        verbose_name=_('Pallet'),
    )
    sku = models.CharField(max_length=64, blank=True, default='', verbose_name=_('SKU'))
    destination = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Tienda'))
    qty = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_('Cantidad'),
    )
    raw_code = models.CharField(
        max_length=128,
        blank=True,
        default='',
        verbose_name=_('Código escaneado'),
    )
    note = models.TextField(blank=True, default='', verbose_name=_('Notas'))

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Usuario'),
    )
    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Fecha/Hora'))

    class Meta:
        verbose_name = _('Evento')
        verbose_name_plural = _('Eventos')
        ordering = ['timestamp', 'pk']
        indexes = [
            models.Index(fields=['pallet', 'timestamp'], name='audit_pallet_time_idx'),
            models.Index(fields=['event_type', 'timestamp'], name='audit_type_time_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError("Los eventos son inmutables.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Los eventos son inmutables.")

    def __str__(self) -> str:
        qty = f" {self.qty}" if self.qty is not None else ""
        return f"{self.get_event_type_display()}{qty} {self.sku} {self.destination}".strip()
