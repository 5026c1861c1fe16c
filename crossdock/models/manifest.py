"""
Manifest model — One imported distribution plan.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from crossdock.models.enums import ManifestStatus


class Manifest(models.Model):
    """
    Imported distribution plan ("carga").

    Rows are created by ingestion together with the pallets, inventory and
    demand lines it describes. The engine only maintains completed_lines
    and the IN_PROGRESS ↔ DONE transition.
    """

    file_name = models.CharField(
        max_length=255,
        verbose_name=_('Archivo'),
    )
    status = models.CharField(
        max_length=20,
        choices=ManifestStatus.choices,
        default=ManifestStatus.DRAFT,
        db_index=True,
        verbose_name=_('Estado'),
    )
    total_lines = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Líneas totales'),
    )
    completed_lines = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Líneas completadas'),
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
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Carga')
        verbose_name_plural = _('Cargas')
        ordering = ['-created_at']

    @property
    def progress(self) -> int:
        """Completed lines as a rounded percentage."""
        if not self.total_lines:
            return 0
        return round(self.completed_lines * 100 / self.total_lines)

    def __str__(self) -> str:
        return f"{self.file_name} ({self.completed_lines}/{self.total_lines})"
