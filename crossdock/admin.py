"""
Crossdock Admin — read-only views for supervisors and production debugging.

- Manifest: read-only progress
- Pallet: read-only, with "force unlock" action
- InventoryLine / DemandLine: read-only. Quantities only change via services
- Container: read-only with inline lines
- AuditEvent: read-only audit trail
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from crossdock.exceptions import CrossdockError
from crossdock.models import (
    AuditEvent,
    Container,
    ContainerLine,
    DemandLine,
    InventoryLine,
    Manifest,
    Pallet,
)

logger = logging.getLogger(__name__)


class ReadOnlyAdmin(admin.ModelAdmin):
    """Rows are written by ingestion and by crossdock services only."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# MANIFEST ADMIN
# =========================================================================

@admin.register(Manifest)
class ManifestAdmin(ReadOnlyAdmin):
    list_display = ['file_name', 'status', 'completed_lines', 'total_lines', 'progress_display', 'created_at']
    list_filter = ['status']
    search_fields = ['file_name']
    date_hierarchy = 'created_at'

    @admin.display(description=_('Progreso'))
    def progress_display(self, obj):
        return f"{obj.progress}%"


# =========================================================================
# PALLET ADMIN (read-only with unlock action)
# =========================================================================

class InventoryLineInline(admin.TabularInline):
    model = InventoryLine
    extra = 0
    can_delete = False
    readonly_fields = ['sku', 'qty_initial', 'qty_available', 'updated_at']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Pallet)
class PalletAdmin(ReadOnlyAdmin):
    """Pallet admin — read-only with force unlock."""

    list_display = ['code', 'location', 'status', 'locked_by', 'locked_at']
    list_filter = ['status']
    search_fields = ['code', 'location']
    inlines = [InventoryLineInline]
    actions = ['force_unlock']

    @admin.action(description=_('Liberar pallets seleccionados'))
    def force_unlock(self, request, queryset):
        from crossdock.services.locks import PalletLocks

        count = 0
        for pallet in queryset.locked():
            try:
                PalletLocks.release(pallet.code, request.user, force=True)
                count += 1
            except CrossdockError as exc:
                logger.warning("force_unlock: failed to release %s: %s", pallet.code, exc)

        self.message_user(request, _('{count} pallet(s) liberado(s).').format(count=count))


@admin.register(DemandLine)
class DemandLineAdmin(ReadOnlyAdmin):
    list_display = ['pallet_code', 'sku', 'destination', 'truck', 'qty_to_send',
                    'qty_confirmed', 'status', 'done_by', 'done_at']
    list_filter = ['status', 'manifest']
    search_fields = ['pallet_code', 'sku', 'barcode', 'destination']


# =========================================================================
# CONTAINER ADMIN
# =========================================================================

class ContainerLineInline(admin.TabularInline):
    model = ContainerLine
    extra = 0
    can_delete = False
    readonly_fields = ['pallet', 'sku', 'qty', 'demand_line', 'created_at']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Container)
class ContainerAdmin(ReadOnlyAdmin):
    list_display = ['code', 'destination', 'kind', 'status', 'line_count_display',
                    'created_at', 'closed_at', 'dispatched_at']
    list_filter = ['status', 'kind']
    search_fields = ['code', 'destination']
    inlines = [ContainerLineInline]

    @admin.display(description=_('Líneas'))
    def line_count_display(self, obj):
        return obj.lines.count()


# =========================================================================
# AUDIT ADMIN (read-only trail)
# =========================================================================

@admin.register(AuditEvent)
class AuditEventAdmin(ReadOnlyAdmin):
    list_display = ['timestamp', 'event_type', 'pallet', 'sku', 'destination', 'qty', 'user']
    list_filter = ['event_type', 'timestamp']
    search_fields = ['sku', 'destination', 'raw_code', 'note']
    date_hierarchy = 'timestamp'
