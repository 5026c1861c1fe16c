"""
Derived status kept in step with confirmations, reversals and surplus.

Both helpers must run inside the caller's transaction.
"""

from django.db.models import Count, Q
from django.utils import timezone

from crossdock.models.enums import DemandStatus, ManifestStatus, PalletStatus
from crossdock.models.manifest import Manifest
from crossdock.models.pallet import Pallet


def sync_manifest(manifest_id) -> Manifest:
    """
    Recount DONE lines of a manifest and move it IN_PROGRESS ↔ DONE.

    Called only when a demand line entered or left DONE.
    """
    manifest = Manifest.objects.select_for_update().get(pk=manifest_id)
    counts = manifest.lines.aggregate(
        total=Count('pk'),
        done=Count('pk', filter=Q(status=DemandStatus.DONE)),
    )
    total = manifest.total_lines or counts['total']
    manifest.completed_lines = counts['done']

    if total and counts['done'] >= total:
        manifest.status = ManifestStatus.DONE
    elif manifest.status == ManifestStatus.DONE:
        manifest.status = ManifestStatus.IN_PROGRESS

    manifest.save(update_fields=['completed_lines', 'status', 'updated_at'])
    return manifest


def sync_pallet_status(pallet: Pallet) -> str:
    """
    OPEN → DEPLETED when nothing is left on the pallet, back to OPEN when
    stock returns. BLOCKED pallets are left alone.

    Returns the resulting status.
    """
    has_stock = pallet.inventory.filter(qty_available__gt=0).exists()
    now = timezone.now()

    if pallet.status == PalletStatus.OPEN and not has_stock:
        Pallet.objects.filter(pk=pallet.pk).update(status=PalletStatus.DEPLETED, updated_at=now)
        pallet.status = PalletStatus.DEPLETED
    elif pallet.status == PalletStatus.DEPLETED and has_stock:
        Pallet.objects.filter(pk=pallet.pk).update(status=PalletStatus.OPEN, updated_at=now)
        pallet.status = PalletStatus.OPEN

    return pallet.status
