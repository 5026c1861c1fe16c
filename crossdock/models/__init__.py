"""
Crossdock Models.

Core models for crossdock distribution:
- Manifest: Imported distribution plan
- Pallet / InventoryLine: What arrived and what is left on it
- DemandLine: What each destination needs from each pallet
- Container / ContainerLine: What has been packed for each destination
- AuditEvent: Immutable log of operator actions
"""

from crossdock.models.audit import AuditEvent
from crossdock.models.container import Container, ContainerLine
from crossdock.models.demand import DemandLine
from crossdock.models.enums import (
    AllocationMode,
    AuditEventType,
    ContainerKind,
    ContainerStatus,
    DemandStatus,
    ManifestStatus,
    PalletStatus,
    ScanOutcome,
)
from crossdock.models.manifest import Manifest
from crossdock.models.pallet import InventoryLine, Pallet

__all__ = [
    'AllocationMode',
    'AuditEventType',
    'ContainerKind',
    'ContainerStatus',
    'DemandStatus',
    'ManifestStatus',
    'PalletStatus',
    'ScanOutcome',
    'Manifest',
    'Pallet',
    'InventoryLine',
    'DemandLine',
    'Container',
    'ContainerLine',
    'AuditEvent',
]
