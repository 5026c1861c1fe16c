"""
Crossdock services — modular organization of distribution operations.

    from crossdock.services import (
        AuditLog, PalletLocks, ContainerRegistry, AllocationEngine,
        Confirmation, Reversal, Surplus,
    )
"""

from crossdock.services.allocation import AllocationEngine
from crossdock.services.audit import AuditLog
from crossdock.services.confirmation import Confirmation
from crossdock.services.containers import ContainerRegistry
from crossdock.services.locks import PalletLocks
from crossdock.services.reversal import Reversal
from crossdock.services.surplus import Surplus

__all__ = [
    'AuditLog',
    'PalletLocks',
    'ContainerRegistry',
    'AllocationEngine',
    'Confirmation',
    'Reversal',
    'Surplus',
]
