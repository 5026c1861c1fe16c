"""
Django Crossdock — Pallet-to-destination distribution engine.

Uso:
    from crossdock import distribution, CrossdockError

    distribution.scan_pallet('PAL-001', user)
    session = distribution.scan_sku('PAL-001', 'A1', user)
    distribution.confirm(session, Decimal('40'))
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'distribution':
        from crossdock.service import Distribution
        return Distribution
    elif name == 'CrossdockError':
        from crossdock.exceptions import CrossdockError
        return CrossdockError
    elif name == 'Manifest':
        from crossdock.models.manifest import Manifest
        return Manifest
    elif name == 'Pallet':
        from crossdock.models.pallet import Pallet
        return Pallet
    elif name == 'InventoryLine':
        from crossdock.models.pallet import InventoryLine
        return InventoryLine
    elif name == 'DemandLine':
        from crossdock.models.demand import DemandLine
        return DemandLine
    elif name == 'Container':
        from crossdock.models.container import Container
        return Container
    elif name == 'ContainerLine':
        from crossdock.models.container import ContainerLine
        return ContainerLine
    elif name == 'AuditEvent':
        from crossdock.models.audit import AuditEvent
        return AuditEvent
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'distribution',
    'CrossdockError',
    'Manifest',
    'Pallet',
    'InventoryLine',
    'DemandLine',
    'Container',
    'ContainerLine',
    'AuditEvent',
]

__version__ = '0.1.0'
