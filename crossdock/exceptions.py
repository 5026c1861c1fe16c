"""
Exceptions for Crossdock.

All errors are CrossdockError with a structured code for programmatic handling.
The subclass tells the caller which family the error belongs to:

    ValidationFailed  bad quantity, exceeds pending/available, empty container
    NotFound          pallet, SKU, demand line, container or line missing
    Conflict          pallet held by someone else, container not editable,
                      container code retries exhausted
    WrongState        blocked pallet, closing a non-open container,
                      reversing a dispatched container
    Unauthenticated   no actor supplied
"""

from decimal import Decimal
from typing import Any


class BaseError(Exception):
    """Exception carrying a code, a human message and free-form context data."""

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class CrossdockError(BaseError):
    """
    Structured exception for crossdock operations.

    Usage:
        try:
            distribution.confirm(session, Decimal('50'))
        except ValidationFailed as e:
            if e.code == 'EXCEEDS_PENDING':
                print(f"Solo quedan {e.pending} pendientes")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'INVALID_QUANTITY': 'La cantidad debe ser mayor a 0',
        'EXCEEDS_PENDING': 'Cantidad mayor al pendiente del pedido',
        'EXCEEDS_AVAILABLE': 'Cantidad mayor al disponible en pallet',
        'EXCEEDS_INITIAL': 'La devolución supera la cantidad inicial del pallet',
        'LINE_COMPLETE': 'La tienda ya tiene todas las unidades confirmadas',
        'LINE_MISMATCH': 'La línea no corresponde a este pallet/SKU',
        'CONTAINER_EMPTY': 'El contenedor no tiene líneas',
        'NOTHING_TO_REPORT': 'No hay cantidades de sobrante para registrar',
        'PALLET_NOT_FOUND': 'Pallet no encontrado',
        'SKU_NOT_FOUND': 'SKU/Código de barra no encontrado en este pallet',
        'SKU_DEPLETED': 'No hay cantidad disponible para este SKU en el pallet',
        'NO_DEMAND': 'No hay pedidos pendientes para este SKU',
        'INVENTORY_NOT_FOUND': 'Inventario del pallet no encontrado',
        'LINE_NOT_FOUND': 'Línea no encontrada',
        'CONTAINER_NOT_FOUND': 'Contenedor no encontrado',
        'PALLET_LOCKED': 'Este pallet está siendo usado por otro usuario',
        'PALLET_NOT_LOCKED': 'El pallet debe estar tomado por el usuario',
        'CONTAINER_NOT_EDITABLE': 'El contenedor de esta tienda ya está cerrado',
        'CODE_EXHAUSTED': 'No se pudo generar un código de contenedor',
        'CODE_OVERFLOW': 'Se agotó la numeración de contenedores para el prefijo',
        'PALLET_BLOCKED': 'Este pallet está bloqueado y no puede ser utilizado',
        'CONTAINER_NOT_OPEN': 'El contenedor no está abierto',
        'CONTAINER_NOT_CLOSED': 'El contenedor no está cerrado',
        'CONTAINER_DISPATCHED': 'No se pueden reversar líneas de contenedores despachados',
        'UNAUTHENTICATED': 'Sesión no cargada',
    }

    @property
    def available(self) -> Decimal:
        """Shortcut for data['available']."""
        return self.data.get('available', Decimal('0'))

    @property
    def pending(self) -> Decimal:
        """Shortcut for data['pending']."""
        return self.data.get('pending', Decimal('0'))

    @property
    def requested(self) -> Decimal:
        """Shortcut for data['requested']."""
        return self.data.get('requested', Decimal('0'))

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'kind': type(self).__name__,
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class ValidationFailed(CrossdockError):
    """Bad input: quantity out of range, empty container, nothing to report."""


class NotFound(CrossdockError):
    """Pallet, SKU, demand line, container or container line missing."""


class Conflict(CrossdockError):
    """Another actor or a concurrent writer got there first."""


class WrongState(CrossdockError):
    """Operation not allowed in the record's current status."""


class Unauthenticated(CrossdockError):
    """No authenticated actor supplied."""
