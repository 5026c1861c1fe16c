"""
Quantity parsing for operator input.
"""

from decimal import Decimal, InvalidOperation

from crossdock.exceptions import ValidationFailed

# Matches decimal_places=3 on every quantity field
QUANTUM = Decimal('0.001')


def to_quantity(value) -> Decimal:
    """
    Turn operator input into a Decimal with at most three decimals.

    Sign is not checked here; callers decide what a zero or negative means.

    Raises:
        ValidationFailed('INVALID_QUANTITY'): Not a number, not finite,
            or more precise than the stored quantities
    """
    try:
        qty = Decimal(str(value))
        if not qty.is_finite():
            raise ValidationFailed('INVALID_QUANTITY', requested=str(value))
        quantized = qty.quantize(QUANTUM)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationFailed('INVALID_QUANTITY', requested=str(value)) from None

    if quantized != qty:
        raise ValidationFailed('INVALID_QUANTITY', requested=qty)
    return quantized
