from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from imistore.exceptions import ValidationError
from .models import PaymentMethod

CENT = Decimal("0.01")
PARTIAL_ADVANCE_RATIO = Decimal("0.5")


@dataclass(frozen=True)
class AmountSplit:
    charge_amount: Decimal
    advance_amount: Decimal
    remaining_amount: Decimal
    delivery_payment_pending: bool


def to_money(value) -> Decimal:
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount value: {value!r}")


def split_amount(total, method) -> AmountSplit:
    """Split ``total`` into what is charged now and what is owed at delivery.

    ``advance_amount + remaining_amount == total`` holds exactly; any rounding
    remainder from the advance lands in ``remaining_amount``.
    """
    total = to_money(total)
    if total < 0:
        raise ValidationError("Total amount cannot be negative")
    try:
        method = PaymentMethod(method)
    except ValueError:
        raise ValidationError(f"Unsupported payment method: {method!r}")

    if method == PaymentMethod.ONLINE:
        return AmountSplit(total, total, Decimal("0.00"), False)
    if method == PaymentMethod.COD:
        return AmountSplit(Decimal("0.00"), Decimal("0.00"), total, True)

    advance = (total * PARTIAL_ADVANCE_RATIO).quantize(CENT, rounding=ROUND_HALF_UP)
    return AmountSplit(advance, advance, total - advance, True)
