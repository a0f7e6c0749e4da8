"""Transfer set construction for split payments."""

from .errors import InvalidAmount
from .split import split_amounts
from .types import PaymentRequest, TransferLeg, TransferSet


def build_transfer_set(
    request: PaymentRequest,
    amounts: tuple[int, int] | None = None,
) -> TransferSet:
    """Build the [recipient, fee] legs for ``request``.

    Args:
        request: The payment request.
        amounts: Precomputed (recipient, fee) atomic amounts. Computed
            from the request when omitted.

    Returns:
        TransferSet with the recipient leg first.

    Raises:
        MissingField: If an account or the asset is absent.
        InvalidAmount: If the amount or precision is invalid.
    """
    request.validate()

    if amounts is None:
        amounts = split_amounts(request.amount, request.precision)
    recipient_amount, fee_amount = amounts
    if recipient_amount < 0 or fee_amount < 0:
        raise InvalidAmount(f"Leg amounts must be non-negative, got {amounts}")

    return TransferSet(
        recipient_leg=TransferLeg(
            asset=request.asset,
            destination=request.recipient,
            amount=recipient_amount,
        ),
        fee_leg=TransferLeg(
            asset=request.asset,
            destination=request.fee_recipient,
            amount=fee_amount,
        ),
        fee_asset=request.fee_asset,
        symbol=request.display_symbol,
        amount=request.decimal_amount,
        precision=request.precision,
    )
