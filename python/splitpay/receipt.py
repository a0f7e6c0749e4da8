"""Receipt formatting for finalized payments."""

from decimal import ROUND_HALF_UP, Decimal

from .constants import DEFAULT_EXPLORER_URL, MSG_FINALIZED, MSG_FINALIZED_LIMITED
from .types import Receipt

DECIMAL_SEPARATOR = ","
THOUSANDS_SEPARATOR = "."
# es-ES leaves four-digit integers ungrouped
MIN_GROUPING_DIGITS = 5


def format_amount(amount: Decimal | float | int | str, decimals: int = 2) -> str:
    """Format ``amount`` for display: ``1234.5`` -> ``1234,50``, ``12345.5`` -> ``12.345,50``."""
    value = Decimal(repr(amount)) if isinstance(amount, float) else Decimal(amount)
    quantum = Decimal(1).scaleb(-decimals)
    rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)

    sign = "-" if rounded < 0 else ""
    text = f"{abs(rounded):f}"
    integer, _, fraction = text.partition(".")

    if len(integer) >= MIN_GROUPING_DIGITS:
        groups = []
        while integer:
            groups.insert(0, integer[-3:])
            integer = integer[:-3]
        integer = THOUSANDS_SEPARATOR.join(groups)

    if fraction:
        return f"{sign}{integer}{DECIMAL_SEPARATOR}{fraction}"
    return f"{sign}{integer}"


def explorer_url(block_number: int, extrinsic_index: int, template: str = DEFAULT_EXPLORER_URL) -> str:
    """Fill ``template``. Supported fields: ``extrinsic_id``, ``block``, ``index``."""
    return template.format(
        extrinsic_id=f"{block_number}-{extrinsic_index}",
        block=block_number,
        index=extrinsic_index,
    )


def format_receipt(
    symbol: str,
    amount: Decimal | float | int | str,
    block_number: int,
    extrinsic_index: int | None = None,
    explorer_url_template: str = DEFAULT_EXPLORER_URL,
    display_decimals: int = 2,
    payer: str = "",
    recipient: str = "",
) -> Receipt:
    """Build the receipt for a payment finalized in ``block_number``.

    The explorer link is only added when the extrinsic index is known.
    """
    value = Decimal(repr(amount)) if isinstance(amount, float) else Decimal(amount)
    formatted = format_amount(value, display_decimals)
    message = f"Amount in {symbol}: {formatted}. Payment finalized in block: {block_number}"

    url = None
    if extrinsic_index is not None:
        url = explorer_url(block_number, extrinsic_index, explorer_url_template)
        message = f"{message}, {url}"

    return Receipt(
        asset=symbol,
        amount=value,
        formatted_amount=formatted,
        block_number=block_number,
        message=message,
        status_message=MSG_FINALIZED,
        extrinsic_index=extrinsic_index,
        explorer_url=url,
        payer=payer,
        recipient=recipient,
    )


def format_fallback_receipt(
    symbol: str,
    amount: Decimal | float | int | str,
    display_decimals: int = 2,
    payer: str = "",
    recipient: str = "",
) -> Receipt:
    """Receipt for a finalized payment whose block header could not be read."""
    value = Decimal(repr(amount)) if isinstance(amount, float) else Decimal(amount)
    formatted = format_amount(value, display_decimals)
    return Receipt(
        asset=symbol,
        amount=value,
        formatted_amount=formatted,
        block_number=None,
        message=f"Amount in {symbol}: {formatted}. Payment confirmed, block details unavailable.",
        status_message=MSG_FINALIZED_LIMITED,
        payer=payer,
        recipient=recipient,
    )
