"""Types for split payments."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from .errors import InvalidAmount, MissingField
from .split import parse_amount


class SubmissionState(str, Enum):
    """Lifecycle of a submitted transfer set."""

    CREATED = "created"
    PROCESSING = "processing"
    IN_BLOCK = "in_block"
    FINALIZED = "finalized"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            SubmissionState.FINALIZED,
            SubmissionState.FAILED,
            SubmissionState.CANCELLED,
        )


class ProgressState(str, Enum):
    """States reported to the progress sink."""

    PROCESSING = "processing"
    IN_BLOCK = "inBlock"
    FINALIZED = "finalized"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ProgressEvent:
    state: ProgressState
    message: str


@dataclass
class PaymentRequest:
    """A user's request to pay ``amount`` of ``asset`` to ``recipient``.

    Attributes:
        asset: Asset identifier understood by the chain client.
        precision: Decimal places of the asset's atomic unit.
        payer: Paying account.
        recipient: Account receiving 99%.
        fee_recipient: Account receiving 1%.
        amount: Amount in user units (e.g. 10.5).
        fee_asset: Optional asset nominated to pay network fees.
        symbol: Display symbol; defaults to ``asset``.
    """

    asset: str
    precision: int
    payer: str
    recipient: str
    fee_recipient: str
    amount: Decimal | float | int | str
    fee_asset: str | None = None
    symbol: str = ""

    def validate(self) -> None:
        """Check the request before anything is built or sent.

        Raises:
            MissingField: If an account or the asset is blank.
            InvalidAmount: If the amount is not positive or precision is negative.
        """
        for name in ("asset", "payer", "recipient", "fee_recipient"):
            value = getattr(self, name)
            if value is None or not str(value).strip():
                raise MissingField(name)

        if isinstance(self.precision, bool) or not isinstance(self.precision, int):
            raise InvalidAmount(f"precision must be an integer, got {self.precision!r}")
        if self.precision < 0:
            raise InvalidAmount(f"precision must be >= 0, got {self.precision}")

        parse_amount(self.amount)

    @property
    def display_symbol(self) -> str:
        return self.symbol or self.asset

    @property
    def decimal_amount(self) -> Decimal:
        return parse_amount(self.amount)


@dataclass(frozen=True)
class TransferLeg:
    asset: str
    destination: str
    amount: int  # atomic units, floor of the decimal share


@dataclass(frozen=True)
class TransferSet:
    """Two legs executed as one all-or-nothing batch.

    Leg order is [recipient, fee]. Settlement is atomic regardless of order.
    ``symbol`` and ``amount`` carry the requested payment for the receipt.
    ``precision`` is the decimals the leg amounts are scaled by.
    """

    recipient_leg: TransferLeg
    fee_leg: TransferLeg
    fee_asset: str | None = None
    symbol: str = ""
    amount: Decimal | None = None
    precision: int | None = None

    @property
    def legs(self) -> tuple[TransferLeg, TransferLeg]:
        return (self.recipient_leg, self.fee_leg)

    @property
    def total(self) -> int:
        return self.recipient_leg.amount + self.fee_leg.amount


@dataclass(frozen=True)
class BalanceSnapshot:
    """Payer balances in user units. ``None`` means the query failed."""

    native: Decimal | None
    fee_asset: Decimal | None

    @property
    def complete(self) -> bool:
        return self.native is not None and self.fee_asset is not None


@dataclass(frozen=True)
class Receipt:
    """Proof of a finalized payment."""

    asset: str
    amount: Decimal
    formatted_amount: str
    block_number: int | None
    message: str
    status_message: str
    extrinsic_index: int | None = None
    explorer_url: str | None = None
    payer: str = ""
    recipient: str = ""
    finalized_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_share_data(self) -> dict[str, Any]:
        """Data handed to the receipt consumer (QR code, share links)."""
        return {
            "amount": str(self.amount),
            "currency": self.asset,
            "senderAddress": self.payer,
            "recipientAddress": self.recipient,
            "blockNumber": self.block_number,
            "extrinsicIndex": self.extrinsic_index,
            "explorerUrl": self.explorer_url,
            "timestamp": self.finalized_at.isoformat(),
        }


@dataclass(frozen=True)
class Cancelled:
    """The signer declined before broadcast. Not an error."""

    message: str


class FeeBand(str, Enum):
    FEE_ASSET = "fee_asset"
    NATIVE = "native"
    NONE = "none"
    UNDETERMINED = "undetermined"


@dataclass(frozen=True)
class FeeReport:
    band: FeeBand
    message: str
    amount: Decimal | None = None
    asset: str | None = None


@dataclass(frozen=True)
class PaymentResult:
    receipt: Receipt
    fee: FeeReport
