"""splitpay: split payment submission and confirmation.

Pays 99% of an amount to a recipient and 1% to a fee collector in one
atomic transfer, follows it to finality and produces a shareable receipt.
"""

from .assets import ASSET_HUB_ASSETS, BRLD, DOT, USDT, AssetInfo, get_asset
from .builder import build_transfer_set
from .chain import ChainClient, ChainEvent, ChainStatus, DispatchError, StatusUpdate
from .config import Settings
from .errors import (
    DispatchFailure,
    InsufficientBalance,
    InvalidAmount,
    MissingField,
    SplitPayError,
    SubmissionFailure,
)
from .fees import FeeReconciler, classify_fee
from .receipt import format_amount, format_fallback_receipt, format_receipt
from .session import PaymentSession, SessionClosed
from .signer import SigningCancelled, TransactionSigner, is_cancellation_error
from .split import split_amounts
from .tracker import SubmissionTracker
from .types import (
    BalanceSnapshot,
    Cancelled,
    FeeBand,
    FeeReport,
    PaymentRequest,
    PaymentResult,
    ProgressEvent,
    ProgressState,
    Receipt,
    SubmissionState,
    TransferLeg,
    TransferSet,
)

__version__ = "0.1.0"

__all__ = [
    "ASSET_HUB_ASSETS",
    "AssetInfo",
    "BRLD",
    "BalanceSnapshot",
    "Cancelled",
    "ChainClient",
    "ChainEvent",
    "ChainStatus",
    "DOT",
    "DispatchError",
    "DispatchFailure",
    "FeeBand",
    "FeeReconciler",
    "FeeReport",
    "InsufficientBalance",
    "InvalidAmount",
    "MissingField",
    "PaymentRequest",
    "PaymentResult",
    "PaymentSession",
    "ProgressEvent",
    "ProgressState",
    "Receipt",
    "SessionClosed",
    "Settings",
    "SigningCancelled",
    "SplitPayError",
    "StatusUpdate",
    "SubmissionFailure",
    "SubmissionState",
    "SubmissionTracker",
    "TransactionSigner",
    "TransferLeg",
    "TransferSet",
    "USDT",
    "build_transfer_set",
    "classify_fee",
    "format_amount",
    "format_fallback_receipt",
    "format_receipt",
    "get_asset",
    "is_cancellation_error",
    "split_amounts",
]
