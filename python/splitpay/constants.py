"""Constants for split payments."""

from decimal import Decimal

# Basis points (10000 = 100%)
BPS_DENOMINATOR = 10000
RECIPIENT_BPS = 9900
FEE_BPS = 100

# Balance deltas at or below this many asset units count as no fee
FEE_TOLERANCE = Decimal("0.000001")

# Header lookups after finality
DEFAULT_HEADER_RETRIES = 3
DEFAULT_HEADER_RETRY_DELAY_SECONDS = 1.0

# Seconds to wait for the next status from the chain client (None = forever)
DEFAULT_STATUS_TIMEOUT_SECONDS = 120.0

# Explorer link template, filled with "<block>-<index>"
DEFAULT_EXPLORER_URL = "https://assethub-polkadot.subscan.io/extrinsic/{extrinsic_id}"

# Success marker emitted once per applied extrinsic
SUCCESS_EVENT_SECTION = "system"
SUCCESS_EVENT_METHOD = "ExtrinsicSuccess"

# Error text fragments that wallet extensions use when the user declines
CANCELLATION_MARKERS = (
    "cancelled",
    "canceled",
    "rejected by user",
    "user rejected",
    "user denied",
)

# Progress messages
MSG_PROCESSING = "Processing transaction..."
MSG_IN_BLOCK = "Included in block. Waiting for finalization..."
MSG_FINALIZED = "Transaction finalized."
MSG_FINALIZED_LIMITED = "Transaction finalized (limited details)."
MSG_ERROR = "Transaction failed."
MSG_CANCELLED = "Signing cancelled by user."
