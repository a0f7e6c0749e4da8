"""Chain client protocol and the status stream it produces."""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from .signer import Signer
from .types import TransferSet


class ChainStatus(str, Enum):
    """Transaction pool / consensus statuses reported by a chain client."""

    FUTURE = "future"
    READY = "ready"
    BROADCAST = "broadcast"
    IN_BLOCK = "in_block"
    RETRACTED = "retracted"
    FINALITY_TIMEOUT = "finality_timeout"
    FINALIZED = "finalized"
    USURPED = "usurped"
    DROPPED = "dropped"
    INVALID = "invalid"


PENDING_STATUSES = frozenset({ChainStatus.FUTURE, ChainStatus.READY, ChainStatus.BROADCAST})

REJECTED_STATUSES = frozenset(
    {
        ChainStatus.FINALITY_TIMEOUT,
        ChainStatus.USURPED,
        ChainStatus.DROPPED,
        ChainStatus.INVALID,
    }
)


@dataclass(frozen=True)
class ChainEvent:
    """An event emitted by the block that included the transaction.

    ``phase_index`` is the apply-extrinsic index, or None for events
    emitted outside extrinsic application.
    """

    section: str
    method: str
    phase_index: int | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DispatchError:
    """Decoded runtime error for a transaction that was included but rejected."""

    section: str
    name: str
    documentation: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class StatusUpdate:
    status: ChainStatus
    block_ref: Any = None
    events: list[ChainEvent] = field(default_factory=list)
    dispatch_error: DispatchError | None = None


class ChainClient(Protocol):
    """What the orchestrator needs from a chain client."""

    async def get_balance(self, asset: str, account: str) -> int | None:
        """Balance of ``account`` in atomic units, or None when no record exists."""
        ...

    def sign_and_submit(
        self,
        transfer_set: TransferSet,
        payer: str,
        signer: Signer,
        fee_asset: str | None = None,
    ) -> AsyncIterator[StatusUpdate]:
        """Sign the batch with ``signer`` and stream its statuses.

        The signer is passed through unopened. Implementations raise
        ``SigningCancelled`` before the first status when the user declines.
        """
        ...

    async def get_block_number(self, block_ref: Any) -> int:
        """Resolve a block reference (hash, ledger) to its number."""
        ...
