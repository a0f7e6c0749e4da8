"""Submission tracking for split payments.

Consumes the status stream of a signed submission as an explicit state
machine:

    CREATED -> PROCESSING -> IN_BLOCK -> FINALIZED
    any     -> FAILED
    CREATED -> CANCELLED

IN_BLOCK is advisory. The tracker only resolves on FINALIZED (with a
receipt), on failure (by raising) or on a declined signature (by
returning ``Cancelled``).
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from decimal import Decimal
from typing import Any

from .chain import (
    PENDING_STATUSES,
    REJECTED_STATUSES,
    ChainClient,
    ChainEvent,
    ChainStatus,
    StatusUpdate,
)
from .constants import (
    DEFAULT_EXPLORER_URL,
    DEFAULT_HEADER_RETRIES,
    DEFAULT_HEADER_RETRY_DELAY_SECONDS,
    DEFAULT_STATUS_TIMEOUT_SECONDS,
    MSG_CANCELLED,
    MSG_ERROR,
    MSG_FINALIZED,
    MSG_FINALIZED_LIMITED,
    MSG_IN_BLOCK,
    MSG_PROCESSING,
    SUCCESS_EVENT_METHOD,
    SUCCESS_EVENT_SECTION,
)
from .errors import DispatchFailure, SplitPayError, SubmissionFailure
from .receipt import format_fallback_receipt, format_receipt
from .signer import Signer, is_cancellation_error
from .types import (
    Cancelled,
    ProgressEvent,
    ProgressState,
    Receipt,
    SubmissionState,
    TransferSet,
)

logger = logging.getLogger(__name__)

ProgressSink = Callable[[ProgressEvent], None]


def find_extrinsic_index(events: list[ChainEvent]) -> int | None:
    """Apply-extrinsic index of the first success event, if any."""
    for event in events:
        if (
            event.section == SUCCESS_EVENT_SECTION
            and event.method == SUCCESS_EVENT_METHOD
            and event.phase_index is not None
        ):
            return event.phase_index
    return None


class _Tracking:
    """State of one submission. Emits to the sink once per transition."""

    def __init__(self, progress: ProgressSink | None):
        self.state = SubmissionState.CREATED
        self._progress = progress

    def advance(self, state: SubmissionState, progress_state: ProgressState, message: str) -> None:
        if state is self.state:
            return
        logger.info("Submission %s -> %s", self.state.value, state.value)
        self.state = state
        self._emit(progress_state, message)

    def processing(self) -> None:
        """Enter PROCESSING. Only CREATED moves forward; later states stay put."""
        if self.state is SubmissionState.CREATED:
            self.advance(SubmissionState.PROCESSING, ProgressState.PROCESSING, MSG_PROCESSING)

    def fail(self) -> None:
        self.advance(SubmissionState.FAILED, ProgressState.ERROR, MSG_ERROR)

    def cancel(self, reason: str) -> Cancelled:
        self.advance(SubmissionState.CANCELLED, ProgressState.CANCELLED, MSG_CANCELLED)
        return Cancelled(message=reason or MSG_CANCELLED)

    def _emit(self, state: ProgressState, message: str) -> None:
        if self._progress is None:
            return
        try:
            self._progress(ProgressEvent(state=state, message=message))
        except Exception:
            logger.exception("Progress sink raised for state %s", state.value)


class SubmissionTracker:
    """Submits transfer sets and follows them to finality.

    One call to ``submit`` tracks exactly one submission. Concurrent
    calls for the same payer are not serialized here.
    """

    def __init__(
        self,
        client: ChainClient,
        explorer_url_template: str = DEFAULT_EXPLORER_URL,
        header_retries: int = DEFAULT_HEADER_RETRIES,
        header_retry_delay: float = DEFAULT_HEADER_RETRY_DELAY_SECONDS,
        status_timeout: float | None = DEFAULT_STATUS_TIMEOUT_SECONDS,
    ):
        self._client = client
        self._explorer_url_template = explorer_url_template
        self._header_retries = max(0, header_retries)
        self._header_retry_delay = header_retry_delay
        self._status_timeout = status_timeout

    async def submit(
        self,
        transfer_set: TransferSet,
        signer: Signer,
        payer: str,
        progress: ProgressSink | None = None,
        display_decimals: int = 2,
    ) -> Receipt | Cancelled:
        """Sign, submit and track ``transfer_set`` until it is finalized.

        Args:
            transfer_set: The [recipient, fee] batch.
            signer: Opaque signer handed to the chain client.
            payer: Paying account.
            progress: Optional sink for progress events.
            display_decimals: Fraction digits shown in the receipt amount.

        Returns:
            Receipt on finality, or Cancelled if the signer declined.

        Raises:
            DispatchFailure: The runtime rejected the included transaction.
            SubmissionFailure: Signing or network error, or the transaction
                was dropped before finality.
            SplitPayError: Raised by the chain client, passed through as is.
        """
        tracking = _Tracking(progress)
        stream = self._client.sign_and_submit(
            transfer_set, payer, signer, transfer_set.fee_asset
        )

        try:
            while True:
                try:
                    update = await self._next_update(stream)
                except StopAsyncIteration:
                    tracking.fail()
                    raise SubmissionFailure(
                        "Status stream ended before finalization"
                    ) from None
                except asyncio.TimeoutError as e:
                    tracking.fail()
                    raise SubmissionFailure(
                        "Timed out waiting for transaction status", raw=e
                    ) from e
                except Exception as e:
                    if tracking.state is SubmissionState.CREATED and is_cancellation_error(e):
                        logger.info("Signing declined for payer %s", payer)
                        return tracking.cancel(str(e))
                    tracking.fail()
                    if isinstance(e, SplitPayError):
                        raise
                    logger.error("Submission failed for payer %s: %s", payer, e)
                    raise SubmissionFailure(f"Submission failed: {e}", raw=e) from e

                receipt = await self._apply(tracking, update, transfer_set, payer, display_decimals)
                if receipt is not None:
                    return receipt
        finally:
            await _close(stream)

    async def _next_update(self, stream: AsyncIterator[StatusUpdate]) -> StatusUpdate:
        if self._status_timeout is None:
            return await stream.__anext__()
        return await asyncio.wait_for(stream.__anext__(), self._status_timeout)

    async def _apply(
        self,
        tracking: _Tracking,
        update: StatusUpdate,
        transfer_set: TransferSet,
        payer: str,
        display_decimals: int,
    ) -> Receipt | None:
        if update.dispatch_error is not None:
            error = update.dispatch_error
            logger.error(
                "Dispatch failed for payer %s: %s.%s", payer, error.section, error.name
            )
            tracking.fail()
            raise DispatchFailure(error.section, error.name, error.documentation)

        status = update.status

        if status in PENDING_STATUSES:
            tracking.processing()
            return None

        if status is ChainStatus.RETRACTED:
            logger.warning("Transaction retracted from block %s, waiting", update.block_ref)
            return None

        if status in REJECTED_STATUSES:
            tracking.fail()
            raise SubmissionFailure(f"Transaction {status.value}", raw=update)

        if status is ChainStatus.IN_BLOCK:
            tracking.processing()
            tracking.advance(SubmissionState.IN_BLOCK, ProgressState.IN_BLOCK, MSG_IN_BLOCK)
            return None

        if status is ChainStatus.FINALIZED:
            tracking.processing()
            receipt = await self._build_receipt(update, transfer_set, payer, display_decimals)
            message = MSG_FINALIZED if receipt.block_number is not None else MSG_FINALIZED_LIMITED
            tracking.advance(SubmissionState.FINALIZED, ProgressState.FINALIZED, message)
            return receipt

        logger.warning("Ignoring unknown status %r", status)
        return None

    async def _build_receipt(
        self,
        update: StatusUpdate,
        transfer_set: TransferSet,
        payer: str,
        display_decimals: int,
    ) -> Receipt:
        symbol = transfer_set.symbol or transfer_set.recipient_leg.asset
        amount = transfer_set.amount
        if amount is None:
            amount = Decimal(transfer_set.total)
        recipient = transfer_set.recipient_leg.destination

        block_number = await self._lookup_block_number(update.block_ref)
        if block_number is None:
            return format_fallback_receipt(
                symbol, amount, display_decimals, payer=payer, recipient=recipient
            )

        extrinsic_index = find_extrinsic_index(update.events)
        if extrinsic_index is None:
            logger.warning("No success event found in block %s", block_number)

        receipt = format_receipt(
            symbol,
            amount,
            block_number,
            extrinsic_index,
            self._explorer_url_template,
            display_decimals,
            payer=payer,
            recipient=recipient,
        )
        logger.info("Payment finalized: %s", receipt.message)
        return receipt

    async def _lookup_block_number(self, block_ref: Any) -> int | None:
        if block_ref is None:
            logger.warning("Finalized status carried no block reference")
            return None

        attempts = self._header_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return await self._client.get_block_number(block_ref)
            except Exception as e:
                logger.warning(
                    "Block header lookup %d/%d failed for %s: %s",
                    attempt,
                    attempts,
                    block_ref,
                    e,
                )
                if attempt < attempts:
                    await asyncio.sleep(self._header_retry_delay)
        return None


async def _close(stream: AsyncIterator[StatusUpdate]) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:
        logger.warning("Closing status stream failed", exc_info=True)
