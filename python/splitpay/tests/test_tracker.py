"""Unit tests for the submission tracker state machine."""

import asyncio
from decimal import Decimal

import pytest

from splitpay.chain import ChainStatus, DispatchError, StatusUpdate
from splitpay.errors import DispatchFailure, SubmissionFailure
from splitpay.signer import SigningCancelled, is_cancellation_error
from splitpay.tracker import SubmissionTracker, find_extrinsic_index
from splitpay.types import (
    Cancelled,
    ProgressState,
    Receipt,
    SubmissionState,
    TransferLeg,
    TransferSet,
)

from conftest import success_event


def transfer_set():
    return TransferSet(
        recipient_leg=TransferLeg(asset="1984", destination="R", amount=10_395_000),
        fee_leg=TransferLeg(asset="1984", destination="F", amount=105_000),
        symbol="USDT",
        amount=Decimal("10.50"),
    )


def tracker(client, **kwargs):
    kwargs.setdefault("header_retry_delay", 0)
    return SubmissionTracker(client, **kwargs)


class TestFindExtrinsicIndex:
    def test_first_success_event(self):
        assert find_extrinsic_index([success_event(None), success_event(4), success_event(5)]) == 4

    def test_none_without_success(self):
        assert find_extrinsic_index([]) is None


class TestCancellationDetection:
    def test_structured(self):
        assert is_cancellation_error(SigningCancelled())

    @pytest.mark.parametrize("text", ["Cancelled", "Rejected by user", "User denied signature"])
    def test_markers(self, text):
        assert is_cancellation_error(RuntimeError(text))

    def test_other_errors(self):
        assert not is_cancellation_error(ConnectionError("socket closed"))


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_emits_once_per_state_and_resolves(self, make_client, statuses, sink):
        client = make_client(updates=statuses(block_ref=123456, index=2))
        receipt = await tracker(client).submit(transfer_set(), "signer", "P", sink)

        assert isinstance(receipt, Receipt)
        assert sink.states == ["processing", "inBlock", "finalized"]
        assert receipt.block_number == 123456
        assert receipt.explorer_url.endswith("123456-2")
        assert "Amount in USDT: 10,50." in receipt.message
        assert receipt.payer == "P"
        assert receipt.recipient == "R"
        assert client.stream_closed

    @pytest.mark.asyncio
    async def test_repeated_statuses_do_not_re_emit(self, make_client, sink):
        updates = [
            StatusUpdate(status=ChainStatus.FUTURE),
            StatusUpdate(status=ChainStatus.READY),
            StatusUpdate(status=ChainStatus.BROADCAST),
            StatusUpdate(status=ChainStatus.IN_BLOCK, block_ref=7),
            StatusUpdate(status=ChainStatus.IN_BLOCK, block_ref=7),
            StatusUpdate(status=ChainStatus.FINALIZED, block_ref=7, events=[success_event(0)]),
        ]
        await tracker(make_client(updates=updates)).submit(transfer_set(), "s", "P", sink)
        assert sink.states == ["processing", "inBlock", "finalized"]

    @pytest.mark.asyncio
    async def test_late_pending_status_does_not_step_back(self, make_client, sink):
        updates = [
            StatusUpdate(status=ChainStatus.READY),
            StatusUpdate(status=ChainStatus.IN_BLOCK, block_ref=7),
            StatusUpdate(status=ChainStatus.BROADCAST),
            StatusUpdate(status=ChainStatus.FINALIZED, block_ref=7, events=[success_event(0)]),
        ]
        await tracker(make_client(updates=updates)).submit(transfer_set(), "s", "P", sink)
        assert sink.states == ["processing", "inBlock", "finalized"]

    @pytest.mark.asyncio
    async def test_in_block_without_pending_implies_processing(self, make_client, sink):
        updates = [
            StatusUpdate(status=ChainStatus.IN_BLOCK, block_ref=7),
            StatusUpdate(status=ChainStatus.FINALIZED, block_ref=7, events=[success_event(0)]),
        ]
        await tracker(make_client(updates=updates)).submit(transfer_set(), "s", "P", sink)
        assert sink.states == ["processing", "inBlock", "finalized"]

    @pytest.mark.asyncio
    async def test_block_reference_resolved_through_client(self, make_client, sink):
        updates = [StatusUpdate(status=ChainStatus.FINALIZED, block_ref="0xabc", events=[success_event(1)])]
        client = make_client(updates=updates, block_numbers={"0xabc": 500})
        receipt = await tracker(client).submit(transfer_set(), "s", "P", sink)
        assert receipt.block_number == 500
        assert sink.states == ["processing", "finalized"]

    @pytest.mark.asyncio
    async def test_no_success_event_means_no_link(self, make_client, statuses, sink):
        client = make_client(updates=statuses(block_ref=10, index=None))
        receipt = await tracker(client).submit(transfer_set(), "s", "P", sink)
        assert receipt.explorer_url is None
        assert receipt.message == "Amount in USDT: 10,50. Payment finalized in block: 10"

    @pytest.mark.asyncio
    async def test_retracted_keeps_waiting(self, make_client, sink):
        updates = [
            StatusUpdate(status=ChainStatus.READY),
            StatusUpdate(status=ChainStatus.IN_BLOCK, block_ref=1),
            StatusUpdate(status=ChainStatus.RETRACTED, block_ref=1),
            StatusUpdate(status=ChainStatus.FINALIZED, block_ref=2, events=[success_event(0)]),
        ]
        receipt = await tracker(make_client(updates=updates)).submit(transfer_set(), "s", "P", sink)
        assert receipt.block_number == 2
        assert sink.states == ["processing", "inBlock", "finalized"]

    @pytest.mark.asyncio
    async def test_without_sink(self, make_client, statuses):
        receipt = await tracker(make_client(updates=statuses())).submit(transfer_set(), "s", "P")
        assert receipt.block_number == 123456

    @pytest.mark.asyncio
    async def test_sink_errors_are_contained(self, make_client, statuses):
        def broken_sink(event):
            raise RuntimeError("ui gone")

        receipt = await tracker(make_client(updates=statuses())).submit(
            transfer_set(), "s", "P", broken_sink
        )
        assert receipt.block_number == 123456

    @pytest.mark.asyncio
    async def test_signer_passed_through(self, make_client, statuses):
        client = make_client(updates=statuses())
        signer = object()
        await tracker(client).submit(transfer_set(), signer, "P")
        _, payer, passed, _ = client.submitted[0]
        assert passed is signer
        assert payer == "P"


class TestHeaderLookup:
    @pytest.mark.asyncio
    async def test_retries_without_emitting(self, make_client, statuses, sink):
        client = make_client(updates=statuses(), header_failures=2)
        receipt = await tracker(client, header_retries=3).submit(transfer_set(), "s", "P", sink)
        assert receipt.block_number == 123456
        assert client.header_calls == 3
        assert sink.states == ["processing", "inBlock", "finalized"]

    @pytest.mark.asyncio
    async def test_exhausted_gives_fallback_receipt(self, make_client, statuses, sink):
        client = make_client(updates=statuses(), header_failures=10)
        receipt = await tracker(client, header_retries=2).submit(transfer_set(), "s", "P", sink)
        assert client.header_calls == 3
        assert receipt.block_number is None
        assert receipt.message.endswith("Payment confirmed, block details unavailable.")
        assert sink.events[-1].state is ProgressState.FINALIZED
        assert sink.events[-1].message == "Transaction finalized (limited details)."

    @pytest.mark.asyncio
    async def test_missing_block_reference(self, make_client, sink):
        updates = [StatusUpdate(status=ChainStatus.FINALIZED)]
        client = make_client(updates=updates)
        receipt = await tracker(client).submit(transfer_set(), "s", "P", sink)
        assert receipt.block_number is None
        assert client.header_calls == 0


class TestFailures:
    @pytest.mark.asyncio
    async def test_dispatch_error(self, make_client, sink):
        updates = [
            StatusUpdate(status=ChainStatus.READY),
            StatusUpdate(
                status=ChainStatus.IN_BLOCK,
                block_ref=9,
                dispatch_error=DispatchError("assets", "BalanceLow", ["Account balance must be greater than or equal to the transfer amount."]),
            ),
            StatusUpdate(status=ChainStatus.FINALIZED, block_ref=9, events=[success_event(0)]),
        ]
        client = make_client(updates=updates)
        with pytest.raises(DispatchFailure) as exc_info:
            await tracker(client).submit(transfer_set(), "s", "P", sink)

        assert exc_info.value.section == "assets"
        assert exc_info.value.name == "BalanceLow"
        assert "assets.BalanceLow" in str(exc_info.value)
        assert sink.states == ["processing", "error"]
        assert client.header_calls == 0
        assert client.stream_closed

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [ChainStatus.INVALID, ChainStatus.DROPPED, ChainStatus.USURPED, ChainStatus.FINALITY_TIMEOUT],
    )
    async def test_rejected_status(self, make_client, sink, status):
        updates = [StatusUpdate(status=ChainStatus.READY), StatusUpdate(status=status)]
        with pytest.raises(SubmissionFailure) as exc_info:
            await tracker(make_client(updates=updates)).submit(transfer_set(), "s", "P", sink)
        assert exc_info.value.raw.status is status
        assert sink.states == ["processing", "error"]

    @pytest.mark.asyncio
    async def test_network_error(self, make_client, sink):
        error = ConnectionError("rpc down")
        client = make_client(updates=[StatusUpdate(status=ChainStatus.READY), error])
        with pytest.raises(SubmissionFailure) as exc_info:
            await tracker(client).submit(transfer_set(), "s", "P", sink)
        assert exc_info.value.raw is error
        assert sink.states == ["processing", "error"]

    @pytest.mark.asyncio
    async def test_signer_error_before_submission(self, make_client, sink):
        client = make_client(sign_error=RuntimeError("bad nonce"))
        with pytest.raises(SubmissionFailure):
            await tracker(client).submit(transfer_set(), "s", "P", sink)
        assert sink.states == ["error"]

    @pytest.mark.asyncio
    async def test_stream_ends_early(self, make_client, sink):
        client = make_client(updates=[StatusUpdate(status=ChainStatus.IN_BLOCK, block_ref=1)])
        with pytest.raises(SubmissionFailure):
            await tracker(client).submit(transfer_set(), "s", "P", sink)
        assert sink.states == ["processing", "inBlock", "error"]

    @pytest.mark.asyncio
    async def test_status_timeout(self, make_client, sink):
        client = make_client(updates=[StatusUpdate(status=ChainStatus.READY)], hang=True)
        with pytest.raises(SubmissionFailure):
            await tracker(client, status_timeout=0.01).submit(transfer_set(), "s", "P", sink)
        assert sink.states == ["processing", "error"]
        assert client.stream_closed

    @pytest.mark.asyncio
    async def test_cancellation_text_after_broadcast_is_failure(self, make_client, sink):
        client = make_client(updates=[StatusUpdate(status=ChainStatus.READY), RuntimeError("Cancelled")])
        with pytest.raises(SubmissionFailure):
            await tracker(client).submit(transfer_set(), "s", "P", sink)
        assert sink.states == ["processing", "error"]


class TestCancellation:
    @pytest.mark.asyncio
    async def test_structured_signal(self, make_client, sink):
        client = make_client(sign_error=SigningCancelled())
        result = await tracker(client).submit(transfer_set(), "s", "P", sink)
        assert isinstance(result, Cancelled)
        assert sink.states == ["cancelled"]
        assert client.header_calls == 0

    @pytest.mark.asyncio
    async def test_string_marker_fallback(self, make_client, sink):
        client = make_client(sign_error=Exception("Rejected by user"))
        result = await tracker(client).submit(transfer_set(), "s", "P", sink)
        assert isinstance(result, Cancelled)
        assert result.message == "Rejected by user"


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_independent_submissions(self, make_client, statuses):
        first = make_client(updates=statuses(block_ref=1, index=0))
        second = make_client(updates=statuses(block_ref=2, index=1))
        receipts = await asyncio.gather(
            tracker(first).submit(transfer_set(), "s", "P"),
            tracker(second).submit(transfer_set(), "s", "Q"),
        )
        assert [r.block_number for r in receipts] == [1, 2]


class TestSubmissionState:
    def test_terminal_states(self):
        terminal = {s for s in SubmissionState if s.is_terminal}
        assert terminal == {SubmissionState.FINALIZED, SubmissionState.FAILED, SubmissionState.CANCELLED}
        assert not SubmissionState.IN_BLOCK.is_terminal
