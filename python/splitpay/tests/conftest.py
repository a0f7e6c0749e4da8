"""Shared fixtures: an in-memory chain client and a recording progress sink."""

import asyncio

import pytest

from splitpay.chain import ChainEvent, ChainStatus, StatusUpdate
from splitpay.constants import SUCCESS_EVENT_METHOD, SUCCESS_EVENT_SECTION

PAYER = "5PayerAccount"
RECIPIENT = "5RecipientAccount"
FEE_RECIPIENT = "5FeeCollectorAccount"


class FakeChainClient:
    """Scripted chain client.

    Args:
        updates: Statuses yielded in order. Exception instances are raised
            in place of a status.
        balances: Atomic balances per asset id. A list is consumed one value
            per query, the last value repeating. Exception instances raise.
        sign_error: Raised before the first status, as a signer would.
        header_failures: Number of block lookups that fail before succeeding.
        block_numbers: Block number per block reference (default: the reference).
        hang: Never finish the stream after the scripted updates.
    """

    def __init__(
        self,
        updates=None,
        balances=None,
        sign_error=None,
        header_failures=0,
        block_numbers=None,
        hang=False,
    ):
        self.updates = list(updates or [])
        self.balances = {k: (v if isinstance(v, list) else [v]) for k, v in (balances or {}).items()}
        self.sign_error = sign_error
        self.header_failures = header_failures
        self.block_numbers = dict(block_numbers or {})
        self.hang = hang

        self.submitted = []
        self.balance_queries = []
        self.header_calls = 0
        self.stream_closed = False
        self.closed = False

    async def get_balance(self, asset, account):
        self.balance_queries.append((asset, account))
        values = self.balances.get(asset)
        if not values:
            return None
        value = values.pop(0) if len(values) > 1 else values[0]
        if isinstance(value, BaseException):
            raise value
        return value

    async def sign_and_submit(self, transfer_set, payer, signer, fee_asset=None):
        self.submitted.append((transfer_set, payer, signer, fee_asset))
        try:
            if self.sign_error is not None:
                raise self.sign_error
            for update in self.updates:
                if isinstance(update, BaseException):
                    raise update
                yield update
            if self.hang:
                await asyncio.Event().wait()
        finally:
            self.stream_closed = True

    async def get_block_number(self, block_ref):
        self.header_calls += 1
        if self.header_calls <= self.header_failures:
            raise ConnectionError("header unavailable")
        return self.block_numbers.get(block_ref, block_ref)

    async def aclose(self):
        self.closed = True


def success_event(index):
    return ChainEvent(
        section=SUCCESS_EVENT_SECTION,
        method=SUCCESS_EVENT_METHOD,
        phase_index=index,
    )


def happy_path(block_ref=123456, index=2):
    """Ready, in-block, finalized with a success event at ``index``."""
    events = [] if index is None else [success_event(index)]
    return [
        StatusUpdate(status=ChainStatus.READY),
        StatusUpdate(status=ChainStatus.IN_BLOCK, block_ref=block_ref),
        StatusUpdate(status=ChainStatus.FINALIZED, block_ref=block_ref, events=events),
    ]


class RecordingSink:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    @property
    def states(self):
        return [e.state.value for e in self.events]


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_client():
    return FakeChainClient


@pytest.fixture
def statuses():
    return happy_path


@pytest.fixture
def accounts():
    return {"payer": PAYER, "recipient": RECIPIENT, "fee_recipient": FEE_RECIPIENT}
