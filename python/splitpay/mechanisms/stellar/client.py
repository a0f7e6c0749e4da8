"""Stellar implementation of the chain client.

Both legs of a transfer set go into one transaction as two payment
operations, so they succeed or fail together. Transactions are submitted
through Soroban RPC and balances are read from Horizon.

Stellar closes a ledger with finality, so a successful transaction is
reported as in-block and finalized in the same poll.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
from stellar_sdk import SorobanServer, TransactionBuilder, TransactionEnvelope

from ...chain import ChainEvent, ChainStatus, StatusUpdate
from ...config import Settings
from ...constants import SUCCESS_EVENT_METHOD, SUCCESS_EVENT_SECTION
from ...errors import InvalidAmount, SubmissionFailure
from ...signer import TransactionSigner
from ...types import TransferSet
from .constants import (
    DEFAULT_BASE_FEE_STROOPS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_TX_TIMEOUT_SECONDS,
    NATIVE_ASSET,
    STELLAR_DECIMALS,
    TX_EXPIRY_GRACE_SECONDS,
)
from .utils import (
    decode_dispatch_error,
    find_balance,
    get_horizon_url,
    get_network_passphrase,
    get_rpc_client,
    is_stellar_network,
    parse_asset,
    status_name,
    to_stellar_amount,
)

logger = logging.getLogger(__name__)

# Send statuses after which the transaction is known to the network
ACCEPTED_SEND_STATUSES = ("PENDING", "DUPLICATE")


class StellarChainClient:
    """Chain client for Stellar.

    Args:
        network: CAIP-2 network identifier.
        rpc_url: Soroban RPC URL. Required for pubnet.
        horizon_url: Horizon URL for balance queries.
        server: Preconfigured RPC client (overrides ``rpc_url``).
        http_client: Preconfigured HTTP client for Horizon.
        poll_interval: Seconds between confirmation polls.
        base_fee: Base fee per operation in stroops.
        tx_timeout: Transaction validity window in seconds.
        clock: Monotonic clock used to detect an expired transaction.
    """

    def __init__(
        self,
        network: str,
        rpc_url: str | None = None,
        horizon_url: str | None = None,
        server: SorobanServer | None = None,
        http_client: httpx.AsyncClient | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        base_fee: int = DEFAULT_BASE_FEE_STROOPS,
        tx_timeout: int = DEFAULT_TX_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not is_stellar_network(network):
            raise ValueError(f"Not a Stellar network: {network}")
        self._network = network
        self._passphrase = get_network_passphrase(network)
        self._server = server or get_rpc_client(network, rpc_url)
        self._horizon_url = get_horizon_url(network, horizon_url)
        self._http = http_client or httpx.AsyncClient(timeout=DEFAULT_HTTP_TIMEOUT_SECONDS)
        self._poll_interval = poll_interval
        self._base_fee = base_fee
        self._tx_timeout = tx_timeout
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "StellarChainClient":
        return cls(
            network=settings.network,
            rpc_url=settings.rpc_url,
            horizon_url=settings.horizon_url,
            poll_interval=settings.poll_interval,
        )

    @property
    def network(self) -> str:
        return self._network

    @property
    def network_passphrase(self) -> str:
        return self._passphrase

    async def get_balance(self, asset: str, account: str) -> int | None:
        """Balance in stroops via Horizon. None when the account or trustline is missing."""
        resp = await self._http.get(f"{self._horizon_url}/accounts/{account}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return find_balance(resp.json().get("balances", []), asset)

    async def sign_and_submit(
        self,
        transfer_set: TransferSet,
        payer: str,
        signer: TransactionSigner,
        fee_asset: str | None = None,
    ) -> AsyncIterator[StatusUpdate]:
        """Build, sign and submit ``transfer_set``, then poll until it settles.

        ``signer`` must implement ``TransactionSigner``; its
        ``sign_transaction`` may be sync or async. While the transaction is
        not yet visible each poll yields BROADCAST. Once its validity window
        has passed it yields DROPPED and stops.

        Raises:
            InvalidAmount: If the set is not in stroops or a leg is not positive.
            SubmissionFailure: If the RPC refuses the transaction.
        """
        if fee_asset and fee_asset != NATIVE_ASSET:
            logger.warning("Stellar fees are paid in XLM, ignoring fee asset %s", fee_asset)

        self._check_legs(transfer_set)
        expires_at = self._clock() + self._tx_timeout + TX_EXPIRY_GRACE_SECONDS
        envelope = await self._build(transfer_set, payer)
        signed = signer.sign_transaction(envelope.to_xdr(), network_passphrase=self._passphrase)
        if inspect.isawaitable(signed):
            signed = await signed
        signed_envelope = TransactionEnvelope.from_xdr(signed, self._passphrase)

        send_result = await asyncio.to_thread(self._server.send_transaction, signed_envelope)
        send_status = status_name(send_result.status)
        if send_status not in ACCEPTED_SEND_STATUSES:
            raise SubmissionFailure(f"Submission failed: {send_status}", raw=send_result)

        tx_hash = send_result.hash
        logger.info("Submitted %s for %s", tx_hash, payer)
        yield StatusUpdate(status=ChainStatus.READY)

        while True:
            await asyncio.sleep(self._poll_interval)
            result = await asyncio.to_thread(self._server.get_transaction, tx_hash)
            tx_status = status_name(result.status)

            if tx_status == "SUCCESS":
                yield StatusUpdate(status=ChainStatus.IN_BLOCK, block_ref=result.ledger)
                yield StatusUpdate(
                    status=ChainStatus.FINALIZED,
                    block_ref=result.ledger,
                    events=[
                        ChainEvent(
                            section=SUCCESS_EVENT_SECTION,
                            method=SUCCESS_EVENT_METHOD,
                            phase_index=result.application_order,
                            data={"hash": tx_hash},
                        )
                    ],
                )
                return

            if tx_status == "FAILED":
                yield StatusUpdate(
                    status=ChainStatus.IN_BLOCK,
                    block_ref=result.ledger,
                    dispatch_error=decode_dispatch_error(result.result_xdr),
                )
                return

            if self._clock() > expires_at:
                logger.warning("Transaction %s not seen before expiry", tx_hash)
                yield StatusUpdate(status=ChainStatus.DROPPED)
                return
            yield StatusUpdate(status=ChainStatus.BROADCAST)

    async def get_block_number(self, block_ref: Any) -> int:
        """Confirm ledger ``block_ref`` is readable and return its sequence."""
        sequence = int(block_ref)
        response = await asyncio.to_thread(
            self._server.get_ledgers, start_ledger=sequence, limit=1
        )
        if not response.ledgers:
            raise LookupError(f"Ledger {sequence} not found")
        return int(response.ledgers[0].sequence)

    async def aclose(self) -> None:
        await self._http.aclose()
        self._server.close()

    def _check_legs(self, transfer_set: TransferSet) -> None:
        if transfer_set.precision != STELLAR_DECIMALS:
            raise InvalidAmount(
                f"Stellar amounts have {STELLAR_DECIMALS} decimals, got {transfer_set.precision}"
            )
        for leg in transfer_set.legs:
            if leg.amount <= 0:
                raise InvalidAmount(f"Leg to {leg.destination} must be positive, got {leg.amount}")

    async def _build(self, transfer_set: TransferSet, payer: str) -> TransactionEnvelope:
        source = await asyncio.to_thread(self._server.load_account, payer)
        builder = TransactionBuilder(
            source_account=source,
            network_passphrase=self._passphrase,
            base_fee=self._base_fee,
        )
        for leg in transfer_set.legs:
            builder.append_payment_op(
                destination=leg.destination,
                asset=parse_asset(leg.asset),
                amount=to_stellar_amount(leg.amount),
            )
        builder.set_timeout(self._tx_timeout)
        return builder.build()
