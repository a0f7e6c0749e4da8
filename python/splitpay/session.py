"""Payment session: the connection-scoped context for split payments.

A session is created once a wallet is connected and a chain client is
available, and closed on disconnect. It replaces page-wide globals for the
client handle and the selected account.
"""

import asyncio
import contextlib
import logging
from collections.abc import Iterable
from decimal import Decimal

from .assets import AssetInfo, get_balance, has_sufficient_balance
from .builder import build_transfer_set
from .chain import ChainClient
from .config import Settings
from .errors import InsufficientBalance, InvalidAmount, MissingField, SplitPayError
from .fees import FeeReconciler
from .signer import Signer
from .tracker import ProgressSink, SubmissionTracker
from .types import Cancelled, PaymentResult, ProgressEvent, ProgressState

logger = logging.getLogger(__name__)


class SessionClosed(SplitPayError):
    """The session was used after ``close()``."""


class PaymentSession:
    """Connection-scoped payment context.

    Args:
        client: Chain client for the connected network.
        signer: Opaque signer from the wallet.
        payer: Selected account.
        fee_recipient: Account receiving the 1% leg.
        native: Native asset of the network.
        settings: Runtime settings; defaults when omitted.
        serialize_payments: Run at most one payment per payer at a time.
    """

    def __init__(
        self,
        client: ChainClient,
        signer: Signer,
        payer: str,
        fee_recipient: str,
        native: AssetInfo,
        settings: Settings | None = None,
        serialize_payments: bool = True,
    ):
        self._client = client
        self._signer = signer
        self._payer = payer
        self._fee_recipient = fee_recipient
        self._native = native
        self._settings = settings or Settings()
        self._serialize_payments = serialize_payments
        self._locks: dict[str, asyncio.Lock] = {}
        self._closed = False
        self._tracker = SubmissionTracker(
            client,
            explorer_url_template=self._settings.explorer_url,
            header_retries=self._settings.header_retries,
            header_retry_delay=self._settings.header_retry_delay,
            status_timeout=self._settings.status_timeout,
        )

    @property
    def payer(self) -> str:
        return self._payer

    @property
    def closed(self) -> bool:
        return self._closed

    def select_account(self, payer: str, signer: Signer | None = None) -> None:
        """Switch the selected account, and optionally its signer."""
        self._ensure_open()
        self._payer = payer
        if signer is not None:
            self._signer = signer
        logger.info("Selected account %s", payer)

    async def balances(self, assets: Iterable[AssetInfo]) -> dict[str, Decimal | None]:
        """Balances of the selected account by symbol. Failed queries map to None."""
        self._ensure_open()
        result: dict[str, Decimal | None] = {}
        for asset in assets:
            try:
                result[asset.symbol] = await get_balance(self._client, asset, self._payer)
            except Exception as e:
                logger.warning("Balance query for %s failed: %s", asset.symbol, e)
                result[asset.symbol] = None
        return result

    async def pay(
        self,
        asset: AssetInfo,
        recipient: str,
        amount: Decimal | float | int | str,
        progress: ProgressSink | None = None,
        fee_asset: AssetInfo | None = None,
        check_balance: bool = False,
    ) -> PaymentResult | Cancelled:
        """Pay ``amount`` of ``asset``: 99% to ``recipient``, 1% to the fee recipient.

        Args:
            asset: Asset to pay in.
            recipient: Account receiving 99%.
            amount: Amount in user units.
            progress: Optional progress sink.
            fee_asset: Asset nominated to cover network fees.
            check_balance: Refuse to submit when the balance is too low.

        Returns:
            PaymentResult with receipt and fee report, or Cancelled.

        Raises:
            InvalidAmount, MissingField: Before any network call.
            InsufficientBalance: When ``check_balance`` is set and funds are short.
            DispatchFailure, SubmissionFailure: From the submission.
        """
        self._ensure_open()
        payer = self._payer

        try:
            request = asset.payment_request(payer, recipient, self._fee_recipient, amount, fee_asset)
            transfer_set = build_transfer_set(request)
        except (InvalidAmount, MissingField) as e:
            _report_error(progress, str(e))
            raise

        async with self._payer_lock(payer):
            if check_balance:
                has_funds, balance = await has_sufficient_balance(
                    self._client, asset, payer, request.decimal_amount
                )
                if not has_funds:
                    error = InsufficientBalance(asset.symbol, balance, request.decimal_amount)
                    _report_error(progress, str(error))
                    raise error

            reconciler = FeeReconciler(
                self._client, self._native, fee_asset, self._settings.fee_tolerance
            )
            before = await reconciler.snapshot(payer)

            outcome = await self._tracker.submit(
                transfer_set,
                self._signer,
                payer,
                progress,
                display_decimals=asset.display_decimals,
            )
            if isinstance(outcome, Cancelled):
                return outcome

            moved = asset.to_decimal(transfer_set.total)
            fee = await reconciler.reconcile(
                payer,
                before,
                transferred_fee_asset=moved if asset == reconciler.fee_asset else 0,
                transferred_native=moved if asset.is_native else 0,
            )
            return PaymentResult(receipt=outcome, fee=fee)

    async def close(self) -> None:
        """Tear down the session and the chain client it owns."""
        if self._closed:
            return
        self._closed = True
        self._locks.clear()
        aclose = getattr(self._client, "aclose", None)
        if aclose is not None:
            await aclose()
        logger.info("Session closed for %s", self._payer)

    async def __aenter__(self) -> "PaymentSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _payer_lock(self, payer: str):
        if not self._serialize_payments:
            return contextlib.nullcontext()
        lock = self._locks.get(payer)
        if lock is None:
            lock = self._locks[payer] = asyncio.Lock()
        return lock

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosed("Payment session is closed")


def _report_error(progress: ProgressSink | None, message: str) -> None:
    if progress is None:
        return
    try:
        progress(ProgressEvent(state=ProgressState.ERROR, message=message))
    except Exception:
        logger.exception("Progress sink raised while reporting an error")
