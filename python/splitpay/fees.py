"""Network fee reconciliation from balance deltas.

The fee actually charged is only observable after the fact: depending on
signing options the network takes it from the native balance or from a
nominated fee asset. Fee estimation calls are not used.
"""

import logging
from decimal import Decimal

from .assets import AssetInfo, get_balance
from .chain import ChainClient
from .constants import FEE_TOLERANCE
from .types import BalanceSnapshot, FeeBand, FeeReport

logger = logging.getLogger(__name__)


def _as_decimal(value: Decimal | float | int | str) -> Decimal:
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def classify_fee(
    before: BalanceSnapshot,
    after: BalanceSnapshot,
    fee_symbol: str,
    native_symbol: str,
    transferred_fee_asset: Decimal | float | int | str = 0,
    transferred_native: Decimal | float | int | str = 0,
    tolerance: Decimal = FEE_TOLERANCE,
) -> FeeReport:
    """Pick the fee band from two snapshots.

    Precedence: fee asset delta, then native delta, then no fee. Each
    delta is net of what the payment itself moved in that asset.
    """
    if not (before.complete and after.complete):
        return FeeReport(band=FeeBand.UNDETERMINED, message="Network fee undetermined")

    fee_asset_paid = before.fee_asset - after.fee_asset - _as_decimal(transferred_fee_asset)
    if fee_asset_paid > tolerance:
        return FeeReport(
            band=FeeBand.FEE_ASSET,
            amount=fee_asset_paid,
            asset=fee_symbol,
            message=f"Network fee paid in {fee_symbol}: {fee_asset_paid:.4f} {fee_symbol}",
        )

    native_paid = before.native - after.native - _as_decimal(transferred_native)
    if native_paid > tolerance:
        return FeeReport(
            band=FeeBand.NATIVE,
            amount=native_paid,
            asset=native_symbol,
            message=f"Network fee paid in {native_symbol}: {native_paid:.4f} {native_symbol}",
        )

    return FeeReport(
        band=FeeBand.NONE,
        asset=fee_symbol,
        message=f"No significant network fee detected in {fee_symbol}",
    )


class FeeReconciler:
    """Snapshots payer balances and derives the fee a payment cost.

    Balance query failures never raise; they make the report UNDETERMINED.
    """

    def __init__(
        self,
        client: ChainClient,
        native: AssetInfo,
        fee_asset: AssetInfo | None = None,
        tolerance: Decimal = FEE_TOLERANCE,
    ):
        self._client = client
        self._native = native
        self._fee_asset = fee_asset or native
        self._tolerance = tolerance

    @property
    def fee_asset(self) -> AssetInfo:
        return self._fee_asset

    async def snapshot(self, payer: str) -> BalanceSnapshot:
        native = await self._query(self._native, payer)
        if self._fee_asset == self._native:
            fee_asset = native
        else:
            fee_asset = await self._query(self._fee_asset, payer)
        return BalanceSnapshot(native=native, fee_asset=fee_asset)

    async def reconcile(
        self,
        payer: str,
        before: BalanceSnapshot,
        transferred_fee_asset: Decimal | float | int | str = 0,
        transferred_native: Decimal | float | int | str = 0,
    ) -> FeeReport:
        """Take the post-payment snapshot and classify the fee.

        Args:
            payer: Paying account.
            before: Snapshot taken right before submission.
            transferred_fee_asset: Amount of the fee asset the payment moved
                (0 unless the payment was in that asset).
            transferred_native: Native amount the payment moved
                (0 for non-native payments).
        """
        after = await self.snapshot(payer)
        report = classify_fee(
            before,
            after,
            fee_symbol=self._fee_asset.symbol,
            native_symbol=self._native.symbol,
            transferred_fee_asset=transferred_fee_asset,
            transferred_native=transferred_native,
            tolerance=self._tolerance,
        )
        logger.info("Fee for %s: %s", payer, report.message)
        return report

    async def _query(self, asset: AssetInfo, payer: str) -> Decimal | None:
        try:
            return await get_balance(self._client, asset, payer)
        except Exception as e:
            logger.warning("Balance query for %s %s failed: %s", asset.symbol, payer, e)
            return None
