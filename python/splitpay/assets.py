"""Asset descriptions and balance helpers."""

import logging
from dataclasses import dataclass
from decimal import Decimal

from .chain import ChainClient
from .split import parse_amount
from .types import PaymentRequest

logger = logging.getLogger(__name__)

NATIVE_ASSET_ID = "native"


@dataclass(frozen=True)
class AssetInfo:
    """A fungible asset on the settlement layer.

    Attributes:
        symbol: Display symbol (e.g. "USDT").
        asset_id: Identifier passed to the chain client.
        decimals: Decimal places of one atomic unit.
        display_decimals: Fraction digits shown in receipts.
    """

    symbol: str
    asset_id: str
    decimals: int
    display_decimals: int = 2

    @property
    def is_native(self) -> bool:
        return self.asset_id == NATIVE_ASSET_ID

    def to_decimal(self, atomic: int) -> Decimal:
        return Decimal(atomic) / (Decimal(10) ** self.decimals)

    def payment_request(
        self,
        payer: str,
        recipient: str,
        fee_recipient: str,
        amount: Decimal | float | int | str,
        fee_asset: "AssetInfo | None" = None,
    ) -> PaymentRequest:
        return PaymentRequest(
            asset=self.asset_id,
            precision=self.decimals,
            payer=payer,
            recipient=recipient,
            fee_recipient=fee_recipient,
            amount=amount,
            fee_asset=fee_asset.asset_id if fee_asset else None,
            symbol=self.symbol,
        )


# Polkadot Asset Hub
DOT = AssetInfo(symbol="DOT", asset_id=NATIVE_ASSET_ID, decimals=10, display_decimals=2)
USDT = AssetInfo(symbol="USDT", asset_id="1984", decimals=6, display_decimals=4)
BRLD = AssetInfo(symbol="BRLd", asset_id="50000282", decimals=10, display_decimals=2)

ASSET_HUB_ASSETS: dict[str, AssetInfo] = {a.symbol: a for a in (DOT, USDT, BRLD)}


def get_asset(symbol: str, assets: dict[str, AssetInfo] | None = None) -> AssetInfo:
    registry = ASSET_HUB_ASSETS if assets is None else assets
    try:
        return registry[symbol]
    except KeyError:
        raise ValueError(f"Unknown asset: {symbol}") from None


async def get_balance(client: ChainClient, asset: AssetInfo, account: str) -> Decimal:
    """Balance of ``account`` in user units. No record on chain counts as zero."""
    atomic = await client.get_balance(asset.asset_id, account)
    if atomic is None:
        return Decimal(0)
    return asset.to_decimal(atomic)


async def has_sufficient_balance(
    client: ChainClient,
    asset: AssetInfo,
    account: str,
    required: Decimal | float | int | str,
) -> tuple[bool, Decimal]:
    """Check whether ``account`` holds at least ``required`` of ``asset``.

    Returns:
        Tuple of (has_funds, balance).
    """
    balance = await get_balance(client, asset, account)
    has_funds = balance >= parse_amount(required)
    if not has_funds:
        logger.info("Balance check failed for %s: %s %s", account, balance, asset.symbol)
    return has_funds, balance
