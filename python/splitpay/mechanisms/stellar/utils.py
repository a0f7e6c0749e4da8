"""Utility functions for the Stellar chain client."""

import re
from decimal import Decimal, InvalidOperation

from stellar_sdk import Asset, SorobanServer
from stellar_sdk.xdr import TransactionResult

from ...assets import AssetInfo
from ...chain import DispatchError
from .constants import (
    DEFAULT_TESTNET_RPC_URL,
    NATIVE_ASSET,
    STELLAR_ACCOUNT_REGEX,
    STELLAR_ASSET_CODE_REGEX,
    STELLAR_DECIMALS,
    STELLAR_DESTINATION_ADDRESS_REGEX,
    STELLAR_NETWORK_TO_EXPLORER_URL,
    STELLAR_NETWORK_TO_HORIZON_URL,
    STELLAR_NETWORK_TO_PASSPHRASE,
    STELLAR_PUBNET_CAIP2,
    STELLAR_TESTNET_CAIP2,
)

_STROOP = Decimal(1).scaleb(-STELLAR_DECIMALS)


def is_stellar_network(network: str) -> bool:
    """Check if a CAIP-2 identifier is a Stellar network."""
    return network in STELLAR_NETWORK_TO_PASSPHRASE


def get_network_passphrase(network: str) -> str:
    """Get the Stellar network passphrase for a CAIP-2 identifier."""
    passphrase = STELLAR_NETWORK_TO_PASSPHRASE.get(network)
    if not passphrase:
        raise ValueError(f"Unknown Stellar network: {network}")
    return passphrase


def get_rpc_url(network: str, custom_url: str | None = None) -> str:
    """Get the RPC URL for a Stellar network."""
    if custom_url:
        return custom_url
    if network == STELLAR_TESTNET_CAIP2:
        return DEFAULT_TESTNET_RPC_URL
    if network == STELLAR_PUBNET_CAIP2:
        raise ValueError("Mainnet RPC URL must be provided via rpc_url config")
    raise ValueError(f"Unknown Stellar network: {network}")


def get_rpc_client(network: str, custom_url: str | None = None) -> SorobanServer:
    """Create a SorobanServer RPC client for the given network."""
    return SorobanServer(get_rpc_url(network, custom_url))


def get_horizon_url(network: str, custom_url: str | None = None) -> str:
    if custom_url:
        return custom_url.rstrip("/")
    url = STELLAR_NETWORK_TO_HORIZON_URL.get(network)
    if not url:
        raise ValueError(f"Unknown Stellar network: {network}")
    return url


def get_explorer_url(network: str) -> str:
    """Ledger link template for a Stellar network."""
    url = STELLAR_NETWORK_TO_EXPLORER_URL.get(network)
    if not url:
        raise ValueError(f"Unknown Stellar network: {network}")
    return url


def validate_stellar_account(address: str) -> bool:
    """Validate a Stellar account address (G-account only)."""
    return bool(re.match(STELLAR_ACCOUNT_REGEX, address))


def validate_stellar_destination_address(address: str) -> bool:
    """Validate a Stellar destination address (G or M-account)."""
    return bool(re.match(STELLAR_DESTINATION_ADDRESS_REGEX, address))


def parse_asset(asset: str) -> Asset:
    """Parse ``"native"`` or ``"CODE:ISSUER"`` into a stellar_sdk Asset.

    Raises:
        ValueError: If the notation is malformed.
    """
    if asset == NATIVE_ASSET:
        return Asset.native()

    code, sep, issuer = asset.partition(":")
    if not sep or not re.match(STELLAR_ASSET_CODE_REGEX, code):
        raise ValueError(f"Invalid Stellar asset: {asset}")
    if not validate_stellar_account(issuer):
        raise ValueError(f"Invalid Stellar asset issuer: {issuer}")
    return Asset(code, issuer)


def asset_id(asset: Asset) -> str:
    """Inverse of ``parse_asset``."""
    if asset.is_native():
        return NATIVE_ASSET
    return f"{asset.code}:{asset.issuer}"


def stellar_asset(
    code: str,
    issuer: str | None = None,
    display_decimals: int = 2,
) -> AssetInfo:
    """Describe a Stellar asset. Without an issuer the asset is XLM."""
    if issuer is None:
        return AssetInfo(
            symbol=code,
            asset_id=NATIVE_ASSET,
            decimals=STELLAR_DECIMALS,
            display_decimals=display_decimals,
        )
    if not re.match(STELLAR_ASSET_CODE_REGEX, code) or not validate_stellar_account(issuer):
        raise ValueError(f"Invalid Stellar asset: {code}:{issuer}")
    return AssetInfo(
        symbol=code,
        asset_id=f"{code}:{issuer}",
        decimals=STELLAR_DECIMALS,
        display_decimals=display_decimals,
    )


def to_stellar_amount(atomic: int) -> str:
    """Atomic units (stroops) to the 7-decimal amount string of a payment op."""
    if atomic < 0:
        raise ValueError(f"Amount must be non-negative, got {atomic}")
    return format((Decimal(atomic) * _STROOP).quantize(_STROOP), "f")


def from_stellar_amount(amount: str) -> int:
    """Horizon balance string (e.g. ``"10.5000000"``) to atomic units."""
    try:
        value = Decimal(amount)
    except InvalidOperation:
        raise ValueError(f"Invalid Stellar amount: {amount!r}") from None
    return int(value.scaleb(STELLAR_DECIMALS))


def find_balance(balances: list[dict], asset: str) -> int | None:
    """Pick ``asset`` out of a Horizon account's ``balances`` list."""
    for entry in balances:
        if asset == NATIVE_ASSET:
            if entry.get("asset_type") == "native":
                return from_stellar_amount(entry["balance"])
            continue
        if f"{entry.get('asset_code')}:{entry.get('asset_issuer')}" == asset:
            return from_stellar_amount(entry["balance"])
    return None


def status_name(status) -> str:
    """RPC status enums and plain strings to the bare status name."""
    return str(getattr(status, "value", status)).upper()


def decode_dispatch_error(result_xdr: str | None) -> DispatchError:
    """Decode a failed transaction's result into a DispatchError.

    The transaction result code becomes the error name; failing operation
    result codes become the documentation lines.
    """
    if not result_xdr:
        return DispatchError(section="transaction", name="txFAILED")

    try:
        result = TransactionResult.from_xdr(result_xdr)
    except Exception:
        return DispatchError(section="transaction", name="txFAILED", documentation=[result_xdr])

    code = result.result.code
    documentation: list[str] = []
    for op_result in result.result.results or []:
        tr = op_result.tr
        if tr is None or tr.payment_result is None:
            continue
        op_code = tr.payment_result.code
        if op_code.value != 0:
            documentation.append(op_code.name)
    return DispatchError(section="transaction", name=code.name, documentation=documentation)
