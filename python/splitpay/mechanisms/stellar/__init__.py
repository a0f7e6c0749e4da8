"""Stellar chain client for split payments."""

from .client import StellarChainClient
from .constants import (
    NATIVE_ASSET,
    STELLAR_DECIMALS,
    STELLAR_PUBNET_CAIP2,
    STELLAR_TESTNET_CAIP2,
    USDC_TESTNET_ISSUER,
)
from .signer import KeypairSigner
from .utils import parse_asset, stellar_asset

XLM = stellar_asset("XLM")
USDC_TESTNET = stellar_asset("USDC", USDC_TESTNET_ISSUER)

__all__ = [
    "KeypairSigner",
    "NATIVE_ASSET",
    "STELLAR_DECIMALS",
    "STELLAR_PUBNET_CAIP2",
    "STELLAR_TESTNET_CAIP2",
    "StellarChainClient",
    "USDC_TESTNET",
    "USDC_TESTNET_ISSUER",
    "XLM",
    "parse_asset",
    "stellar_asset",
]
