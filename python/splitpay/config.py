"""Environment-driven settings."""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

from .constants import (
    DEFAULT_EXPLORER_URL,
    DEFAULT_HEADER_RETRIES,
    DEFAULT_HEADER_RETRY_DELAY_SECONDS,
    DEFAULT_STATUS_TIMEOUT_SECONDS,
    FEE_TOLERANCE,
)

ENV_PREFIX = "SPLITPAY_"


@dataclass(frozen=True)
class Settings:
    """Runtime settings for a payment session.

    Attributes:
        network: Network identifier (e.g. "stellar:testnet").
        rpc_url: RPC endpoint used for submission. None uses the network default.
        horizon_url: Balance endpoint. None uses the network default.
        fee_recipient: Account that receives the 1% leg.
        explorer_url: Explorer link template with ``{extrinsic_id}``, ``{block}``
            or ``{index}`` fields. None picks the template for ``network``.
        header_retries: Extra block header lookups after finality.
        header_retry_delay: Seconds between header lookups.
        status_timeout: Seconds to wait for each status; None waits forever.
        poll_interval: Seconds between confirmation polls.
        fee_tolerance: Balance delta treated as no fee.
    """

    network: str = "stellar:testnet"
    rpc_url: str | None = None
    horizon_url: str | None = None
    fee_recipient: str = ""
    explorer_url: str | None = None
    header_retries: int = DEFAULT_HEADER_RETRIES
    header_retry_delay: float = DEFAULT_HEADER_RETRY_DELAY_SECONDS
    status_timeout: float | None = DEFAULT_STATUS_TIMEOUT_SECONDS
    poll_interval: float = 2.0
    fee_tolerance: Decimal = FEE_TOLERANCE

    def __post_init__(self):
        if self.explorer_url is None:
            object.__setattr__(self, "explorer_url", default_explorer_url(self.network))

    @classmethod
    def from_env(cls, dotenv_path: str | None = None, load: bool = True) -> "Settings":
        """Build settings from ``SPLITPAY_*`` environment variables.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        if load:
            load_dotenv(dotenv_path)

        timeout = _get("STATUS_TIMEOUT")
        return cls(
            network=_get("NETWORK") or cls.network,
            rpc_url=_get("RPC_URL"),
            horizon_url=_get("HORIZON_URL"),
            fee_recipient=_get("FEE_RECIPIENT") or "",
            explorer_url=_get("EXPLORER_URL"),
            header_retries=_parse(int, "HEADER_RETRIES", DEFAULT_HEADER_RETRIES),
            header_retry_delay=_parse(
                float, "HEADER_RETRY_DELAY", DEFAULT_HEADER_RETRY_DELAY_SECONDS
            ),
            status_timeout=(
                None
                if timeout is not None and timeout.lower() in ("none", "0")
                else _parse(float, "STATUS_TIMEOUT", DEFAULT_STATUS_TIMEOUT_SECONDS)
            ),
            poll_interval=_parse(float, "POLL_INTERVAL", 2.0),
            fee_tolerance=_parse(Decimal, "FEE_TOLERANCE", FEE_TOLERANCE),
        )


def default_explorer_url(network: str) -> str:
    """Explorer link template for ``network``."""
    from .mechanisms.stellar.utils import get_explorer_url, is_stellar_network

    if is_stellar_network(network):
        return get_explorer_url(network)
    return DEFAULT_EXPLORER_URL


def _get(name: str) -> str | None:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse(kind, name: str, default):
    raw = _get(name)
    if raw is None:
        return default
    try:
        return kind(raw)
    except (ValueError, InvalidOperation):
        raise ValueError(f"Invalid value for {ENV_PREFIX}{name}: {raw!r}") from None
