"""Signer protocols and cancellation signalling."""

from typing import Protocol

from .constants import CANCELLATION_MARKERS


class SigningCancelled(Exception):
    """Raised at the signing boundary when the user declines to sign."""

    def __init__(self, message: str = "Signing cancelled by user"):
        super().__init__(message)


class Signer(Protocol):
    """Opaque credential obtained from a wallet.

    The orchestrator never calls into it; chain clients decide what a
    signer must provide.
    """


class TransactionSigner(Protocol):
    """Protocol for signers that sign a serialized transaction."""

    @property
    def address(self) -> str:
        """The signing account."""
        ...

    def sign_transaction(
        self,
        tx_xdr: str,
        *,
        network_passphrase: str,
    ) -> str:
        """Sign a transaction.

        Args:
            tx_xdr: Base64 XDR of the transaction to sign.
            network_passphrase: Network passphrase for signing context.

        Returns:
            Base64 XDR of the signed transaction.

        Raises:
            SigningCancelled: If the user declined.
        """
        ...


def is_cancellation_error(exc: BaseException) -> bool:
    """Whether ``exc`` means the user declined to sign.

    ``SigningCancelled`` is authoritative. Matching on the error text is a
    fallback for wallets that only report a message.
    """
    if isinstance(exc, SigningCancelled):
        return True
    text = str(exc).strip().lower()
    return any(marker in text for marker in CANCELLATION_MARKERS)
