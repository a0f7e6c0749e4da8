"""Signers for the Stellar chain client."""

from stellar_sdk import Keypair, TransactionEnvelope


class KeypairSigner:
    """Signs transactions with a local keypair.

    Implements the ``TransactionSigner`` protocol.
    """

    def __init__(self, keypair: Keypair):
        if not keypair.can_sign():
            raise ValueError("Keypair has no secret key")
        self._keypair = keypair

    @classmethod
    def from_secret(cls, secret: str) -> "KeypairSigner":
        return cls(Keypair.from_secret(secret))

    @property
    def address(self) -> str:
        return self._keypair.public_key

    def sign_transaction(self, tx_xdr: str, *, network_passphrase: str) -> str:
        envelope = TransactionEnvelope.from_xdr(tx_xdr, network_passphrase)
        envelope.sign(self._keypair)
        return envelope.to_xdr()
