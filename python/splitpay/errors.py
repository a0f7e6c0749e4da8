"""Error taxonomy for split payments.

Validation errors (``InvalidAmount``, ``MissingField``) subclass ``ValueError``
and are raised before anything reaches the network. ``DispatchFailure`` and
``SubmissionFailure`` describe what went wrong after submission. A declined
signature is not an error: the tracker returns a ``Cancelled`` value instead.
"""

from typing import Any


class SplitPayError(Exception):
    """Base class for all split payment errors."""


class InvalidAmount(SplitPayError, ValueError):
    """Amount is not a positive finite number, or precision is negative."""


class MissingField(SplitPayError, ValueError):
    """A required account or asset identifier is absent."""

    def __init__(self, field_name: str):
        super().__init__(f"Missing required field: {field_name}")
        self.field_name = field_name


class InsufficientBalance(SplitPayError):
    """Payer balance does not cover the requested amount."""

    def __init__(self, asset: str, balance: Any, required: Any):
        super().__init__(
            f"Insufficient balance: {balance} {asset} available, {required} {asset} required"
        )
        self.asset = asset
        self.balance = balance
        self.required = required


class DispatchFailure(SplitPayError):
    """The transaction was included but the runtime rejected it."""

    def __init__(self, section: str, name: str, documentation: list[str] | None = None):
        self.section = section
        self.name = name
        self.documentation = list(documentation or [])
        detail = " ".join(self.documentation)
        message = f"Payment failed ({section}.{name})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SubmissionFailure(SplitPayError):
    """Signing or network layer error before the runtime dispatched the call."""

    def __init__(self, message: str, raw: Any = None):
        super().__init__(message)
        self.raw = raw
