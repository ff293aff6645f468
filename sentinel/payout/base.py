"""
Base interface for payout instruments.

An instrument transfers a fixed grant amount of one asset to a recipient and
attaches a memo linking the transfer to the evaluation that authorized it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from sentinel.models.submission import PayoutInstrumentKind


class PayoutError(Exception):
    """Raised when an instrument fails to complete a transfer."""

    def __init__(self, instrument: str, message: str, raw_error: Optional[Exception] = None):
        self.instrument = instrument
        self.raw_error = raw_error
        super().__init__(f"{instrument} transfer failed: {message}")


@dataclass
class PayoutReceipt:
    """A confirmed transfer."""

    signature: str
    instrument: PayoutInstrumentKind
    amount: float
    recipient: str
    memo: str


class PayoutInstrument(ABC):
    """A funding instrument with a fixed grant amount."""

    kind: PayoutInstrumentKind

    @property
    @abstractmethod
    def amount(self) -> float:
        """Grant amount in the instrument's display unit."""
        pass

    @abstractmethod
    async def transfer(self, recipient: str, memo: str) -> PayoutReceipt:
        """
        Transfer the grant amount to ``recipient``.

        Raises:
            PayoutError: If the transfer did not complete
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.value}, amount={self.amount})"
