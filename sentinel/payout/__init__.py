"""Grant payouts with instrument fallback."""

from sentinel.payout.base import PayoutError, PayoutInstrument, PayoutReceipt
from sentinel.payout.ledger import BioTokenInstrument, NativeSolInstrument, SolanaLedger, load_keypair
from sentinel.payout.orchestrator import PayoutOrchestrator, PayoutOutcome, PayoutResult

__all__ = [
    "PayoutError",
    "PayoutInstrument",
    "PayoutReceipt",
    "BioTokenInstrument",
    "NativeSolInstrument",
    "SolanaLedger",
    "load_keypair",
    "PayoutOrchestrator",
    "PayoutOutcome",
    "PayoutResult",
]
