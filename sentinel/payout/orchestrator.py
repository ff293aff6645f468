"""
Payout orchestration with instrument fallback.

Instruments are tried in order (BIO token first, then native SOL). The
verification hash doubles as the idempotency key: a hash that was already
paid returns its original receipt instead of transferring again.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from solders.pubkey import Pubkey

from sentinel.payout.base import PayoutInstrument, PayoutReceipt
from sentinel.payout.ledger import BioTokenInstrument, NativeSolInstrument, SolanaLedger
from sentinel.validation.ownership import is_valid_address

logger = logging.getLogger(__name__)


class PayoutOutcome(str, Enum):
    """Result of a payout attempt."""
    SENT = "sent"
    SKIPPED = "skipped"  # recipient address invalid, nothing attempted
    EXHAUSTED = "exhausted"  # every instrument failed


@dataclass
class PayoutResult:
    """Outcome plus receipt or per-instrument errors."""

    outcome: PayoutOutcome
    receipt: Optional[PayoutReceipt] = None
    errors: Dict[str, str] = field(default_factory=dict)
    reason: str = ""
    replayed: bool = False

    @property
    def sent(self) -> bool:
        return self.outcome == PayoutOutcome.SENT


class PayoutOrchestrator:
    """
    Executes grant payouts.

    Example:
        ```python
        orchestrator = PayoutOrchestrator.from_config(get_config())
        result = await orchestrator.execute(recipient, evaluation.verification_hash)
        if result.sent:
            print(result.receipt.instrument, result.receipt.signature)
        ```
    """

    def __init__(
        self,
        instruments: List[PayoutInstrument],
        address_validator: Callable[[str], bool] = is_valid_address,
        ledger: Optional[SolanaLedger] = None,
        token_mint: Optional[str] = None
    ):
        """
        Initialize orchestrator.

        Args:
            instruments: Instruments in fallback order
            address_validator: Recipient format check
            ledger: Ledger used for wallet queries
            token_mint: Primary token mint reported by wallet queries
        """
        if not instruments:
            raise ValueError("At least one payout instrument is required")
        self.instruments = list(instruments)
        self.address_validator = address_validator
        self.ledger = ledger
        self.token_mint = token_mint
        self._completed: Dict[str, PayoutReceipt] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @classmethod
    def from_config(cls, config) -> "PayoutOrchestrator":
        ledger = SolanaLedger.from_config(config)
        instruments = [
            BioTokenInstrument(ledger, config.bio_token_mint, ui_amount=config.bio_grant_amount),
            NativeSolInstrument(ledger, lamports=config.sol_grant_lamports),
        ]
        logger.info(f"Payout instruments: {instruments} (agent {ledger.public_key})")
        return cls(instruments, ledger=ledger, token_mint=config.bio_token_mint)

    def has_paid(self, verification_hash: str) -> bool:
        return verification_hash in self._completed

    async def execute(self, recipient: str, verification_hash: str) -> PayoutResult:
        """
        Pay the grant to ``recipient``.

        Never raises for transfer failures; the outcome reports them.
        """
        if not self.address_validator(recipient):
            logger.info(f"No valid wallet address for payout ('{recipient}'); skipping")
            return PayoutResult(
                outcome=PayoutOutcome.SKIPPED,
                reason=f"No valid wallet address for payout ('{recipient}').",
            )

        lock = self._locks.setdefault(verification_hash, asyncio.Lock())
        self._lock_users[verification_hash] = self._lock_users.get(verification_hash, 0) + 1
        try:
            async with lock:
                return await self._pay(recipient, verification_hash)
        finally:
            self._lock_users[verification_hash] -= 1
            if not self._lock_users[verification_hash]:
                del self._lock_users[verification_hash]
                del self._locks[verification_hash]

    async def _pay(self, recipient: str, verification_hash: str) -> PayoutResult:
        previous = self._completed.get(verification_hash)
        if previous is not None:
            logger.info(f"Payout for {verification_hash} already sent (tx {previous.signature})")
            return PayoutResult(outcome=PayoutOutcome.SENT, receipt=previous, replayed=True)

        errors: Dict[str, str] = {}
        for instrument in self.instruments:
            try:
                receipt = await instrument.transfer(recipient, verification_hash)
            except Exception as e:
                errors[instrument.kind.value] = str(e)
                logger.warning(f"{instrument.kind.value} payout failed: {e}")
                continue

            self._completed[verification_hash] = receipt
            logger.info(
                f"{receipt.instrument.value} payout sent to {recipient}: tx {receipt.signature}"
            )
            return PayoutResult(outcome=PayoutOutcome.SENT, receipt=receipt, errors=errors)

        logger.error(f"All payout instruments failed for {verification_hash}: {errors}")
        return PayoutResult(
            outcome=PayoutOutcome.EXHAUSTED,
            errors=errors,
            reason="Payout failed on every instrument: "
            + "; ".join(f"{k}: {v}" for k, v in errors.items()),
        )

    async def wallet_info(self) -> Dict[str, Any]:
        """Public key and balances of the agent wallet."""
        if self.ledger is None:
            raise RuntimeError("No ledger configured")

        info: Dict[str, Any] = {
            "publicKey": str(self.ledger.public_key),
            "solBalance": await self.ledger.get_sol_balance(),
            "bioBalance": "0",
            "bioTokenMint": self.token_mint or "N/A",
        }
        if self.token_mint:
            balance = await self.ledger.get_token_balance(Pubkey.from_string(self.token_mint))
            info["bioBalance"] = balance["uiAmount"]
        return info

    async def token_info(self) -> Dict[str, Any]:
        """Mint information for the primary token."""
        if self.ledger is None or not self.token_mint:
            raise RuntimeError("No token mint configured")
        mint = Pubkey.from_string(self.token_mint)
        try:
            info = await self.ledger.get_mint_info(mint)
        except Exception as e:
            info = {
                "address": self.token_mint,
                "decimals": 9,
                "supply": 0,
                "isInitialized": False,
                "error": str(e),
            }
        cluster = "?cluster=devnet" if "devnet" in self.ledger.rpc_url else ""
        info["explorerUrl"] = f"https://solscan.io/token/{self.token_mint}{cluster}"
        return info

    async def aclose(self):
        if self.ledger is not None:
            await self.ledger.aclose()
