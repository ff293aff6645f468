"""
Solana ledger access and payout instruments.

- BioTokenInstrument: BIO SPL token grant (primary)
- NativeSolInstrument: native SOL grant (fallback)

Both instruments sign with the service's agent keypair, set a priority fee
and attach a Memo program instruction carrying the verification hash.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TxOpts
from solders.compute_budget import set_compute_unit_price
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    TransferCheckedParams,
    create_associated_token_account,
    get_associated_token_address,
    transfer_checked,
)

from sentinel.models.submission import PayoutInstrumentKind
from sentinel.payout.base import PayoutError, PayoutInstrument, PayoutReceipt

logger = logging.getLogger(__name__)

MEMO_PROGRAM_ID = Pubkey.from_string("MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr")
LAMPORTS_PER_SOL = 1_000_000_000
TOKEN_MEMO_PREFIX = "[DESCI SENTINEL] Grant: "


def load_keypair(raw_key: Optional[str]) -> Keypair:
    """
    Load the agent keypair from a JSON byte array.

    Falls back to an ephemeral keypair (no funds, so no payouts) when the
    key is missing or invalid.
    """
    if raw_key:
        try:
            secret = bytes(json.loads(raw_key))
            if len(secret) == 64:
                return Keypair.from_bytes(secret)
            logger.warning(f"AGENT_PRIVATE_KEY has {len(secret)} bytes, expected 64")
        except (ValueError, TypeError) as e:
            logger.warning(f"AGENT_PRIVATE_KEY is invalid: {e}")
    logger.warning("Using ephemeral agent keypair; payouts will fail until a funded key is set")
    return Keypair()


def memo_instruction(memo: str) -> Instruction:
    return Instruction(MEMO_PROGRAM_ID, memo.encode("utf-8"), [])


class SolanaLedger:
    """Thin async wrapper over the Solana RPC for the agent wallet."""

    def __init__(
        self,
        rpc_url: str,
        keypair: Keypair,
        compute_unit_price: int = 1000,
        client: Optional[AsyncClient] = None
    ):
        self.rpc_url = rpc_url
        self.keypair = keypair
        self.compute_unit_price = compute_unit_price
        self.client = client or AsyncClient(rpc_url, commitment=Confirmed)

    @classmethod
    def from_config(cls, config) -> "SolanaLedger":
        return cls(
            config.solana_rpc_url,
            load_keypair(config.agent_private_key),
            compute_unit_price=config.compute_unit_price,
        )

    @property
    def public_key(self) -> Pubkey:
        return self.keypair.pubkey()

    async def get_sol_balance(self) -> float:
        response = await self.client.get_balance(self.public_key)
        return response.value / LAMPORTS_PER_SOL

    async def get_mint_info(self, mint: Pubkey) -> Dict[str, Any]:
        response = await self.client.get_token_supply(mint)
        supply = response.value
        return {
            "address": str(mint),
            "decimals": supply.decimals,
            "supply": int(supply.amount),
            "isInitialized": True,
        }

    async def get_token_balance(self, mint: Pubkey, owner: Optional[Pubkey] = None) -> Dict[str, Any]:
        """Balance of the owner's associated token account (zero when missing)."""
        ata = get_associated_token_address(owner or self.public_key, mint)
        try:
            response = await self.client.get_token_account_balance(ata)
            value = response.value
            return {
                "amount": int(value.amount),
                "decimals": value.decimals,
                "uiAmount": value.ui_amount_string,
            }
        except Exception as e:
            logger.debug(f"No token account {ata} for mint {mint}: {e}")
            return {"amount": 0, "decimals": 9, "uiAmount": "0"}

    async def account_exists(self, address: Pubkey) -> bool:
        response = await self.client.get_account_info(address)
        return response.value is not None

    async def send(self, instructions: List[Instruction]) -> str:
        """Sign, send and confirm a transaction; returns its signature."""
        priority = set_compute_unit_price(self.compute_unit_price)
        blockhash = (await self.client.get_latest_blockhash()).value.blockhash
        message = Message.new_with_blockhash([priority, *instructions], self.public_key, blockhash)
        transaction = Transaction([self.keypair], message, blockhash)

        response = await self.client.send_transaction(
            transaction, opts=TxOpts(preflight_commitment=Confirmed)
        )
        signature = response.value
        await self.client.confirm_transaction(signature, commitment=Confirmed)
        return str(signature)

    def explorer_url(self, signature: str) -> str:
        cluster = "?cluster=devnet" if "devnet" in self.rpc_url else ""
        return f"https://solscan.io/tx/{signature}{cluster}"

    async def aclose(self):
        await self.client.close()


class NativeSolInstrument(PayoutInstrument):
    """Native SOL transfer through the system program."""

    kind = PayoutInstrumentKind.SOL

    def __init__(self, ledger: SolanaLedger, lamports: int = 50_000_000):
        self.ledger = ledger
        self.lamports = lamports

    @property
    def amount(self) -> float:
        return self.lamports / LAMPORTS_PER_SOL

    async def transfer(self, recipient: str, memo: str) -> PayoutReceipt:
        logger.info(f"SOL payout: {self.amount} SOL → {recipient}")
        try:
            instruction = transfer(
                TransferParams(
                    from_pubkey=self.ledger.public_key,
                    to_pubkey=Pubkey.from_string(recipient),
                    lamports=self.lamports,
                )
            )
            signature = await self.ledger.send([instruction, memo_instruction(memo)])
        except Exception as e:
            raise PayoutError(self.kind.value, str(e), raw_error=e) from e

        return PayoutReceipt(
            signature=signature,
            instrument=self.kind,
            amount=self.amount,
            recipient=recipient,
            memo=memo,
        )


class BioTokenInstrument(PayoutInstrument):
    """BIO SPL token transfer between associated token accounts."""

    kind = PayoutInstrumentKind.BIO

    def __init__(self, ledger: SolanaLedger, mint: str, ui_amount: float = 100.0):
        self.ledger = ledger
        self.mint = Pubkey.from_string(mint)
        self.ui_amount = ui_amount

    @property
    def amount(self) -> float:
        return self.ui_amount

    async def transfer(self, recipient: str, memo: str) -> PayoutReceipt:
        logger.info(f"BIO payout: {self.ui_amount} BIO → {recipient}")
        try:
            owner = self.ledger.public_key
            recipient_key = Pubkey.from_string(recipient)
            decimals = (await self.ledger.get_mint_info(self.mint))["decimals"]
            raw_amount = int(self.ui_amount * (10 ** decimals))

            source = get_associated_token_address(owner, self.mint)
            destination = get_associated_token_address(recipient_key, self.mint)

            instructions: List[Instruction] = []
            if not await self.ledger.account_exists(source):
                instructions.append(create_associated_token_account(owner, owner, self.mint))
            if not await self.ledger.account_exists(destination):
                instructions.append(create_associated_token_account(owner, recipient_key, self.mint))

            instructions.append(
                transfer_checked(
                    TransferCheckedParams(
                        program_id=TOKEN_PROGRAM_ID,
                        source=source,
                        mint=self.mint,
                        dest=destination,
                        owner=owner,
                        amount=raw_amount,
                        decimals=decimals,
                    )
                )
            )
            instructions.append(memo_instruction(f"{TOKEN_MEMO_PREFIX}{memo}"))
            signature = await self.ledger.send(instructions)
        except Exception as e:
            logger.error(f"BIO token transfer failed: {e}")
            raise PayoutError(self.kind.value, str(e), raw_error=e) from e

        logger.info(f"BIO grant sent: {self.ui_amount} BIO → {recipient} (tx {signature})")
        return PayoutReceipt(
            signature=signature,
            instrument=self.kind,
            amount=self.ui_amount,
            recipient=recipient,
            memo=memo,
        )
