from __future__ import annotations

from typing import Optional

from loguru import logger
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.transaction import Transaction
from spl.token.instructions import create_associated_token_account, get_associated_token_address

from ...domain.models.chain import TransactionOptions
from ...errors import ProvisioningError
from ...ports.accounts import AccountProvisionerPort
from .chain_client import SolanaChainClient


class SolanaAccountProvisioner(AccountProvisionerPort):
    """
    Associated token accounts for the platform fee wallet.

    An address counts as existing only when it holds an account not owned by
    the system program (a bare SOL balance is not a token account).
    """

    def __init__(self, chain: SolanaChainClient, signer: Optional[Keypair] = None):
        self.chain = chain
        self.signer = signer

    @property
    def has_signer(self) -> bool:
        return self.signer is not None

    def derive_account(self, owner: str, mint: str) -> str:
        ata = get_associated_token_address(Pubkey.from_string(owner), Pubkey.from_string(mint))
        return str(ata)

    async def exists(self, address: str) -> bool:
        account = await self.chain.get_account_info(address)
        return account is not None and account.owner != SYSTEM_PROGRAM_ID

    async def create(self, owner: str, mint: str) -> str:
        if self.signer is None:
            raise ProvisioningError("no platform signer configured")

        payer = self.signer.pubkey()
        ix = create_associated_token_account(
            payer=payer,
            owner=Pubkey.from_string(owner),
            mint=Pubkey.from_string(mint),
        )
        blockhash = await self.chain.get_latest_blockhash()
        message = Message.new_with_blockhash([ix], payer, blockhash)
        tx = Transaction([self.signer], message, blockhash)

        signature = await self.chain.send_raw_transaction(bytes(tx), TransactionOptions())
        logger.info(f"ATA_CREATE | submitted | owner={owner} | mint={mint} | sig={signature}")
        return signature
