"""
chain_client.py - Solana RPC adapter

Submission goes through ``send_raw_transaction`` with preflight enabled;
status comes from ``getSignatureStatuses`` with history search so older
signatures still resolve.

Status mapping:
- no entry            -> Unknown
- err set             -> Failed (err text kept)
- processed/confirmed/finalized -> Processed/Confirmed/Finalized
"""

from __future__ import annotations

from typing import Dict, Optional

from loguru import logger
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment as RpcCommitment
from solana.rpc.commitment import Confirmed, Finalized, Processed
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.account import Account
from solders.hash import Hash
from solders.message import from_bytes_versioned
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction_status import TransactionConfirmationStatus

from ...config.settings import SolanaSettings
from ...domain.models.chain import ChainTxStatus, Commitment, TransactionOptions, TransactionStatus
from ...errors import ChainError, UpstreamError, ValidationError
from ...ports.chain import ChainClientPort, FeeEstimatorPort

_COMMITMENTS: Dict[Commitment, RpcCommitment] = {
    Commitment.PROCESSED: Processed,
    Commitment.CONFIRMED: Confirmed,
    Commitment.FINALIZED: Finalized,
}

_CONFIRMATION_STATUS = (
    (TransactionConfirmationStatus.Processed, ChainTxStatus.PROCESSED),
    (TransactionConfirmationStatus.Confirmed, ChainTxStatus.CONFIRMED),
    (TransactionConfirmationStatus.Finalized, ChainTxStatus.FINALIZED),
)


def _map_confirmation(level: Optional[TransactionConfirmationStatus]) -> ChainTxStatus:
    for rpc_level, mapped in _CONFIRMATION_STATUS:
        if level == rpc_level:
            return mapped
    return ChainTxStatus.UNKNOWN


class SolanaChainClient(ChainClientPort, FeeEstimatorPort):
    def __init__(self, settings: SolanaSettings, client: Optional[AsyncClient] = None):
        self.settings = settings
        self._client = client

    def _get_client(self) -> AsyncClient:
        if self._client is None:
            self._client = AsyncClient(
                self.settings.rpc_url,
                commitment=_COMMITMENTS[Commitment(self.settings.commitment)],
                timeout=self.settings.http_timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def send_raw_transaction(self, raw_tx: bytes, opts: TransactionOptions) -> str:
        tx_opts = TxOpts(
            skip_preflight=opts.skip_preflight,
            preflight_commitment=_COMMITMENTS[opts.preflight_commitment],
            max_retries=opts.max_retries,
        )
        try:
            resp = await self._get_client().send_raw_transaction(raw_tx, opts=tx_opts)
        except RPCException as e:
            logger.error(f"SOLANA_SEND | rejected | {e}")
            raise ChainError(str(e)) from e
        except SolanaRpcException as e:
            logger.error(f"SOLANA_SEND | rpc unreachable | {e}")
            raise ChainError(f"rpc error: {e}") from e

        signature = str(resp.value)
        logger.info(f"SOLANA_SEND | ok | sig={signature}")
        return signature

    async def get_transaction_status(self, signature: str) -> TransactionStatus:
        try:
            sig = Signature.from_string(signature)
        except ValueError as e:
            raise ValidationError(f"invalid signature: {signature}") from e

        try:
            resp = await self._get_client().get_signature_statuses([sig], search_transaction_history=True)
        except (RPCException, SolanaRpcException) as e:
            logger.warning(f"SOLANA_STATUS | query failed | sig={signature} | {e}")
            raise UpstreamError(f"failed to get signature status: {e}") from e

        status = resp.value[0] if resp.value else None
        if status is None:
            return TransactionStatus(status=ChainTxStatus.UNKNOWN)

        if status.err is not None:
            return TransactionStatus(
                status=ChainTxStatus.FAILED,
                confirmations=status.confirmations,
                error=str(status.err),
                slot=status.slot,
            )

        mapped = _map_confirmation(status.confirmation_status)
        return TransactionStatus(status=mapped, confirmations=status.confirmations, slot=status.slot)

    async def get_fee_for_message(self, message: bytes) -> Optional[int]:
        try:
            msg = from_bytes_versioned(message)
        except Exception as e:
            raise ValidationError(f"message is not a serialized transaction message: {e}") from e
        try:
            resp = await self._get_client().get_fee_for_message(msg)
        except (RPCException, SolanaRpcException) as e:
            raise UpstreamError(f"failed to get fee for message: {e}") from e
        return resp.value

    async def get_account_info(self, address: str) -> Optional[Account]:
        try:
            resp = await self._get_client().get_account_info(Pubkey.from_string(address))
        except (RPCException, SolanaRpcException) as e:
            raise UpstreamError(f"failed to get account info for {address}: {e}") from e
        return resp.value

    async def get_latest_blockhash(self) -> Hash:
        try:
            resp = await self._get_client().get_latest_blockhash()
        except (RPCException, SolanaRpcException) as e:
            raise UpstreamError(f"failed to get latest blockhash: {e}") from e
        return resp.value.blockhash
