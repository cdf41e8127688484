"""
fee_mint_selector.py - Choose the platform fee mint and make sure its account exists

Selection order:
1. The aggregator's recommended fee mint, if the platform already holds an
   associated account for it.
2. Swap-mode rules:
   - ExactOut: input mint (aggregator only accepts input-side fees here)
   - ExactIn / empty: wSOL when either leg is SOL, else the input mint
   - anything else: input mint, with a warning
3. Ensure the associated account, creating it when a platform signer is
   configured.

Native SOL has no token account, so it is always rewritten to wSOL before
derivation.
"""

from __future__ import annotations

import json
from typing import Optional, Union

from loguru import logger

from ...config.solana_tokens import WSOL_MINT, is_sol_mint, normalize_mint
from ...domain.models.fees import FeeMintSelection
from ...errors import ProvisioningError, SettlementError
from ...ports.accounts import AccountProvisionerPort

SWAP_MODE_EXACT_IN = "ExactIn"
SWAP_MODE_EXACT_OUT = "ExactOut"


def analyze_quote_fee_mint(raw_payload: Union[bytes, str, None]) -> str:
    """Return ``platformFee.feeMint`` from a raw aggregator quote, or "" if absent."""
    if not raw_payload:
        return ""
    try:
        payload = json.loads(raw_payload)
    except (TypeError, ValueError) as e:
        logger.debug(f"FEE_MINT_ANALYZE | unparsable quote | {e}")
        return ""
    if not isinstance(payload, dict):
        return ""
    platform_fee = payload.get("platformFee")
    if isinstance(platform_fee, dict) and isinstance(platform_fee.get("feeMint"), str):
        return platform_fee["feeMint"]
    return ""


def mint_for_swap_mode(input_mint: str, output_mint: str, swap_mode: str) -> str:
    """Rule-based fee mint (no account checks)."""
    if swap_mode == SWAP_MODE_EXACT_OUT:
        return normalize_mint(input_mint)
    if swap_mode in (SWAP_MODE_EXACT_IN, ""):
        if is_sol_mint(output_mint) or is_sol_mint(input_mint):
            return WSOL_MINT
        return input_mint
    logger.warning(f"FEE_MINT | unknown swap mode, defaulting to input mint | swap_mode={swap_mode!r}")
    return normalize_mint(input_mint)


class FeeMintSelector:
    def __init__(
        self,
        provisioner: AccountProvisionerPort,
        platform_fee_account: str = "",
    ):
        self.provisioner = provisioner
        self.platform_fee_account = platform_fee_account

    async def select_fee_mint(
        self,
        input_mint: str,
        output_mint: str,
        swap_mode: str = SWAP_MODE_EXACT_IN,
        recommended_fee_mint: Optional[str] = None,
    ) -> Optional[FeeMintSelection]:
        """
        Pick the fee mint and return it with the platform's account for it.

        Returns None when no platform fee account is configured. Raises
        ProvisioningError when the account is missing and cannot be created.
        """
        if not self.platform_fee_account:
            logger.debug("FEE_MINT | no platform fee account configured")
            return None

        if recommended_fee_mint:
            selection = await self._existing_account(recommended_fee_mint)
            if selection is not None:
                logger.info(
                    f"FEE_MINT | aggregator recommendation | mint={selection.selected_mint} | "
                    f"ata={selection.fee_account_address}"
                )
                return selection
            logger.warning(f"FEE_MINT | recommended mint has no account | mint={recommended_fee_mint}")

        selected = mint_for_swap_mode(input_mint, output_mint, swap_mode)
        address = await self._ensure_account(selected)
        logger.info(f"FEE_MINT | selected | mint={selected} | ata={address} | swap_mode={swap_mode or '<empty>'}")
        return FeeMintSelection(selected_mint=selected, fee_account_address=address)

    async def _existing_account(self, mint: str) -> Optional[FeeMintSelection]:
        mint = normalize_mint(mint)
        try:
            address = self.provisioner.derive_account(self.platform_fee_account, mint)
            if await self.provisioner.exists(address):
                return FeeMintSelection(selected_mint=mint, fee_account_address=address)
        except (SettlementError, ValueError) as e:
            logger.debug(f"FEE_MINT | recommended mint check failed | mint={mint} | {e}")
        return None

    async def _ensure_account(self, mint: str) -> str:
        mint = normalize_mint(mint)
        try:
            address = self.provisioner.derive_account(self.platform_fee_account, mint)
        except ValueError as e:
            raise ProvisioningError(f"cannot derive fee account for mint {mint}: {e}") from e

        try:
            found = await self.provisioner.exists(address)
        except SettlementError as e:
            raise ProvisioningError(f"cannot check fee account {address}: {e}") from e
        if found:
            return address

        if not self.provisioner.has_signer:
            logger.warning(f"FEE_MINT | account missing and no signer | mint={mint} | ata={address}")
            raise ProvisioningError(f"fee account {address} for mint {mint} does not exist and no signer is configured")

        logger.info(f"FEE_ATA_CREATE | start | mint={mint} | ata={address}")
        try:
            signature = await self.provisioner.create(self.platform_fee_account, mint)
        except SettlementError as e:
            raise ProvisioningError(f"failed to create fee account for mint {mint}: {e}") from e
        logger.info(f"FEE_ATA_CREATE | done | mint={mint} | ata={address} | sig={signature}")
        return address
