from __future__ import annotations

from web3 import AsyncWeb3
from web3.contract import AsyncContract

from swapcycle.core.onchain.erc20_abi import ERC20_ABI
from swapcycle.core.onchain.evm_signer import EvmSigner
from swapcycle.core.structures.structures import TokenDescriptor
from swapcycle.core.utils.format_utils import format_units
from swapcycle.logging.logger import get_logger

log = get_logger(__name__)


class AllowanceManager:
    """
    Makes sure the router may spend the source token before a swap.

    `ensure_approved` reports every problem as False plus a log line; it never raises.
    """

    def __init__(self, signer: EvmSigner, spender_address: str) -> None:
        self.signer = signer
        self.spender_address = AsyncWeb3.to_checksum_address(spender_address)

    def _token_contract(self, token: TokenDescriptor) -> AsyncContract:
        return self.signer.web3.eth.contract(address=AsyncWeb3.to_checksum_address(token.address), abi=ERC20_ABI)

    async def ensure_approved(self, token: TokenDescriptor, amount: int) -> bool:
        """
        Approve exactly `amount` of `token` for the router when the current allowance is lower.

        Returns:
            True when no approval is needed or the approval was confirmed,
            False on insufficient balance or any read/submit/confirm failure.
        """
        if token.is_native:
            return True

        owner = self.signer.address
        try:
            contract = self._token_contract(token)

            balance = int(await contract.functions.balanceOf(owner).call())
            if balance < amount:
                log.error("[APPROVAL] Insufficient %s balance: %s %s", token.symbol,
                          format_units(balance, token.decimals), token.symbol)
                return False

            allowance = int(await contract.functions.allowance(owner, self.spender_address).call())
            if allowance >= amount:
                log.info("[APPROVAL] %s already approved (allowance=%s)", token.symbol,
                         format_units(allowance, token.decimals))
                return True

            log.info("[APPROVAL] Approving %s %s for router %s", format_units(amount, token.decimals),
                     token.symbol, self.spender_address)
            calldata = contract.encode_abi("approve", args=[self.spender_address, amount])
            tx_hash = await self.signer.send_transaction(to=token.address, data=calldata, value_wei=0)
            log.info("[APPROVAL] Approval TX sent: %s", tx_hash)
            await self.signer.wait_for_confirmation(tx_hash)
            log.info("[APPROVAL] Approval confirmed")
            return True
        except Exception as error:
            log.error("[APPROVAL] Approval failed: %s", error)
            return False
