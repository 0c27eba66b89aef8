from __future__ import annotations

from swapcycle.core.errors import ApprovalFailedError, InvalidRouteError
from swapcycle.core.onchain.allowance_manager import AllowanceManager
from swapcycle.core.onchain.evm_signer import EvmSigner
from swapcycle.core.structures.structures import RouteQuote, TokenDescriptor, TransactionOutcome
from swapcycle.logging.logger import get_logger

log = get_logger(__name__)


class SwapExecutor:
    """
    Submits DODO route quotes as transactions from the local signer.

    Every failure propagates; the caller decides whether the batch goes on.
    """

    def __init__(
            self,
            signer: EvmSigner,
            allowance_manager: AllowanceManager,
            default_gas_limit: int = 500_000,
    ) -> None:
        self.signer = signer
        self.allowance_manager = allowance_manager
        self.default_gas_limit = default_gas_limit

    async def execute_swap(self, quote: RouteQuote, from_token: TokenDescriptor, amount: int) -> TransactionOutcome:
        if not from_token.is_native:
            approved = await self.allowance_manager.ensure_approved(from_token, amount)
            if not approved:
                raise ApprovalFailedError("Token approval failed")

        try:
            if not quote.has_calldata:
                raise InvalidRouteError("Invalid transaction data from DODO API")

            gas_limit = quote.gas_limit or self.default_gas_limit
            # value is sent on every leg: the router may wrap native value even for token sources
            tx_hash = await self.signer.send_transaction(
                to=quote.to,
                data=quote.data,
                value_wei=int(quote.value_wei),
                gas_limit=gas_limit,
            )
            log.info("[SWAP] Swap transaction sent! TX Hash: %s", tx_hash)
            outcome = await self.signer.wait_for_confirmation(tx_hash)
            log.info("[SWAP] Transaction confirmed in block %s", outcome.block_number)
            return outcome
        except Exception as error:
            log.error("[SWAP] Swap TX failed: %s", error)
            raise
