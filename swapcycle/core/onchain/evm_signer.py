from __future__ import annotations

"""
EVM signer bound to one private key and one AsyncWeb3 connection.

- Builds EIP-1559 transactions when the chain reports a base fee, legacy
  gas-price transactions otherwise.
- Signs locally with eth-account and broadcasts the raw transaction.
- Never logs secrets or raw calldata.
"""

from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3
from web3.types import TxParams

from swapcycle.configuration.config import settings
from swapcycle.core.errors import TransactionFailedError
from swapcycle.core.structures.structures import TransactionOutcome
from swapcycle.logging.logger import get_logger

log = get_logger(__name__)

GAS_ESTIMATE_FALLBACK: int = 400_000


class EvmSigner:
    """Sign, broadcast and confirm transactions for the wallet identity of the process."""

    def __init__(
            self,
            web3: AsyncWeb3,
            private_key: str,
            chain_id: int,
            receipt_timeout_seconds: float = 120.0,
    ) -> None:
        if not private_key:
            raise ValueError("EVM signer requires a private key.")
        self.web3 = web3
        self.chain_id = chain_id
        self.receipt_timeout_seconds = receipt_timeout_seconds
        self.account: LocalAccount = Account.from_key(private_key)
        self.address: str = self.account.address

    async def _build_transaction(
            self,
            to: str,
            data: str,
            value_wei: int,
            gas_limit: Optional[int],
    ) -> TxParams:
        """Construct a typed transaction with current fees and the pending nonce."""
        nonce = await self.web3.eth.get_transaction_count(self.address, "pending")
        tx: TxParams = {
            "chainId": self.chain_id,
            "from": self.address,
            "nonce": nonce,
            "to": AsyncWeb3.to_checksum_address(to),
            "data": data,
            "value": int(value_wei),
        }

        latest = await self.web3.eth.get_block("latest")
        base_fee = latest.get("baseFeePerGas")
        if base_fee is not None:
            try:
                max_priority = int(await self.web3.eth.max_priority_fee)
            except Exception:
                max_priority = int(AsyncWeb3.to_wei(1, "gwei"))
            tx["type"] = 2
            tx["maxPriorityFeePerGas"] = max_priority
            tx["maxFeePerGas"] = int(base_fee) * 2 + max_priority
        else:
            tx["gasPrice"] = int(await self.web3.eth.gas_price)

        if gas_limit is not None:
            tx["gas"] = int(gas_limit)
        else:
            try:
                tx["gas"] = int(await self.web3.eth.estimate_gas(
                    {"from": self.address, "to": tx["to"], "data": tx["data"], "value": tx["value"]}))
            except Exception as exc:
                log.warning("[SIGNER] Gas estimation failed (%s). Falling back to static headroom.", exc)
                tx["gas"] = GAS_ESTIMATE_FALLBACK

        log.debug("[SIGNER] Tx skeleton built: nonce=%s gas=%s type=%s", tx.get("nonce"), tx.get("gas"),
                  tx.get("type", 0))
        return tx

    async def send_transaction(
            self,
            to: str,
            data: str,
            value_wei: int = 0,
            gas_limit: Optional[int] = None,
    ) -> str:
        """
        Sign and broadcast a transaction. Returns the 0x-prefixed transaction hash.
        """
        tx = await self._build_transaction(to=to, data=data, value_wei=value_wei, gas_limit=gas_limit)
        signed = self.account.sign_transaction(tx)
        tx_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)
        hex_hash = AsyncWeb3.to_hex(tx_hash)
        log.debug("[SIGNER] Broadcasted transaction %s", hex_hash)
        return hex_hash

    async def wait_for_confirmation(self, tx_hash: str) -> TransactionOutcome:
        """
        Block until the transaction is mined.

        Raises:
            TransactionFailedError: the receipt status is not 1.
            web3.exceptions.TimeExhausted: no receipt within the receipt timeout.
        """
        receipt = await self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout_seconds)
        outcome = TransactionOutcome(
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            status=int(receipt["status"]),
            gas_used=receipt.get("gasUsed"),
        )
        if not outcome.confirmed:
            raise TransactionFailedError(tx_hash)
        return outcome


def build_default_evm_signer(web3: AsyncWeb3, private_key: str) -> EvmSigner:
    """Factory using Settings for convenience."""
    return EvmSigner(
        web3,
        private_key,
        chain_id=settings.PHAROS_CHAIN_ID,
        receipt_timeout_seconds=settings.RECEIPT_TIMEOUT_SECONDS,
    )
