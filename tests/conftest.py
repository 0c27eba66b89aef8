from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from swapcycle.core.structures.structures import (
    CycleConfig,
    NATIVE_TOKEN_SENTINEL,
    RouteApiConfig,
    TokenDescriptor,
    TransactionOutcome,
)

# Well-known development key (hardhat account #0), never funded on a real network.
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
ROUTER_ADDRESS = "0x73CAfc894dBfC181398264934f7Be4e482fc9d40"
USDT_ADDRESS = "0xD4071393f8716661958F766DF660033b3d35fD29"

PHRS = TokenDescriptor("PHRS", NATIVE_TOKEN_SENTINEL, 18)
USDT = TokenDescriptor("USDT", USDT_ADDRESS, 6)


class FakeEth:
    """Small stand-in for `AsyncWeb3.eth` covering the calls the cycle makes."""

    def __init__(
            self,
            *,
            block_number_errors: Optional[List[BaseException]] = None,
            base_fee: Optional[int] = 1_000_000_000,
            receipt_status: int = 1,
            estimate_error: Optional[BaseException] = None,
    ) -> None:
        self.block_number_errors = list(block_number_errors or [])
        self.block_number_calls = 0
        self.base_fee = base_fee
        self.receipt_status = receipt_status
        self.estimate_error = estimate_error
        self.sent_raw: List[bytes] = []
        self.contracts: Dict[str, Any] = {}

    async def _block_number(self) -> int:
        self.block_number_calls += 1
        if self.block_number_errors:
            raise self.block_number_errors.pop(0)
        return 1_234_567

    @property
    def block_number(self):
        return self._block_number()

    async def _max_priority_fee(self) -> int:
        return 2_000_000_000

    @property
    def max_priority_fee(self):
        return self._max_priority_fee()

    async def _gas_price(self) -> int:
        return 5_000_000_000

    @property
    def gas_price(self):
        return self._gas_price()

    async def get_transaction_count(self, address: str, block_identifier: str = "latest") -> int:
        return 7

    async def get_block(self, block_identifier: str) -> Dict[str, Any]:
        if self.base_fee is None:
            return {"number": 1}
        return {"number": 1, "baseFeePerGas": self.base_fee}

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        if self.estimate_error is not None:
            raise self.estimate_error
        return 54_321

    async def send_raw_transaction(self, raw: bytes) -> bytes:
        self.sent_raw.append(raw)
        return bytes.fromhex("ab" * 32)

    async def wait_for_transaction_receipt(self, tx_hash: str, timeout: float = 120.0) -> Dict[str, Any]:
        return {"blockNumber": 42, "status": self.receipt_status, "gasUsed": 21_000}

    def contract(self, address: str, abi: Any) -> Any:
        return self.contracts[address.lower()]


def make_web3(eth: FakeEth) -> SimpleNamespace:
    return SimpleNamespace(eth=eth)


def make_erc20_contract(balance: int, allowance: int) -> MagicMock:
    contract = MagicMock()
    contract.functions.balanceOf.return_value.call = AsyncMock(return_value=balance)
    contract.functions.allowance.return_value.call = AsyncMock(return_value=allowance)
    contract.encode_abi.return_value = "0x095ea7b3"
    return contract


class FakeSigner:
    """Records submissions instead of signing them."""

    def __init__(self, eth: Optional[FakeEth] = None, confirm_error: Optional[BaseException] = None) -> None:
        self.address = TEST_ADDRESS
        self.web3 = make_web3(eth or FakeEth())
        self.sent: List[Dict[str, Any]] = []
        self.confirm_error = confirm_error

    async def send_transaction(self, to: str, data: str, value_wei: int = 0, gas_limit: Optional[int] = None) -> str:
        self.sent.append({"to": to, "data": data, "value_wei": value_wei, "gas_limit": gas_limit})
        return f"0x{len(self.sent):064x}"

    async def wait_for_confirmation(self, tx_hash: str) -> TransactionOutcome:
        if self.confirm_error is not None:
            raise self.confirm_error
        return TransactionOutcome(tx_hash=tx_hash, block_number=42, status=1, gas_used=21_000)


@pytest.fixture
def route_api_config() -> RouteApiConfig:
    return RouteApiConfig(
        route_url="https://api.dodoex.io/route-service/v2/widget/getdodoroute",
        chain_id=688688,
        api_key="a37546505892e1a952",
        slippage="3.225",
        source="dodoV2AndMixWasm",
        referer="https://faroswap.xyz/",
    )


@pytest.fixture
def cycle_config() -> CycleConfig:
    return CycleConfig(
        native_token=PHRS,
        swap_token=USDT,
        native_amount_base_units=2_450_000_000_000_000,
        token_amount_base_units=1_000_000,
        router_address=ROUTER_ADDRESS,
    )


@pytest.fixture
def recorded_sleeps(monkeypatch) -> List[float]:
    """Replace asyncio.sleep with an instant recorder."""
    sleeps: List[float] = []

    async def fast_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    monkeypatch.setattr("asyncio.sleep", fast_sleep)
    return sleeps
