from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping, Optional, Tuple

from swapcycle.core.utils.format_utils import _tail

NATIVE_TOKEN_SENTINEL: str = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
EMPTY_CALLDATA: str = "0x"


@dataclass(frozen=True)
class NetworkConfig:
    """
    RPC endpoint description for the single network the cycle runs on.

    Attributes:
        rpc_urls: Candidate RPC URLs; only the first one (primary) is used.
        chain_id: EVM chain id used to sign every transaction.
        name: Human network label.
        explorer_url: Block explorer base URL for transaction links.
    """
    rpc_urls: Tuple[str, ...]
    chain_id: int
    name: str
    explorer_url: str = ""

    @property
    def primary_url(self) -> str:
        return self.rpc_urls[0]


@dataclass(frozen=True)
class TokenDescriptor:
    symbol: str
    address: str
    decimals: int

    @property
    def is_native(self) -> bool:
        return self.address.lower() == NATIVE_TOKEN_SENTINEL.lower()

    def __str__(self) -> str:
        return f"[symbol={self.symbol} address=…{_tail(self.address)} decimals={self.decimals}]"


@dataclass(frozen=True)
class SwapLeg:
    """One direction of the cycle, built fresh for every batch index."""
    index: int
    source: TokenDescriptor
    destination: TokenDescriptor
    amount_base_units: int

    @property
    def pair_label(self) -> str:
        return f"{self.source.symbol} -> {self.destination.symbol}"


@dataclass(frozen=True)
class RouteApiConfig:
    route_url: str
    chain_id: int
    api_key: str
    slippage: str
    source: str
    referer: str
    deadline_seconds: int = 600
    timeout_seconds: float = 15.0
    max_attempts: int = 5
    retry_delay_seconds: float = 2.0


@dataclass(frozen=True)
class RouteQuote:
    """
    Executable swap payload returned by the route service (the nested `data` object).

    A quote is consumed by exactly one swap and never cached.
    """
    to: str
    data: str
    value_wei: int
    gas_limit: Optional[int] = None
    raw: Mapping[str, object] = field(default_factory=dict, repr=False, compare=False)

    @property
    def has_calldata(self) -> bool:
        return bool(self.data) and self.data.lower() != EMPTY_CALLDATA


@dataclass(frozen=True)
class TransactionOutcome:
    tx_hash: str
    block_number: int
    status: int
    gas_used: Optional[int] = None

    @property
    def confirmed(self) -> bool:
        return self.status == 1


@dataclass(frozen=True)
class CycleConfig:
    """Fixed parameters of the alternating swap cycle."""
    native_token: TokenDescriptor
    swap_token: TokenDescriptor
    native_amount_base_units: int
    token_amount_base_units: int
    router_address: str
    inter_swap_delay_seconds: float = 2.0
    cycle_delay_seconds: int = 24 * 60 * 60
    error_cooldown_seconds: int = 60
    default_gas_limit: int = 500_000
    fixed_swap_count: Optional[int] = None


class LegStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


@dataclass
class BatchSummary:
    requested: int
    succeeded: int = 0
    failed: int = 0
    failures: List[Tuple[int, str]] = field(default_factory=list)

    def record(self, leg: SwapLeg, status: LegStatus, reason: str = "") -> None:
        if status is LegStatus.SUCCEEDED:
            self.succeeded += 1
        else:
            self.failed += 1
            self.failures.append((leg.index, reason))

    def __str__(self) -> str:
        return f"{self.requested} requested, {self.succeeded} succeeded, {self.failed} failed"
