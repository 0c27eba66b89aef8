from __future__ import annotations

import os
from typing import List, Mapping, Optional

from dotenv import load_dotenv

load_dotenv()

PRIVATE_KEY_PREFIX = "0x"
PRIVATE_KEY_LENGTH = 66


def _as_bool(value: str | None, default: bool = False) -> bool:
    """Parse a truthy/falsey string into a boolean."""
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _as_list(value: str | None) -> List[str]:
    """Split a comma-separated string into trimmed, non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _as_optional_int(value: str | None) -> Optional[int]:
    if value is None or not value.strip():
        return None
    return int(value)


class Settings:
    # Network
    PHAROS_RPC_URLS: List[str] = _as_list(
        os.getenv("PHAROS_RPC_URLS", "https://api.zan.top/node/v1/pharos/testnet/bf44f87e170345c0aedef65e9311860d")
    )
    PHAROS_CHAIN_ID: int = int(os.getenv("PHAROS_CHAIN_ID", "688688"))
    PHAROS_NETWORK_NAME: str = os.getenv("PHAROS_NETWORK_NAME", "pharos")
    PHAROS_EXPLORER_URL: str = os.getenv("PHAROS_EXPLORER_URL", "https://testnet.pharosscan.xyz")

    # Tokens
    NATIVE_TOKEN_SYMBOL: str = os.getenv("NATIVE_TOKEN_SYMBOL", "PHRS")
    NATIVE_TOKEN_ADDRESS: str = os.getenv("NATIVE_TOKEN_ADDRESS", "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE")
    NATIVE_TOKEN_DECIMALS: int = int(os.getenv("NATIVE_TOKEN_DECIMALS", "18"))
    SWAP_TOKEN_SYMBOL: str = os.getenv("SWAP_TOKEN_SYMBOL", "USDT")
    SWAP_TOKEN_ADDRESS: str = os.getenv("SWAP_TOKEN_ADDRESS", "0xD4071393f8716661958F766DF660033b3d35fD29")
    SWAP_TOKEN_DECIMALS: int = int(os.getenv("SWAP_TOKEN_DECIMALS", "6"))

    # Swap amounts (human units, converted with the token decimals)
    NATIVE_SWAP_AMOUNT: str = os.getenv("NATIVE_SWAP_AMOUNT", "0.00245")
    TOKEN_SWAP_AMOUNT: str = os.getenv("TOKEN_SWAP_AMOUNT", "1")

    # DODO route service
    DODO_ROUTER_ADDRESS: str = os.getenv("DODO_ROUTER_ADDRESS", "0x73CAfc894dBfC181398264934f7Be4e482fc9d40")
    DODO_ROUTE_URL: str = os.getenv(
        "DODO_ROUTE_URL",
        "https://api.dodoex.io/route-service/v2/widget/getdodoroute",
    )
    DODO_API_KEY: str = os.getenv("DODO_API_KEY", "a37546505892e1a952")
    DODO_SLIPPAGE: str = os.getenv("DODO_SLIPPAGE", "3.225")
    DODO_ROUTE_SOURCE: str = os.getenv("DODO_ROUTE_SOURCE", "dodoV2AndMixWasm")
    DODO_REFERER: str = os.getenv("DODO_REFERER", "https://faroswap.xyz/")
    DODO_DEADLINE_SECONDS: int = int(os.getenv("DODO_DEADLINE_SECONDS", "600"))

    # Resilience
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))
    ROUTE_MAX_ATTEMPTS: int = int(os.getenv("ROUTE_MAX_ATTEMPTS", "5"))
    ROUTE_RETRY_DELAY_SECONDS: float = float(os.getenv("ROUTE_RETRY_DELAY_SECONDS", "2"))
    RPC_MAX_ATTEMPTS: int = int(os.getenv("RPC_MAX_ATTEMPTS", "3"))
    RPC_RETRY_DELAY_SECONDS: float = float(os.getenv("RPC_RETRY_DELAY_SECONDS", "2"))
    DEFAULT_SWAP_GAS_LIMIT: int = int(os.getenv("DEFAULT_SWAP_GAS_LIMIT", "500000"))
    RECEIPT_TIMEOUT_SECONDS: float = float(os.getenv("RECEIPT_TIMEOUT_SECONDS", "120"))

    # Cycle
    INTER_SWAP_DELAY_SECONDS: float = float(os.getenv("INTER_SWAP_DELAY_SECONDS", "2"))
    CYCLE_DELAY_SECONDS: int = int(os.getenv("CYCLE_DELAY_SECONDS", str(24 * 60 * 60)))
    ERROR_COOLDOWN_SECONDS: int = int(os.getenv("ERROR_COOLDOWN_SECONDS", "60"))
    SWAP_COUNT: Optional[int] = _as_optional_int(os.getenv("SWAP_COUNT"))

    # Debug / logging
    NO_COLOR: bool = _as_bool(os.getenv("NO_COLOR"), False)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING").upper()
    LOG_LEVEL_SWAPCYCLE: str = os.getenv("LOG_LEVEL_SWAPCYCLE", "INFO").upper()
    LOG_LEVEL_LIB_HTTPX: str = os.getenv("LOG_LEVEL_LIB_HTTPX", "WARNING").upper()
    LOG_LEVEL_LIB_HTTPCORE: str = os.getenv("LOG_LEVEL_LIB_HTTPCORE", "WARNING").upper()
    LOG_LEVEL_LIB_WEB3: str = os.getenv("LOG_LEVEL_LIB_WEB3", "WARNING").upper()
    LOG_LEVEL_LIB_ASYNCIO: str = os.getenv("LOG_LEVEL_LIB_ASYNCIO", "WARNING").upper()


settings = Settings()


def load_private_keys(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """
    Collect PRIVATE_KEY_1, PRIVATE_KEY_2, ... until the first missing index.

    Keys that are not 0x-prefixed 32-byte hex strings are skipped with a warning.
    """
    # Imported here: the logger module reads `settings` at import time.
    from swapcycle.logging.logger import get_logger

    log = get_logger(__name__)
    source = os.environ if environ is None else environ

    keys: List[str] = []
    index = 1
    while source.get(f"PRIVATE_KEY_{index}"):
        candidate = source[f"PRIVATE_KEY_{index}"].strip()
        if candidate.startswith(PRIVATE_KEY_PREFIX) and len(candidate) == PRIVATE_KEY_LENGTH:
            keys.append(candidate)
        else:
            log.warning("[CONFIG][KEYS] Invalid PRIVATE_KEY_%d in environment, skipping.", index)
        index += 1
    return keys
