from __future__ import annotations

import asyncio
from enum import Enum
from typing import Mapping, Optional

from web3 import AsyncWeb3
from web3.exceptions import Web3RPCError

from swapcycle.configuration.config import settings
from swapcycle.core.errors import EndpointExhaustedError
from swapcycle.core.structures.structures import NetworkConfig
from swapcycle.core.utils.dict_utils import _read_path
from swapcycle.logging.logger import get_logger

log = get_logger(__name__)

# JSON-RPC "internal error", returned by the Pharos nodes when they are saturated.
RPC_BUSY_ERROR_CODE: int = -32603


class RpcFailureKind(str, Enum):
    BUSY = "BUSY"
    OTHER = "OTHER"


def classify_rpc_error(error: BaseException) -> RpcFailureKind:
    """
    Classify a liveness-probe failure by inspecting the JSON-RPC error payload.

    web3 raises `Web3RPCError` carrying the raw `rpc_response`; some providers
    still surface a `ValueError` whose first argument is the RPC error dict.
    """
    code: Optional[object] = None
    if isinstance(error, Web3RPCError):
        code = _read_path(error.rpc_response, ("error", "code"))
    elif isinstance(error, ValueError) and error.args and isinstance(error.args[0], Mapping):
        code = _read_path(error.args[0], ("code",))

    if code == RPC_BUSY_ERROR_CODE:
        return RpcFailureKind.BUSY
    return RpcFailureKind.OTHER


class EndpointGuard:
    """
    Owns the single RPC connection of the process and checks it is alive
    before handing it out.
    """

    def __init__(
            self,
            network: NetworkConfig,
            web3: Optional[AsyncWeb3] = None,
            max_attempts: int = 3,
            retry_delay_seconds: float = 2.0,
    ) -> None:
        if not network.rpc_urls:
            raise ValueError("At least one RPC URL is required.")
        self.network = network
        self.max_attempts = max_attempts
        self.retry_delay_seconds = retry_delay_seconds
        # Provider-level retries are disabled: only busy probes are retried, by acquire().
        self.web3: AsyncWeb3 = web3 or AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(network.primary_url, exception_retry_configuration=None)
        )
        log.debug("[RPC][GUARD] Bound to %s (chain_id=%s)", network.name, network.chain_id)

    async def acquire(self) -> AsyncWeb3:
        """
        Probe the endpoint with a block-number call and return the shared connection.

        Busy failures are retried after a fixed delay; anything else is raised
        on the first occurrence.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                block_number = await self.web3.eth.block_number
            except Exception as error:
                if classify_rpc_error(error) is not RpcFailureKind.BUSY:
                    raise
                log.warning("[RPC][GUARD] RPC busy, retrying %d/%d...", attempt, self.max_attempts)
                await asyncio.sleep(self.retry_delay_seconds)
                continue
            log.debug("[RPC][GUARD] %s alive at block %s", self.network.name, block_number)
            return self.web3
        raise EndpointExhaustedError("All RPC retries failed")


def build_default_network_config() -> NetworkConfig:
    """Factory using Settings for convenience."""
    return NetworkConfig(
        rpc_urls=tuple(settings.PHAROS_RPC_URLS),
        chain_id=settings.PHAROS_CHAIN_ID,
        name=settings.PHAROS_NETWORK_NAME,
        explorer_url=settings.PHAROS_EXPLORER_URL,
    )


def build_default_endpoint_guard() -> EndpointGuard:
    return EndpointGuard(
        build_default_network_config(),
        max_attempts=settings.RPC_MAX_ATTEMPTS,
        retry_delay_seconds=settings.RPC_RETRY_DELAY_SECONDS,
    )
