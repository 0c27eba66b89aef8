from __future__ import annotations

import asyncio
import random
from typing import Dict, Mapping, Optional, cast

import httpx

from swapcycle.core.errors import RouteFetchError, RoutePermanentFailureError
from swapcycle.core.structures.structures import RouteApiConfig
from swapcycle.core.utils.dict_utils import _read_path
from swapcycle.integrations.dodo.dodo_constants import BROWSER_HEADERS, ROUTE_FAILURE_STATUS, USER_AGENTS
from swapcycle.integrations.dodo.dodo_structures import DodoRouteResponseJson
from swapcycle.logging.logger import get_logger

log = get_logger(__name__)


def _random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def _build_browser_headers(referer: str) -> Dict[str, str]:
    """Browser-like header set with a user agent drawn for this request only."""
    headers = dict(BROWSER_HEADERS)
    headers["Referer"] = referer
    headers["User-Agent"] = _random_user_agent()
    return headers


async def fetch_with_timeout(
        url: str,
        timeout_seconds: float = 15.0,
        *,
        params: Optional[Mapping[str, object]] = None,
        referer: str = "https://faroswap.xyz/",
        transport: Optional[httpx.AsyncBaseTransport] = None,
) -> object:
    """
    Perform one GET and return the decoded JSON body.

    The whole request is cancelled once `timeout_seconds` elapses. HTTP status
    codes are not inspected: the route service signals failures in the body.

    Raises:
        RouteFetchError on timeout, cancellation, transport or decoding failure
        (the underlying error is intentionally dropped).
    """
    try:
        async with httpx.AsyncClient(headers=_build_browser_headers(referer), transport=transport) as client:
            response = await asyncio.wait_for(client.get(url, params=params), timeout=timeout_seconds)
            return response.json()
    except (asyncio.TimeoutError, httpx.HTTPError, ValueError):
        raise RouteFetchError("Timeout or network error") from None


async def robust_fetch_route(
        url: str,
        params: Mapping[str, object],
        config: RouteApiConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DodoRouteResponseJson:
    """
    Call the route service until it answers without the failure status.

    Every failed attempt (fetch error or `status == -1`) is followed by the
    retry delay, the last one included.
    """
    for attempt in range(1, config.max_attempts + 1):
        try:
            body = await fetch_with_timeout(
                url,
                config.timeout_seconds,
                params=params,
                referer=config.referer,
                transport=transport,
            )
            if _read_path(body, ("status",)) != ROUTE_FAILURE_STATUS:
                return cast(DodoRouteResponseJson, body)
            log.warning("[DODO][ROUTE][RETRY] Attempt %d/%d: DODO API status -1", attempt, config.max_attempts)
        except RouteFetchError as error:
            log.warning("[DODO][ROUTE][RETRY] Attempt %d/%d failed: %s", attempt, config.max_attempts, error)
        await asyncio.sleep(config.retry_delay_seconds)
    raise RoutePermanentFailureError("DODO API permanently failed")


def _build_route_params(
        config: RouteApiConfig,
        *,
        from_token_address: str,
        to_token_address: str,
        user_address: str,
        amount_base_units: int,
        now_epoch_seconds: int,
) -> Dict[str, object]:
    return {
        "chainId": config.chain_id,
        "deadLine": now_epoch_seconds + config.deadline_seconds,
        "apikey": config.api_key,
        "slippage": config.slippage,
        "source": config.source,
        "toTokenAddress": to_token_address,
        "fromTokenAddress": from_token_address,
        "userAddr": user_address,
        "estimateGas": "true",
        "fromAmount": str(amount_base_units),
    }
