from __future__ import annotations

import time
from typing import Mapping, Optional

import httpx

from swapcycle.configuration.config import settings
from swapcycle.core.errors import MalformedRouteError
from swapcycle.core.structures.structures import RouteApiConfig, RouteQuote
from swapcycle.core.utils.dict_utils import (
    _read_int_like_field,
    _read_path,
    _read_str_field,
)
from swapcycle.core.utils.format_utils import _tail
from swapcycle.integrations.dodo.dodo_helpers import _build_route_params, robust_fetch_route
from swapcycle.integrations.dodo.dodo_structures import DodoRouteResponseJson
from swapcycle.logging.logger import get_logger

log = get_logger(__name__)


def build_default_route_api_config() -> RouteApiConfig:
    """Factory using Settings for convenience."""
    return RouteApiConfig(
        route_url=settings.DODO_ROUTE_URL,
        chain_id=settings.PHAROS_CHAIN_ID,
        api_key=settings.DODO_API_KEY,
        slippage=settings.DODO_SLIPPAGE,
        source=settings.DODO_ROUTE_SOURCE,
        referer=settings.DODO_REFERER,
        deadline_seconds=settings.DODO_DEADLINE_SECONDS,
        timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
        max_attempts=settings.ROUTE_MAX_ATTEMPTS,
        retry_delay_seconds=settings.ROUTE_RETRY_DELAY_SECONDS,
    )


def _normalize_response_to_quote(response: DodoRouteResponseJson) -> RouteQuote:
    """
    Extract the nested executable payload of a successful route response.

    Raises:
        MalformedRouteError when the nested object, its calldata or its target is missing,
        or when the native value is absent, unparseable or negative.
    """
    payload = _read_path(response, ("data",))
    if not isinstance(payload, Mapping):
        raise MalformedRouteError("Invalid DODO API response: missing data field")

    calldata = _read_str_field(payload, "data")
    if calldata is None:
        raise MalformedRouteError("Invalid DODO API response: missing data field")

    target = _read_str_field(payload, "to")
    if target is None:
        raise MalformedRouteError("Invalid DODO API response: missing 'to' field")

    value_wei = _read_int_like_field(payload, "value")
    if value_wei is None or value_wei < 0:
        raise MalformedRouteError(f"Invalid DODO API response: bad 'value' field ({payload.get('value')!r})")

    return RouteQuote(
        to=target,
        data=calldata,
        value_wei=value_wei,
        gas_limit=_read_int_like_field(payload, "gasLimit"),
        raw=payload,
    )


async def resolve_route(
        from_token_address: str,
        to_token_address: str,
        user_address: str,
        amount_base_units: int,
        *,
        config: Optional[RouteApiConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RouteQuote:
    """
    Fetch a fresh DODO swap route for one leg.

    Raises:
        RoutePermanentFailureError: every attempt failed or returned status -1.
        MalformedRouteError: the successful response carries no usable payload.
    """
    api_config = config or build_default_route_api_config()
    params = _build_route_params(
        api_config,
        from_token_address=from_token_address,
        to_token_address=to_token_address,
        user_address=user_address,
        amount_base_units=amount_base_units,
        now_epoch_seconds=int(time.time()),
    )

    log.debug(
        "[DODO][ROUTE][REQUEST] chain_id=%s from=…%s to=…%s amount=%s",
        api_config.chain_id,
        _tail(from_token_address),
        _tail(to_token_address),
        amount_base_units,
    )

    try:
        response = await robust_fetch_route(api_config.route_url, params, api_config, transport=transport)
        quote = _normalize_response_to_quote(response)
    except Exception as error:
        log.error("[DODO][ROUTE] DODO API fetch failed: %s", error)
        raise

    log.info("[DODO][ROUTE] DODO route info fetched successfully (router=%s)", quote.to)
    return quote
