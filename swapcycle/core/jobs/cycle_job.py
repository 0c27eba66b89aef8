from __future__ import annotations

import asyncio
import re
from typing import Awaitable, Callable, List, Optional

from swapcycle.configuration.config import settings
from swapcycle.core.errors import ConfigurationError
from swapcycle.core.onchain.swap_executor import SwapExecutor
from swapcycle.core.structures.structures import (
    BatchSummary,
    CycleConfig,
    LegStatus,
    RouteQuote,
    SwapLeg,
    TokenDescriptor,
)
from swapcycle.core.utils.countdown import sleep_with_countdown
from swapcycle.core.utils.format_utils import format_countdown, format_units, parse_units
from swapcycle.integrations.dodo.dodo_client import resolve_route
from swapcycle.logging.logger import get_logger

log = get_logger(__name__)

_LEADING_INTEGER = re.compile(r"\s*([+-]?[0-9]+)")

RouteResolver = Callable[[str, str, str, int], Awaitable[RouteQuote]]


def build_swap_legs(count: int, config: CycleConfig) -> List[SwapLeg]:
    """Alternate native -> token (even indices) and token -> native (odd indices)."""
    legs: List[SwapLeg] = []
    for index in range(count):
        if index % 2 == 0:
            legs.append(SwapLeg(index, config.native_token, config.swap_token, config.native_amount_base_units))
        else:
            legs.append(SwapLeg(index, config.swap_token, config.native_token, config.token_amount_base_units))
    return legs


def parse_swap_count(raw: str) -> int:
    """
    Parse the prompted batch size from its leading integer (" 3abc" -> 3, "1.5" -> 1).

    Input without a leading integer, or one below 1, is rejected.
    """
    match = _LEADING_INTEGER.match(raw or "")
    count = int(match.group(1)) if match else 0
    if count < 1:
        raise ValueError("Invalid swap count. Please enter a positive number.")
    return count


class SwapCycleJob:
    """
    Runs batches of alternating swaps for one wallet, then idles until the next cycle.

    A failed leg is logged and counted; it never stops the batch.
    """

    def __init__(
            self,
            config: CycleConfig,
            executor: SwapExecutor,
            wallet_address: str,
            route_resolver: RouteResolver = resolve_route,
            explorer_url: str = "",
    ) -> None:
        self.config = config
        self.executor = executor
        self.wallet_address = wallet_address
        self.route_resolver = route_resolver
        self.explorer_url = explorer_url.rstrip("/")

    @property
    def prompt(self) -> str:
        native, token = self.config.native_token.symbol, self.config.swap_token.symbol
        return f"How many swaps to perform ({native}-{token}/{token}-{native})? "

    async def _run_leg(self, leg: SwapLeg, total: int) -> None:
        log.info("[CYCLE] Swap #%d of %d: %s (%s %s)", leg.index + 1, total, leg.pair_label,
                 format_units(leg.amount_base_units, leg.source.decimals), leg.source.symbol)
        quote = await self.route_resolver(
            leg.source.address,
            leg.destination.address,
            self.wallet_address,
            leg.amount_base_units,
        )
        outcome = await self.executor.execute_swap(quote, leg.source, leg.amount_base_units)
        if self.explorer_url:
            log.info("[CYCLE] Explorer: %s/tx/%s", self.explorer_url, outcome.tx_hash)

    async def run_batch(self, count: int) -> BatchSummary:
        legs = build_swap_legs(count, self.config)
        summary = BatchSummary(requested=count)
        for leg in legs:
            try:
                await self._run_leg(leg, count)
                summary.record(leg, LegStatus.SUCCEEDED)
            except Exception as error:
                log.error("[CYCLE] Swap #%d failed: %s", leg.index + 1, error)
                summary.record(leg, LegStatus.FAILED, str(error))
            await asyncio.sleep(self.config.inter_swap_delay_seconds)
        return summary

    async def _read_swap_count(self) -> int:
        if self.config.fixed_swap_count is not None:
            return parse_swap_count(str(self.config.fixed_swap_count))
        raw = await asyncio.to_thread(input, self.prompt)
        return parse_swap_count(raw)

    async def run_cycle(self) -> BatchSummary:
        """Prompt and run one batch."""
        count = await self._read_swap_count()
        log.info("[CYCLE] Starting %d swaps for wallet %s...", count, self.wallet_address)
        summary = await self.run_batch(count)
        log.info("[CYCLE] Swap cycle completed! %s", summary)
        return summary

    async def run_forever(self) -> None:
        while True:
            try:
                await self.run_cycle()
                log.info("[CYCLE] Waiting %s for the next cycle...", format_countdown(self.config.cycle_delay_seconds))
                await sleep_with_countdown(self.config.cycle_delay_seconds, "Next swap cycle")
                log.info("[CYCLE] Starting a new swap cycle.")
            except EOFError:
                # stdin is closed, no further prompt can ever succeed
                raise
            except Exception as error:
                log.error("[CYCLE] Error during swap cycle: %s", error)
                log.info("[CYCLE] Waiting %d seconds before retrying...", self.config.error_cooldown_seconds)
                await sleep_with_countdown(self.config.error_cooldown_seconds, "Retrying")


def build_default_cycle_config(fixed_swap_count: Optional[int] = None) -> CycleConfig:
    """Factory using Settings for convenience. Raises ConfigurationError on an unusable swap amount."""
    native = TokenDescriptor(settings.NATIVE_TOKEN_SYMBOL, settings.NATIVE_TOKEN_ADDRESS,
                             settings.NATIVE_TOKEN_DECIMALS)
    token = TokenDescriptor(settings.SWAP_TOKEN_SYMBOL, settings.SWAP_TOKEN_ADDRESS, settings.SWAP_TOKEN_DECIMALS)
    try:
        native_amount = parse_units(settings.NATIVE_SWAP_AMOUNT, native.decimals)
        token_amount = parse_units(settings.TOKEN_SWAP_AMOUNT, token.decimals)
    except ValueError as error:
        raise ConfigurationError(str(error)) from error
    return CycleConfig(
        native_token=native,
        swap_token=token,
        native_amount_base_units=native_amount,
        token_amount_base_units=token_amount,
        router_address=settings.DODO_ROUTER_ADDRESS,
        inter_swap_delay_seconds=settings.INTER_SWAP_DELAY_SECONDS,
        cycle_delay_seconds=settings.CYCLE_DELAY_SECONDS,
        error_cooldown_seconds=settings.ERROR_COOLDOWN_SECONDS,
        default_gas_limit=settings.DEFAULT_SWAP_GAS_LIMIT,
        fixed_swap_count=fixed_swap_count if fixed_swap_count is not None else settings.SWAP_COUNT,
    )
