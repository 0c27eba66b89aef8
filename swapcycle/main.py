from __future__ import annotations

from swapcycle.logging.logger import init_logging

init_logging()

import asyncio
import sys

from swapcycle.configuration.config import load_private_keys, settings
from swapcycle.core.errors import ConfigurationError
from swapcycle.core.jobs.cycle_job import SwapCycleJob, build_default_cycle_config
from swapcycle.core.onchain.allowance_manager import AllowanceManager
from swapcycle.core.onchain.endpoint_guard import build_default_endpoint_guard
from swapcycle.core.onchain.evm_signer import build_default_evm_signer
from swapcycle.core.onchain.swap_executor import SwapExecutor
from swapcycle.logging.logger import get_logger

log = get_logger(__name__)


def _log_banner() -> None:
    log.info("==============================================")
    log.info("  swapcycle: %s <-> %s on %s via DODO", settings.NATIVE_TOKEN_SYMBOL, settings.SWAP_TOKEN_SYMBOL,
             settings.PHAROS_NETWORK_NAME)
    log.info("==============================================")


async def _build_job() -> SwapCycleJob:
    """Connect, load the wallet and wire the components. Any failure here is fatal."""
    guard = build_default_endpoint_guard()
    web3 = await guard.acquire()

    private_keys = load_private_keys()
    if not private_keys:
        raise ConfigurationError("No valid private keys found. Please set PRIVATE_KEY_1, PRIVATE_KEY_2, etc.")

    signer = build_default_evm_signer(web3, private_keys[0])
    log.info("[MAIN] Wallet loaded: %s", signer.address)

    cycle_config = build_default_cycle_config()
    allowance_manager = AllowanceManager(signer, cycle_config.router_address)
    executor = SwapExecutor(signer, allowance_manager, default_gas_limit=cycle_config.default_gas_limit)
    return SwapCycleJob(
        cycle_config,
        executor,
        signer.address,
        explorer_url=guard.network.explorer_url,
    )


async def _run() -> int:
    _log_banner()
    try:
        job = await _build_job()
    except Exception as error:
        log.critical("[MAIN] Critical error during wallet setup: %s", error)
        return 1

    try:
        await job.run_forever()
    except EOFError:
        log.warning("[MAIN] Input closed, stopping.")
    return 0


def main() -> int:
    try:
        return asyncio.run(_run())
    except KeyboardInterrupt:
        log.warning("[MAIN] Interrupted, stopping.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
