from __future__ import annotations

import asyncio
import dataclasses
import functools
from typing import List, Tuple

import httpx
import pytest

from swapcycle.core.errors import RoutePermanentFailureError
from swapcycle.core.jobs import cycle_job
from swapcycle.core.jobs.cycle_job import SwapCycleJob, build_swap_legs, parse_swap_count
from swapcycle.core.onchain.allowance_manager import AllowanceManager
from swapcycle.core.onchain.swap_executor import SwapExecutor
from swapcycle.core.structures.structures import RouteQuote, TransactionOutcome
from swapcycle.core.utils.format_utils import parse_units
from swapcycle.integrations.dodo.dodo_client import resolve_route

from conftest import PHRS, ROUTER_ADDRESS, TEST_ADDRESS, USDT, USDT_ADDRESS, FakeEth, FakeSigner, make_erc20_contract


class _StopLoop(BaseException):
    pass


class RecordingResolver:
    def __init__(self, failing_indices=()) -> None:
        self.calls: List[Tuple[str, str, str, int]] = []
        self.failing_indices = set(failing_indices)

    async def __call__(self, from_address: str, to_address: str, user_address: str, amount: int) -> RouteQuote:
        index = len(self.calls)
        self.calls.append((from_address, to_address, user_address, amount))
        if index in self.failing_indices:
            raise RoutePermanentFailureError("DODO API permanently failed")
        return RouteQuote(to=ROUTER_ADDRESS, data="0xabcdef", value_wei=0, gas_limit=300_000)


class RecordingExecutor:
    def __init__(self) -> None:
        self.calls = []

    async def execute_swap(self, quote, from_token, amount) -> TransactionOutcome:
        self.calls.append((quote, from_token, amount))
        return TransactionOutcome(tx_hash="0x01", block_number=1, status=1)


@pytest.mark.parametrize("count", [1, 2, 3, 4, 7])
def test_build_swap_legs_alternates_starting_with_native(cycle_config, count):
    legs = build_swap_legs(count, cycle_config)

    assert len(legs) == count
    for index, leg in enumerate(legs):
        assert leg.index == index
        if index % 2 == 0:
            assert (leg.source, leg.destination) == (PHRS, USDT)
            assert leg.amount_base_units == cycle_config.native_amount_base_units
            assert leg.pair_label == "PHRS -> USDT"
        else:
            assert (leg.source, leg.destination) == (USDT, PHRS)
            assert leg.amount_base_units == cycle_config.token_amount_base_units
            assert leg.pair_label == "USDT -> PHRS"


@pytest.mark.parametrize("raw", ["", "abc", "0", "-3", "0.9", "x3"])
def test_parse_swap_count_rejects_invalid_input(raw):
    with pytest.raises(ValueError, match="positive number"):
        parse_swap_count(raw)


@pytest.mark.parametrize("raw, expected", [(" 4 \n", 4), ("3abc", 3), ("1.5", 1), ("+2", 2)])
def test_parse_swap_count_reads_leading_integer(raw, expected):
    assert parse_swap_count(raw) == expected


def test_run_batch_resolves_one_route_per_leg(cycle_config, recorded_sleeps):
    resolver, executor = RecordingResolver(), RecordingExecutor()
    job = SwapCycleJob(cycle_config, executor, TEST_ADDRESS, route_resolver=resolver)

    summary = asyncio.run(job.run_batch(4))

    assert [call[:2] for call in resolver.calls] == [
        (PHRS.address, USDT.address),
        (USDT.address, PHRS.address),
        (PHRS.address, USDT.address),
        (USDT.address, PHRS.address),
    ]
    assert all(call[2] == TEST_ADDRESS for call in resolver.calls)
    assert [call[1] for call in executor.calls] == [PHRS, USDT, PHRS, USDT]
    assert (summary.succeeded, summary.failed) == (4, 0)
    assert recorded_sleeps == [2.0] * 4


def test_failed_leg_is_logged_and_batch_continues(cycle_config, recorded_sleeps):
    resolver, executor = RecordingResolver(failing_indices={0}), RecordingExecutor()
    job = SwapCycleJob(cycle_config, executor, TEST_ADDRESS, route_resolver=resolver)

    summary = asyncio.run(job.run_batch(3))

    assert len(resolver.calls) == 3
    assert len(executor.calls) == 2
    assert summary.failed == 1
    assert summary.failures[0][0] == 0
    assert "permanently failed" in summary.failures[0][1]


def test_native_leg_end_to_end_submits_one_transaction(cycle_config, route_api_config, recorded_sleeps):
    def route_service(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={
            "status": 1,
            "data": {"data": "0xabc123", "to": ROUTER_ADDRESS, "value": "0", "gasLimit": "300000"},
        })

    signer = FakeSigner()
    executor = SwapExecutor(signer, AllowanceManager(signer, ROUTER_ADDRESS))
    resolver = functools.partial(resolve_route, config=route_api_config,
                                 transport=httpx.MockTransport(route_service))
    config = dataclasses.replace(cycle_config, native_amount_base_units=parse_units("0.00245", 18))
    job = SwapCycleJob(config, executor, signer.address, route_resolver=resolver)

    summary = asyncio.run(job.run_batch(1))

    assert summary.succeeded == 1
    assert signer.sent == [{"to": ROUTER_ADDRESS, "data": "0xabc123", "value_wei": 0, "gas_limit": 300_000}]


def test_route_failure_on_every_attempt_skips_leg(cycle_config, route_api_config, recorded_sleeps):
    requests_seen = []

    def route_service(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        return httpx.Response(200, json={"status": -1})

    signer = FakeSigner()
    executor = SwapExecutor(signer, AllowanceManager(signer, ROUTER_ADDRESS))
    resolver = functools.partial(resolve_route, config=route_api_config,
                                 transport=httpx.MockTransport(route_service))
    job = SwapCycleJob(cycle_config, executor, signer.address, route_resolver=resolver)

    summary = asyncio.run(job.run_batch(2))

    assert len(requests_seen) == 10
    assert summary.failed == 2
    assert signer.sent == []


def test_insufficient_token_balance_aborts_before_submission(cycle_config, recorded_sleeps):
    eth = FakeEth()
    eth.contracts[USDT_ADDRESS.lower()] = make_erc20_contract(balance=10, allowance=0)
    signer = FakeSigner(eth=eth)
    executor = SwapExecutor(signer, AllowanceManager(signer, ROUTER_ADDRESS))
    resolver = RecordingResolver()
    job = SwapCycleJob(cycle_config, executor, signer.address, route_resolver=resolver)

    summary = asyncio.run(job.run_batch(2))

    assert len(resolver.calls) == 2
    assert len(signer.sent) == 1  # only the native leg
    assert summary.failed == 1
    assert "approval failed" in summary.failures[0][1].lower()


def test_run_cycle_uses_fixed_count_without_prompting(cycle_config, recorded_sleeps, monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt="": pytest.fail("prompted despite a fixed count"))
    config = dataclasses.replace(cycle_config, fixed_swap_count=2)
    job = SwapCycleJob(config, RecordingExecutor(), TEST_ADDRESS, route_resolver=RecordingResolver())

    summary = asyncio.run(job.run_cycle())

    assert summary.requested == 2
    assert str(summary) == "2 requested, 2 succeeded, 0 failed"


def test_run_forever_waits_full_cycle_after_batch(cycle_config, recorded_sleeps, monkeypatch):
    waits = []

    async def fake_countdown(seconds, label="Next swap cycle"):
        waits.append((seconds, label))
        raise _StopLoop()

    monkeypatch.setattr(cycle_job, "sleep_with_countdown", fake_countdown)
    config = dataclasses.replace(cycle_config, fixed_swap_count=1)
    job = SwapCycleJob(config, RecordingExecutor(), TEST_ADDRESS, route_resolver=RecordingResolver())

    with pytest.raises(_StopLoop):
        asyncio.run(job.run_forever())

    assert waits == [(24 * 60 * 60, "Next swap cycle")]


def test_run_forever_cools_down_on_invalid_count(cycle_config, recorded_sleeps, monkeypatch):
    waits = []

    async def fake_countdown(seconds, label="Next swap cycle"):
        waits.append((seconds, label))
        raise _StopLoop()

    monkeypatch.setattr(cycle_job, "sleep_with_countdown", fake_countdown)
    monkeypatch.setattr("builtins.input", lambda prompt="": "zero")
    job = SwapCycleJob(cycle_config, RecordingExecutor(), TEST_ADDRESS, route_resolver=RecordingResolver())

    with pytest.raises(_StopLoop):
        asyncio.run(job.run_forever())

    assert waits == [(60, "Retrying")]


def test_prompt_names_both_directions(cycle_config):
    job = SwapCycleJob(cycle_config, RecordingExecutor(), TEST_ADDRESS, route_resolver=RecordingResolver())
    assert job.prompt == "How many swaps to perform (PHRS-USDT/USDT-PHRS)? "
