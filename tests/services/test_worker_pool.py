from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from resourcevet.domain.errors import QueueFullError
from resourcevet.domain.model import Decision, VerificationType
from resourcevet.services import OverflowPolicy, VerificationWorkerPool
from tests.helpers.resources import make_resource, make_result

if TYPE_CHECKING:
    from resourcevet.domain.model import NormalizedResource, VerificationResult


class SlowAgent:
    def __init__(self, *, delay: float = 0.01, fail_for: str | None = None) -> None:
        self.delay = delay
        self.fail_for = fail_for
        self.active = 0
        self.max_active = 0
        self.release: asyncio.Event | None = None

    async def verify(
        self,
        candidate: NormalizedResource,
        verification_type: VerificationType = VerificationType.INITIAL,
    ) -> VerificationResult:
        _ = verification_type
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.release is not None:
                await self.release.wait()
            await asyncio.sleep(self.delay)
            if candidate.name == self.fail_for:
                raise RuntimeError(f"cannot verify {candidate.name}")
            return make_result(Decision.AUTO_APPROVE, reason=candidate.name)
        finally:
            self.active -= 1


def _pool(agent: SlowAgent, **kwargs: object) -> VerificationWorkerPool:
    return VerificationWorkerPool(agent, **kwargs)  # type: ignore[arg-type]


def test_verify_all_runs_on_bounded_workers() -> None:
    agent = SlowAgent()
    pool = _pool(agent, workers=3, max_queue_size=10)
    candidates = [make_resource(f"Center {i}", source_id=f"c{i}") for i in range(6)]

    async def scenario() -> list[VerificationResult]:
        async with pool:
            return await pool.verify_all(candidates)

    results = asyncio.run(scenario())

    assert [result.decision_reason for result in results] == [f"Center {i}" for i in range(6)]
    assert agent.max_active == 3
    assert pool.jobs_processed == 6
    assert not pool.running


def test_failed_verification_surfaces_on_its_future() -> None:
    agent = SlowAgent(fail_for="Center 1")
    pool = _pool(agent, workers=2)

    async def scenario() -> tuple[VerificationResult, BaseException | None]:
        async with pool:
            ok = await pool.submit(make_resource("Center 0"))
            bad = await pool.submit(make_resource("Center 1"))
            await asyncio.wait([ok, bad])
            return ok.result(), bad.exception()

    result, error = asyncio.run(scenario())

    assert result.decision is Decision.AUTO_APPROVE
    assert isinstance(error, RuntimeError)
    assert pool.jobs_failed == 1
    assert pool.jobs_processed == 1


def test_reject_policy_raises_when_queue_is_full() -> None:
    agent = SlowAgent()
    pool = _pool(agent, workers=1, max_queue_size=1, overflow=OverflowPolicy.REJECT)

    async def scenario() -> None:
        agent.release = asyncio.Event()
        async with pool:
            first = await pool.submit(make_resource("Center 0"))
            with pytest.raises(QueueFullError, match="1 pending"):
                await pool.submit(make_resource("Center 1"))
            agent.release.set()
            await first

    asyncio.run(scenario())

    assert pool.jobs_processed == 1


def test_block_policy_waits_for_space() -> None:
    agent = SlowAgent()
    pool = _pool(agent, workers=1, max_queue_size=1)
    candidates = [make_resource(f"Center {i}", source_id=f"c{i}") for i in range(4)]

    async def scenario() -> list[VerificationResult]:
        async with pool:
            return await pool.verify_all(candidates)

    assert len(asyncio.run(scenario())) == 4
    assert agent.max_active == 1


def test_submit_requires_running_pool() -> None:
    pool = _pool(SlowAgent())

    with pytest.raises(RuntimeError, match="not running"):
        asyncio.run(pool.submit(make_resource()))


@pytest.mark.parametrize("kwargs", [{"workers": 0}, {"max_queue_size": 0}])
def test_pool_sizes_must_be_positive(kwargs: dict[str, int]) -> None:
    with pytest.raises(ValueError, match="at least 1"):
        _pool(SlowAgent(), **kwargs)


def test_verify_awaits_a_single_result() -> None:
    agent = SlowAgent(fail_for="Broken")
    pool = _pool(agent, workers=2)

    async def scenario() -> VerificationResult:
        async with pool:
            with pytest.raises(RuntimeError, match="cannot verify Broken"):
                await pool.verify(make_resource("Broken"))
            return await pool.verify(make_resource("Center 0"), VerificationType.PERIODIC)

    result = asyncio.run(scenario())

    assert result.decision_reason == "Center 0"
