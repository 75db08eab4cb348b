"""Runs the cpu and net pipelines and joins them into one payload.

Strategies (chosen by configuration, never auto-detected):
- SEQUENTIAL: cpu to completion, then net. The first failure aborts and
  net is never started if cpu failed.
- CONCURRENT: both pipelines in flight at once. Neither is cancelled when
  the other fails; every failure is collected and reported together.

Pipelines are blocking boto3 calls, so each runs on a private thread pool
that is torn down without waiting when a deadline abandons a pipeline.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any

from whenever import Instant

from asg_metrics.errors import MetricsError, PipelineError, PipelineTimeoutError
from asg_metrics.models import ExecutionStrategy, ResponsePayload
from asg_metrics.pipelines import (
    CPU_PIPELINE,
    NET_PIPELINE,
    fetch_and_reduce_cpu,
    fetch_and_reduce_net,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from asg_metrics.client import MetricClient
    from asg_metrics.models import MetricsConfig

logger = logging.getLogger("asg_metrics.orchestrator")

_Job = tuple[str, "Callable[[], Any]"]


@dataclass(frozen=True)
class RunResult:
    payload: ResponsePayload
    elapsed_sec: float


async def run(
    client: MetricClient,
    config: MetricsConfig,
    *,
    now: Instant | None = None,
) -> RunResult:
    """Fetch and reduce both metrics under the configured strategy.

    Raises:
        PipelineError: one or more pipelines failed (fetch or empty series).
        PipelineTimeoutError: config.timeout_sec elapsed before both joined.

    Anything other than a MetricsError is a bug and propagates unchanged.
    """
    now = now or Instant.now()
    jobs: list[_Job] = [
        (CPU_PIPELINE.name, partial(fetch_and_reduce_cpu, client, config, now)),
        (NET_PIPELINE.name, partial(fetch_and_reduce_net, client, config, now)),
    ]

    logger.debug(
        "Running %d pipelines: strategy=%s timeout=%s",
        len(jobs),
        config.strategy.value,
        config.timeout_sec,
    )

    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(max_workers=len(jobs), thread_name_prefix="asg-metrics")
    start = time.perf_counter()
    try:
        if config.strategy is ExecutionStrategy.SEQUENTIAL:
            results = await _run_sequential(loop, executor, jobs, config.timeout_sec)
        else:
            results = await _run_concurrent(loop, executor, jobs, config.timeout_sec)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
        elapsed = time.perf_counter() - start
        logger.info("== Took %.2f secs ==", elapsed)

    payload = ResponsePayload(
        cpu=results[CPU_PIPELINE.name],
        net=results[NET_PIPELINE.name],
    )
    return RunResult(payload=payload, elapsed_sec=elapsed)


async def _run_sequential(
    loop: asyncio.AbstractEventLoop,
    executor: ThreadPoolExecutor,
    jobs: list[_Job],
    timeout_sec: float | None,
) -> dict[str, Any]:
    deadline = None if timeout_sec is None else loop.time() + timeout_sec
    results: dict[str, Any] = {}

    for name, job in jobs:
        remaining = None if deadline is None else max(deadline - loop.time(), 0.0)
        try:
            results[name] = await asyncio.wait_for(
                loop.run_in_executor(executor, job), remaining
            )
        except TimeoutError:
            pending = [n for n, _ in jobs if n not in results]
            raise PipelineTimeoutError(timeout_sec, pending) from None
        except MetricsError as exc:
            logger.warning("Pipeline %s failed: %s", name, exc)
            raise PipelineError({name: exc}) from exc

    return results


async def _run_concurrent(
    loop: asyncio.AbstractEventLoop,
    executor: ThreadPoolExecutor,
    jobs: list[_Job],
    timeout_sec: float | None,
) -> dict[str, Any]:
    futures = {name: loop.run_in_executor(executor, job) for name, job in jobs}

    try:
        outcomes = await asyncio.wait_for(
            asyncio.gather(*futures.values(), return_exceptions=True),
            timeout_sec,
        )
    except TimeoutError:
        pending = [name for name, fut in futures.items() if fut.cancelled()]
        raise PipelineTimeoutError(timeout_sec, pending) from None

    results: dict[str, Any] = {}
    failures: dict[str, BaseException] = {}
    for name, outcome in zip(futures, outcomes, strict=True):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, MetricsError):
                raise outcome
            logger.warning("Pipeline %s failed: %s", name, outcome)
            failures[name] = outcome
        else:
            results[name] = outcome

    if failures:
        raise PipelineError(failures)
    return results
