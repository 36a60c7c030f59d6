"""Parallel Executor - runs per-scene pipelines concurrently with all-or-nothing semantics."""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

from clipforge.core.config import Settings
from clipforge.core.errors import PipelineError


class ParallelExecutor:
    """Fans out coroutines on the event loop and joins them behind a single barrier."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize parallel executor.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.max_parallel = getattr(settings, "max_parallel_scenes", None)

    async def run_all(
        self,
        tasks: list[Callable[[], Awaitable[Any]]],
        task_names: Optional[list[str]] = None,
    ) -> list[Any]:
        """
        Run every task concurrently and return results in input order.

        Every task is allowed to finish (or fail) before this returns, so no
        pipeline is left running in the background. If any task failed, a
        PipelineError naming the first failing task is raised and no partial
        result is returned.

        Args:
            tasks: Zero-argument coroutine factories
            task_names: Optional names for logging

        Returns:
            Task results, same order as ``tasks``

        Raises:
            PipelineError: If at least one task raised
        """
        if not tasks:
            return []

        names = [
            task_names[i] if task_names and i < len(task_names) else f"task_{i+1}"
            for i in range(len(tasks))
        ]
        semaphore = asyncio.Semaphore(self.max_parallel) if self.max_parallel else None
        start_time = time.monotonic()

        async def _timed(index: int) -> Any:
            if semaphore is None:
                return await self._run_one(tasks[index], names[index], start_time)
            async with semaphore:
                return await self._run_one(tasks[index], names[index], start_time)

        limit = self.max_parallel or len(tasks)
        self.logger.info(f"Parallel execution: {len(tasks)} tasks (max {limit} in flight)")
        outcomes = await asyncio.gather(*(_timed(i) for i in range(len(tasks))), return_exceptions=True)

        failures = [(i, outcome) for i, outcome in enumerate(outcomes) if isinstance(outcome, BaseException)]
        total_elapsed = time.monotonic() - start_time
        self.logger.info(
            f"Batch complete: {len(tasks) - len(failures)}/{len(tasks)} successful in {total_elapsed:.2f}s"
        )

        if failures:
            index, error = failures[0]
            if not isinstance(error, Exception):
                raise error
            raise PipelineError(
                f"{names[index]} failed: {error}",
                scene_index=index,
                original_error=error,
            ) from error

        return list(outcomes)

    async def _run_one(self, task: Callable[[], Awaitable[Any]], name: str, start_time: float) -> Any:
        try:
            result = await task()
        except Exception as e:
            self.logger.error(f"❌ {name} failed after {time.monotonic() - start_time:.2f}s: {e}")
            raise
        self.logger.info(f"✅ {name} completed in {time.monotonic() - start_time:.2f}s")
        return result
