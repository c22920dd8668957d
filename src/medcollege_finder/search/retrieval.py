"""
Retrieval Runner Module - Parallel fan-out of strategies over partitions.
=========================================================================

Runs (strategy × variant × partition) tasks on a shared thread pool and
merges their rows in task-submission order, so the merged list does not
depend on which task finished first.

Strategies run stage by stage in their configured order. With
short-circuiting on, a strategy is skipped for a variant once an earlier
strategy matched any row for that variant. That decision ignores the
stream/course/state filters (existence probes cover what the filtered
reads cannot see), so narrowing a search never unlocks extra strategies.

Failures are isolated per task; a time budget bounds the whole run.
"""

import time
from concurrent.futures import Executor, Future, wait
from dataclasses import dataclass, field
from typing import Optional, Sequence

from medcollege_finder.catalog.store import CatalogPartition
from medcollege_finder.search.strategies import Candidate, RetrievalStrategy
from medcollege_finder.shared.logging import get_logger
from medcollege_finder.shared.schemas import SearchFilters

logger = get_logger(__name__)


@dataclass
class RetrievalOutcome:
    """Merged output of one retrieval run."""

    candidates: list[Candidate] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    partial: bool = False
    tasks_run: int = 0


@dataclass(frozen=True)
class _Task:
    strategy: RetrievalStrategy
    variant: str
    partition: CatalogPartition
    search: bool
    probe: bool

    @property
    def label(self) -> str:
        return f"{self.strategy.tag}:{self.partition.name}:'{self.variant}'"


def _execute(task: _Task, filters: Optional[SearchFilters]) -> tuple[list[Candidate], bool]:
    """Run one task: (candidates, whether the variant matched anything unfiltered)."""
    candidates: list[Candidate] = []
    if task.search:
        candidates = task.strategy.retrieve(task.partition, task.variant, filters)
    matched = bool(candidates)
    if not matched and task.probe:
        matched = task.strategy.probe(task.partition, task.variant)
    return candidates, matched


class RetrievalRunner:
    """
    Executes retrieval strategies concurrently.

    The executor is owned by the caller (the engine) and reused across
    searches.

    Example:
        >>> with ThreadPoolExecutor(max_workers=8) as pool:
        ...     runner = RetrievalRunner(pool, create_strategies())
        ...     outcome = runner.run(("AJ",), catalog.partitions_for(None), catalog.partitions_for(None))
        >>> outcome.candidates[0].strategy
        'exact'
    """

    def __init__(
        self,
        executor: Executor,
        strategies: Sequence[RetrievalStrategy],
        short_circuit: bool = True,
        time_budget_seconds: float = 5.0,
    ):
        self._executor = executor
        self._strategies = list(strategies)
        self._short_circuit = short_circuit
        self._time_budget = time_budget_seconds

    @property
    def strategies(self) -> list[RetrievalStrategy]:
        return list(self._strategies)

    def run(
        self,
        variants: Sequence[str],
        partitions: Sequence[CatalogPartition],
        all_partitions: Sequence[CatalogPartition],
        filters: Optional[SearchFilters] = None,
        strategies: Optional[Sequence[RetrievalStrategy]] = None,
    ) -> RetrievalOutcome:
        """
        Run the strategy chain for every variant.

        Args:
            variants: Query variants, in order
            partitions: Partitions to read (already narrowed by stream)
            all_partitions: Every configured partition; used to judge
                short-circuiting independently of the stream filter
            filters: Optional course/state narrowing
            strategies: Strategy chain override (defaults to the runner's)

        Returns:
            RetrievalOutcome with candidates in deterministic order
        """
        chain = list(strategies) if strategies is not None else self._strategies
        outcome = RetrievalOutcome()
        deadline = time.monotonic() + self._time_budget

        if not variants or not partitions or not chain:
            return outcome

        if not self._short_circuit:
            tasks = [
                _Task(strategy, variant, partition, search=True, probe=False)
                for strategy in chain
                for variant in variants
                for partition in partitions
            ]
            self._run_stage(tasks, filters, deadline, outcome)
            return outcome

        narrowed = bool(filters and filters.has_narrowing)
        searched = {id(p) for p in partitions}
        probe_only = [p for p in all_partitions if id(p) not in searched]
        satisfied: set[str] = set()

        for strategy in chain:
            pending = [v for v in variants if v not in satisfied]
            if not pending:
                break

            tasks: list[_Task] = []
            for variant in pending:
                tasks.extend(
                    _Task(strategy, variant, partition, search=True, probe=narrowed)
                    for partition in partitions
                )
                tasks.extend(
                    _Task(strategy, variant, partition, search=False, probe=True)
                    for partition in probe_only
                )

            matched = self._run_stage(tasks, filters, deadline, outcome)
            satisfied.update(matched)
            if outcome.partial:
                break

        return outcome

    def _run_stage(
        self,
        tasks: list[_Task],
        filters: Optional[SearchFilters],
        deadline: float,
        outcome: RetrievalOutcome,
    ) -> set[str]:
        """Submit a batch of tasks, wait within the budget, merge in order."""
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            self._mark_partial(outcome, len(tasks))
            return set()

        futures: list[Future] = [self._executor.submit(_execute, task, filters) for task in tasks]
        _, not_done = wait(futures, timeout=remaining)

        matched: set[str] = set()
        for task, future in zip(tasks, futures):
            if future in not_done:
                future.cancel()
                continue
            outcome.tasks_run += 1
            error = future.exception()
            if error is not None:
                logger.warning(f"Retrieval task {task.label} failed: {error}")
                outcome.warnings.append(
                    f"{task.strategy.tag} search failed on {task.partition.name}: {error}"
                )
                continue
            candidates, variant_matched = future.result()
            outcome.candidates.extend(candidates)
            if variant_matched:
                matched.add(task.variant)

        if not_done:
            self._mark_partial(outcome, len(not_done))

        logger.debug(
            f"Stage finished: {len(tasks) - len(not_done)}/{len(tasks)} tasks, "
            f"{len(outcome.candidates)} candidates so far"
        )
        return matched

    def _mark_partial(self, outcome: RetrievalOutcome, abandoned: int) -> None:
        message = (
            f"Time budget of {self._time_budget:g}s exceeded; "
            f"{abandoned} retrieval task(s) abandoned"
        )
        logger.warning(message)
        outcome.partial = True
        outcome.warnings.append(message)
