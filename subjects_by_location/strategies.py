"""
Aggregation strategies.

Both strategies run the same two-phase job shape on a local thread pool:
map tasks over disjoint slices of the sample, a barrier, then reduce tasks
over hash partitions of the intermediate data. They differ in what crosses
the barrier:

* PerKeyCounter combines counts per composite key inside each map task, so
  a reducer only ever sees one partial count per key per map task.
* GroupedAggregator ships every (location, subject) pair uncombined and
  makes a reducer hold a location's whole subject list before counting.
"""

import logging
import shutil
import tempfile
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from functools import reduce
from typing import Iterable, List, Optional, Sequence

from .coordinator.job_manager import Job, JobManager
from .coordinator.metrics import MetricsCollector, RunMetrics
from .errors import AggregationError, ConfigurationError
from .jobs import GROUPED_JOB, PER_KEY_JOB
from .records import CompositeKey
from .worker.map_executor import MapExecutor
from .worker.reduce_executor import ReduceExecutor

logger = logging.getLogger(__name__)

PER_KEY = "per_key"
GROUPED = "grouped"
STRATEGIES = (PER_KEY, GROUPED)

DEFAULT_ARENA_CAPACITY = 1_000_000


def merge_counts(partials: Iterable[Counter]) -> Counter:
    """
    Fold partial per-key counts into one result.

    Addition is associative and commutative, so the order in which partials
    arrive does not change the result.
    """
    return reduce(lambda merged, partial: merged + partial, partials, Counter())


class MapReduceStrategy:
    """Runs one aggregation job over a sample and collects its metrics"""

    name = None
    job = None

    def __init__(self, num_map_tasks: int = 4, num_reduce_tasks: int = 2,
                 max_workers: int = 4, use_combiner: bool = True,
                 work_dir: Optional[str] = None,
                 metrics: Optional[MetricsCollector] = None):
        if num_map_tasks < 1 or num_reduce_tasks < 1 or max_workers < 1:
            raise ConfigurationError("Task and worker counts must be at least 1")
        self.num_map_tasks = num_map_tasks
        self.num_reduce_tasks = num_reduce_tasks
        self.max_workers = max_workers
        self.use_combiner = use_combiner
        self.work_dir = work_dir
        self.job_manager = JobManager()
        self.metrics = metrics or MetricsCollector()
        self.last_job: Optional[Job] = None

    @property
    def last_metrics(self) -> Optional[RunMetrics]:
        if self.last_job is None:
            return None
        return self.metrics.get_metrics(self.last_job.job_id)

    def _reduce_executor(self, task) -> ReduceExecutor:
        return ReduceExecutor(
            task_id=task.task_id,
            partition_id=task.partition_id,
            intermediate_files=task.intermediate_files,
            job=self.job,
        )

    def _to_counts(self, reduce_results: List[dict]) -> List[Counter]:
        raise NotImplementedError

    def aggregate(self, sampled: Sequence[str]) -> Counter:
        """
        Count valid (location, subject) keys over the sampled records.

        Returns:
            Counter mapping CompositeKey to its number of records

        Raises:
            AggregationError: If any map or reduce task fails
        """
        intermediate_root = tempfile.mkdtemp(prefix="subjects-by-location-", dir=self.work_dir)
        job = self.job_manager.create_job(
            strategy=self.name,
            num_records=len(sampled),
            num_map_tasks=self.num_map_tasks,
            num_reduce_tasks=self.num_reduce_tasks,
            intermediate_dir=intermediate_root,
        )
        self.last_job = job

        try:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                map_tasks = self.job_manager.generate_map_tasks(job)
                self.metrics.start_run(job.job_id, self.name, len(map_tasks),
                                       job.num_reduce_tasks, self.use_combiner, len(sampled))
                logger.info(f"Job {job.job_id}: {len(map_tasks)} map tasks over {len(sampled)} records")

                executors = [
                    MapExecutor(
                        task_id=task.task_id,
                        records=sampled,
                        start_offset=task.start_offset,
                        end_offset=task.end_offset,
                        num_reduce_tasks=job.num_reduce_tasks,
                        job=self.job,
                        use_combiner=self.use_combiner,
                        intermediate_dir=job.intermediate_dir,
                    )
                    for task in map_tasks
                ]
                # Barrier: every map task finishes before any reducer starts
                map_results = list(pool.map(lambda executor: executor.execute(), executors))
                for task, result in zip(map_tasks, map_results):
                    self.job_manager.mark_map_task(job, task.task_id, result['success'])
                self._raise_on_failure(job, "Map", map_results)
                self.metrics.end_map_phase(job.job_id, map_results)

                reduce_tasks = self.job_manager.generate_reduce_tasks(job)
                self.metrics.start_reduce_phase(job.job_id, job.intermediate_dir)
                reduce_results = list(pool.map(
                    lambda task: self._reduce_executor(task).execute(), reduce_tasks
                ))
                for task, result in zip(reduce_tasks, reduce_results):
                    self.job_manager.mark_reduce_task(job, task.task_id, result['success'])
                self._raise_on_failure(job, "Reduce", reduce_results)

            counts = merge_counts(self._to_counts(reduce_results))
            self.metrics.end_run(job.job_id, reduce_results, len(counts))
            logger.info(f"Job {job.job_id}: {len(counts)} distinct keys, "
                        f"{sum(counts.values())} valid records")
            return counts

        finally:
            shutil.rmtree(intermediate_root, ignore_errors=True)

    def _raise_on_failure(self, job: Job, phase: str, results: List[dict]):
        for task_id, result in enumerate(results):
            if not result['success']:
                message = f"{phase} task {task_id} of job {job.job_id} failed: {result['error_message']}"
                self.job_manager.mark_failed(job, message)
                raise AggregationError(message) from result.get('exception')


class PerKeyCounter(MapReduceStrategy):
    """Combine-then-shuffle counting per composite key"""

    name = PER_KEY
    job = PER_KEY_JOB

    def _to_counts(self, reduce_results: List[dict]) -> List[Counter]:
        # One partial counter per reducer, merged by addition
        return [
            Counter({CompositeKey.from_token(token): count for token, count in result['results']})
            for result in reduce_results
        ]


class GroupedAggregator(MapReduceStrategy):
    """Shuffle-then-group counting per location; memory grows with the largest location"""

    name = GROUPED
    job = GROUPED_JOB

    def __init__(self, arena_capacity: int = DEFAULT_ARENA_CAPACITY, **kwargs):
        super().__init__(**kwargs)
        if arena_capacity < 1:
            raise ConfigurationError(f"Arena capacity must be at least 1, got {arena_capacity}")
        self.arena_capacity = arena_capacity

    def _reduce_executor(self, task) -> ReduceExecutor:
        return ReduceExecutor(
            task_id=task.task_id,
            partition_id=task.partition_id,
            intermediate_files=task.intermediate_files,
            job=self.job,
            arena_capacity=self.arena_capacity,
        )

    def _to_counts(self, reduce_results: List[dict]) -> List[Counter]:
        partials = []
        for result in reduce_results:
            partial = Counter()
            for location, events_by_subject in result['results']:
                for subject, count in events_by_subject.items():
                    partial[CompositeKey(location, subject)] += count
            partials.append(partial)
        return partials


def get_strategy(name: str, arena_capacity: int = DEFAULT_ARENA_CAPACITY, **kwargs) -> MapReduceStrategy:
    """Build a strategy by name."""
    if name == PER_KEY:
        return PerKeyCounter(**kwargs)
    if name == GROUPED:
        return GroupedAggregator(arena_capacity=arena_capacity, **kwargs)
    raise ConfigurationError(f"Unknown strategy '{name}', expected one of {', '.join(STRATEGIES)}")
