"""
Performance metrics collection for aggregation runs.
"""

import glob
import json
import os
import time
from dataclasses import asdict, dataclass
from typing import Dict, Optional

import psutil


@dataclass
class RunMetrics:
    """Metrics for a single aggregation run."""

    run_id: str
    strategy: str
    start_time: float
    end_time: float
    map_phase_start: float
    map_phase_end: float
    reduce_phase_start: float
    reduce_phase_end: float
    num_map_tasks: int
    num_reduce_tasks: int
    use_combiner: bool
    records_sampled: int
    valid_records: int = 0
    pairs_emitted: int = 0
    intermediate_pairs: int = 0
    intermediate_size_bytes: int = 0
    distinct_keys: int = 0
    max_map_buffer: int = 0
    largest_group: int = 0
    peak_rss_bytes: int = 0
    combiner_reduction_ratio: float = 0.0

    @property
    def total_time_seconds(self) -> float:
        """Total aggregation time in seconds."""
        return self.end_time - self.start_time

    @property
    def map_phase_time_seconds(self) -> float:
        return self.map_phase_end - self.map_phase_start

    @property
    def reduce_phase_time_seconds(self) -> float:
        return self.reduce_phase_end - self.reduce_phase_start

    def to_dict(self) -> dict:
        """Convert metrics to dictionary, including derived timings."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        data['map_phase_time_seconds'] = self.map_phase_time_seconds
        data['reduce_phase_time_seconds'] = self.reduce_phase_time_seconds
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class MetricsCollector:
    """Collects metrics for aggregation runs."""

    def __init__(self):
        self.run_metrics: Dict[str, RunMetrics] = {}
        self.process = psutil.Process()

    def get_memory_usage(self) -> int:
        """Current resident memory of this process in bytes."""
        return self.process.memory_info().rss

    def _sample_memory(self, run_id: str):
        metrics = self.run_metrics[run_id]
        metrics.peak_rss_bytes = max(metrics.peak_rss_bytes, self.get_memory_usage())

    def start_run(self, run_id: str, strategy: str, num_map_tasks: int,
                  num_reduce_tasks: int, use_combiner: bool, records_sampled: int):
        """Initialize metrics tracking for a new run."""
        now = time.time()
        self.run_metrics[run_id] = RunMetrics(
            run_id=run_id,
            strategy=strategy,
            start_time=now,
            end_time=0,
            map_phase_start=now,
            map_phase_end=0,
            reduce_phase_start=0,
            reduce_phase_end=0,
            num_map_tasks=num_map_tasks,
            num_reduce_tasks=num_reduce_tasks,
            use_combiner=use_combiner,
            records_sampled=records_sampled,
        )
        self._sample_memory(run_id)

    def end_map_phase(self, run_id: str, map_results: list):
        """Mark the end of the map phase and record what it emitted."""
        if run_id not in self.run_metrics:
            return
        metrics = self.run_metrics[run_id]
        metrics.map_phase_end = time.time()
        metrics.valid_records = sum(r.get('valid_records', 0) for r in map_results)
        metrics.pairs_emitted = sum(r.get('pairs_emitted', 0) for r in map_results)
        metrics.intermediate_pairs = sum(r.get('pairs_written', 0) for r in map_results)
        metrics.max_map_buffer = max((r.get('max_buffered', 0) for r in map_results), default=0)
        if metrics.pairs_emitted > 0:
            metrics.combiner_reduction_ratio = \
                1.0 - (metrics.intermediate_pairs / metrics.pairs_emitted)
        self._sample_memory(run_id)

    def start_reduce_phase(self, run_id: str, intermediate_dir: str):
        """Mark the start of the reduce phase and measure the shuffle volume on disk."""
        if run_id not in self.run_metrics:
            return
        metrics = self.run_metrics[run_id]
        metrics.reduce_phase_start = time.time()

        intermediate_files = glob.glob(os.path.join(intermediate_dir, "map-*-reduce-*.jsonl"))
        metrics.intermediate_size_bytes = sum(
            os.path.getsize(f) for f in intermediate_files if os.path.exists(f)
        )

    def end_run(self, run_id: str, reduce_results: list, distinct_keys: int):
        """Mark run completion."""
        if run_id not in self.run_metrics:
            return
        metrics = self.run_metrics[run_id]
        metrics.reduce_phase_end = time.time()
        metrics.end_time = metrics.reduce_phase_end
        metrics.largest_group = max((r.get('largest_group', 0) for r in reduce_results), default=0)
        metrics.distinct_keys = distinct_keys
        self._sample_memory(run_id)

    def get_metrics(self, run_id: str) -> Optional[RunMetrics]:
        return self.run_metrics.get(run_id)
