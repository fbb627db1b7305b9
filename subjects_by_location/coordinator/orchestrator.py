"""
Pipeline orchestration.

source -> sampler -> strategy (extraction and validation run inside its map
tasks) -> formatter -> sink. Only the aggregation stage is timed.
"""

import json
import logging
import os
import random
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config import RunConfig
from ..errors import SinkWriteFailureError, StrategyMismatchError
from ..formatter import format_result
from ..sampler import reservoir_sample
from ..storage import open_source, write_lines
from ..strategies import GROUPED, PER_KEY, get_strategy
from .metrics import RunMetrics

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Outcome of running one strategy"""
    strategy: str
    output_path: str
    lines_written: int
    aggregation_ms: int
    metrics: Optional[RunMetrics] = None

    def to_dict(self) -> dict:
        return {
            'strategy': self.strategy,
            'output_path': self.output_path,
            'lines_written': self.lines_written,
            'aggregation_ms': self.aggregation_ms,
            'metrics': self.metrics.to_dict() if self.metrics else None,
        }


@dataclass
class ComparisonReport:
    """Both strategies run over the same sample"""
    records_sampled: int
    runs: Dict[str, RunReport] = field(default_factory=dict)
    timings_ms: Dict[str, List[int]] = field(default_factory=dict)

    @property
    def slowdown_ms(self) -> float:
        """Mean extra time the grouped strategy needed over the per-key one"""
        grouped = self.timings_ms.get(GROUPED) or [0]
        per_key = self.timings_ms.get(PER_KEY) or [0]
        return sum(grouped) / len(grouped) - sum(per_key) / len(per_key)

    def to_dict(self) -> dict:
        return {
            'records_sampled': self.records_sampled,
            'slowdown_ms': self.slowdown_ms,
            'timings_ms': self.timings_ms,
            'runs': {name: run.to_dict() for name, run in self.runs.items()},
        }

    def save_to_file(self, filepath: str):
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


def load_sample(config: RunConfig) -> List[str]:
    """Read the configured source and sample it"""
    rng = random.Random(config.seed)
    return reservoir_sample(open_source(config.input), config.sample_bound, rng)


def _timed_aggregate(aggregator, sampled):
    start = time.time()
    result = aggregator.aggregate(sampled)
    return result, int((time.time() - start) * 1000)


def run_pipeline(config: RunConfig, strategy: Optional[str] = None,
                 sampled: Optional[List[str]] = None) -> RunReport:
    """
    Run one strategy end to end.

    Args:
        config: Resolved run options
        strategy: Strategy name, defaults to config.strategy
        sampled: Pre-sampled records; the configured source is read when omitted

    Returns:
        RunReport with the aggregation duration and where the report went
    """
    name = strategy or config.strategy
    logger.info(f"Common options: {config.to_dict()}")

    if sampled is None:
        sampled = load_sample(config)

    aggregator = get_strategy(name, **config.strategy_options())
    result, elapsed_ms = _timed_aggregate(aggregator, sampled)

    lines = format_result(result, name)
    output_path = write_lines(config.output_dir(name), lines)
    logger.info(f"{name} pipeline runs in {elapsed_ms} ms")

    return RunReport(
        strategy=name,
        output_path=output_path,
        lines_written=len(lines),
        aggregation_ms=elapsed_ms,
        metrics=aggregator.last_metrics,
    )


def _diff(expected: Counter, actual: Counter, limit: int = 5) -> str:
    keys = [k for k in set(expected) | set(actual) if expected[k] != actual[k]]
    shown = ", ".join(f"{k}: {expected[k]} != {actual[k]}" for k in sorted(keys, key=str)[:limit])
    return f"{len(keys)} keys differ ({shown})"


def compare_strategies(config: RunConfig, repeats: int = 1) -> ComparisonReport:
    """
    Run both strategies over one shared sample and check they agree.

    Reports are written only once every run has finished and agreed.

    Raises:
        StrategyMismatchError: If the strategies produce different counts
        SinkWriteFailureError: If either report cannot be written; no report
            is left on disk
    """
    if repeats < 1:
        raise ValueError(f"repeats must be at least 1, got {repeats}")

    sampled = load_sample(config)
    report = ComparisonReport(records_sampled=len(sampled))
    results = {}
    metrics = {}

    for attempt in range(repeats):
        for name in (PER_KEY, GROUPED):
            aggregator = get_strategy(name, **config.strategy_options())
            result, elapsed_ms = _timed_aggregate(aggregator, sampled)
            report.timings_ms.setdefault(name, []).append(elapsed_ms)
            results[name] = result
            metrics[name] = aggregator.last_metrics
            logger.info(f"Run {attempt + 1}/{repeats}: {name} pipeline runs in {elapsed_ms} ms")

        if results[PER_KEY] != results[GROUPED]:
            raise StrategyMismatchError(
                f"Strategies disagree on the same sample: {_diff(results[PER_KEY], results[GROUPED])}"
            )

    formatted = {name: format_result(results[name], name) for name in (PER_KEY, GROUPED)}
    written = []
    try:
        for name, lines in formatted.items():
            written.append(write_lines(config.output_dir(name), lines))
    except SinkWriteFailureError:
        # Either both reports are on disk or neither is
        for path in written:
            os.remove(path)
        raise

    for name, output_path in zip(formatted, written):
        report.runs[name] = RunReport(
            strategy=name,
            output_path=output_path,
            lines_written=len(formatted[name]),
            aggregation_ms=report.timings_ms[name][-1],
            metrics=metrics[name],
        )

    logger.info(f"Grouped pipeline (with group by location) is slower by {report.slowdown_ms:.1f} ms")
    return report
