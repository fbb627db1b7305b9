"""
Run configuration.

Options are resolved once at startup. The date only feeds the default input
and output locations; an explicit input or output always wins.
"""

import os
import re
import tempfile
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from .errors import ConfigurationError
from .strategies import DEFAULT_ARENA_CAPACITY, PER_KEY, STRATEGIES

GDELT_EVENTS_URL = "http://data.gdeltproject.org/events/"
DEFAULT_SAMPLE_BOUND = 10000
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_DATE_FORMAT = re.compile(r"^\d{8}$")


def default_date() -> str:
    """Today's date as YYYYMMDD"""
    return datetime.now().strftime("%Y%m%d")


def default_input(date: str) -> str:
    return f"{GDELT_EVENTS_URL}{date}.export.CSV.zip"


def default_output(date: str) -> str:
    return os.path.join(tempfile.gettempdir(), f"gdelt-{date}")


@dataclass
class RunConfig:
    """Resolved options for one run"""
    date: str
    input: str
    output: str
    sample_bound: int = DEFAULT_SAMPLE_BOUND
    strategy: str = PER_KEY
    num_map_tasks: int = 4
    num_reduce_tasks: int = 2
    max_workers: int = 4
    use_combiner: bool = True
    seed: Optional[int] = None
    arena_capacity: int = DEFAULT_ARENA_CAPACITY
    log_level: str = "INFO"

    def output_dir(self, strategy: Optional[str] = None) -> str:
        """Destination directory of one strategy's report"""
        return os.path.join(self.output, strategy or self.strategy)

    def strategy_options(self) -> dict:
        return {
            'num_map_tasks': self.num_map_tasks,
            'num_reduce_tasks': self.num_reduce_tasks,
            'max_workers': self.max_workers,
            'use_combiner': self.use_combiner,
            'arena_capacity': self.arena_capacity,
        }

    def to_dict(self) -> dict:
        return asdict(self)


def resolve_config(date: Optional[str] = None, input: Optional[str] = None,
                   output: Optional[str] = None, **options) -> RunConfig:
    """
    Build a RunConfig, filling date-derived defaults and validating ranges.

    Args:
        date: YYYYMMDD date of the export; defaults to today
        input: Explicit source location; overrides the date-derived URL
        output: Destination prefix; defaults to <tmp>/gdelt-<date>
        **options: Any other RunConfig field; None values keep the default

    Raises:
        ConfigurationError: If an option is malformed or out of range
    """
    date = date or default_date()
    if not _DATE_FORMAT.match(date):
        raise ConfigurationError(f"Date must be in YYYYMMDD form, got '{date}'")

    known = {name for name in RunConfig.__dataclass_fields__} - {'date', 'input', 'output'}
    unknown = set(options) - known
    if unknown:
        raise ConfigurationError(f"Unknown options: {', '.join(sorted(unknown))}")

    config = RunConfig(
        date=date,
        input=input or default_input(date),
        output=output or default_output(date),
        **{name: value for name, value in options.items() if value is not None}
    )

    if config.sample_bound < 0:
        raise ConfigurationError(f"Sample bound must be non-negative, got {config.sample_bound}")
    if config.strategy not in STRATEGIES:
        raise ConfigurationError(
            f"Unknown strategy '{config.strategy}', expected one of {', '.join(STRATEGIES)}"
        )
    for name in ('num_map_tasks', 'num_reduce_tasks', 'max_workers', 'arena_capacity'):
        if getattr(config, name) < 1:
            raise ConfigurationError(f"{name} must be at least 1, got {getattr(config, name)}")
    config.log_level = config.log_level.upper()
    if config.log_level not in LOG_LEVELS:
        raise ConfigurationError(f"Unknown log level '{config.log_level}'")

    return config
