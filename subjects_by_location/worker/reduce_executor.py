"""
Reduce Task Executor
Executes reduce tasks by reading intermediate data, grouping by key,
and applying the job's reduce function
"""

import json
import logging
import os
import time
from collections import defaultdict
from typing import List, Optional

from .arena import ArenaPool
from .function_loader import FunctionLoader

logger = logging.getLogger(__name__)


class ReduceExecutor:
    """Executes a single reduce task"""

    def __init__(self, task_id: int, partition_id: int, intermediate_files: List[str],
                 job: str, arena_capacity: Optional[int] = None):
        """
        Initialize the reduce executor

        Args:
            task_id: Unique ID for this reduce task
            partition_id: Partition ID this reduce task is responsible for
            intermediate_files: List of intermediate file paths to read
            job: Job module name or file holding the map/reduce functions
            arena_capacity: When set, each key's values are held in a
                bounded arena of this capacity instead of a plain list
        """
        self.task_id = task_id
        self.partition_id = partition_id
        self.intermediate_files = intermediate_files
        self.job = job
        self.arena_capacity = arena_capacity
        self.loader = FunctionLoader(job)
        self.largest_group = 0

    def execute(self) -> dict:
        """
        Execute the reduce task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'results' and 'largest_group' fields
        """
        start_time = time.time()

        try:
            reduce_func = self.loader.get_reduce_function()

            key_groups = self._read_and_group_intermediate()
            logger.info(f"Reduce task {self.task_id}: Grouped {len(key_groups)} unique keys")

            results = []
            for key, values in key_groups.items():
                for out_key, out_value in reduce_func(key, values):
                    results.append((out_key, out_value))
                if self.arena_capacity is not None:
                    values.release()

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Reduce task {self.task_id}: Generated {len(results)} output pairs "
                        f"in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'results': results,
                'largest_group': self.largest_group,
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Reduce task {self.task_id} failed: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'exception': e,
                'largest_group': self.largest_group,
            }

    def _read_and_group_intermediate(self) -> dict:
        """
        Read all intermediate files and group by key

        Returns:
            Dictionary mapping key to its values (a list, or an arena when
            arena_capacity is set)
        """
        if self.arena_capacity is not None:
            pool = ArenaPool(self.arena_capacity)
            key_groups = {}
        else:
            pool = None
            key_groups = defaultdict(list)

        files_read = 0
        lines_processed = 0
        lines_skipped = 0

        try:
            for filepath in self.intermediate_files:
                if not os.path.exists(filepath):
                    logger.warning(f"Reduce task {self.task_id}: file not found: {filepath}")
                    continue

                files_read += 1

                with open(filepath, 'r', encoding='utf-8') as f:
                    for line in f:
                        line = line.strip()
                        if not line:
                            continue

                        try:
                            record = json.loads(line)
                            key = str(record['key'])
                            value = record['value']
                        except (json.JSONDecodeError, KeyError) as e:
                            lines_skipped += 1
                            logger.warning(f"Reduce task {self.task_id}: Skipping malformed line "
                                           f"in {filepath}: {e}")
                            continue

                        if pool is not None:
                            key_groups[key] = pool.arena_for(key)
                        key_groups[key].append(value)
                        lines_processed += 1
        finally:
            if pool is not None:
                self.largest_group = pool.largest_group
                if pool.arenas:
                    logger.info(f"Reduce task {self.task_id}: Largest group is "
                                f"{pool.largest_group_name} with {self.largest_group} values")
            else:
                self.largest_group = max((len(v) for v in key_groups.values()), default=0)

        logger.info(f"Reduce task {self.task_id}: Read {files_read} files, processed "
                    f"{lines_processed} records, skipped {lines_skipped} malformed records")
        return key_groups
