"""
Map Task Executor
Executes map tasks by reading a split of the sampled records, applying the
job's map function, partitioning output, and writing intermediate files
"""

import json
import logging
import os
import time
from collections import defaultdict
from typing import List, Sequence, Tuple

from .function_loader import FunctionLoader

logger = logging.getLogger(__name__)


def partition_for(key, num_reduce_tasks: int) -> int:
    """Hash partitioning shared by every map task of a run"""
    return hash(str(key)) % num_reduce_tasks


def intermediate_filename(intermediate_dir: str, task_id: int, partition: int) -> str:
    return os.path.join(intermediate_dir, f"map-{task_id}-reduce-{partition}.jsonl")


class MapExecutor:
    """Executes a single map task"""

    def __init__(self, task_id: int, records: Sequence[str], start_offset: int,
                 end_offset: int, num_reduce_tasks: int, job: str,
                 use_combiner: bool, intermediate_dir: str):
        """
        Initialize the map executor

        Args:
            task_id: Unique ID for this map task
            records: The sampled records shared by all map tasks
            start_offset: Index of the first record of this task's split
            end_offset: Index one past the last record of this task's split
            num_reduce_tasks: Number of reduce tasks (for partitioning)
            job: Job module name or file holding the map/reduce functions
            use_combiner: Whether to apply combiner function
            intermediate_dir: Directory where intermediate files are written
        """
        self.task_id = task_id
        self.records = records
        self.start_offset = start_offset
        self.end_offset = end_offset
        self.num_reduce_tasks = num_reduce_tasks
        self.job = job
        self.use_combiner = use_combiner
        self.intermediate_dir = intermediate_dir
        self.loader = FunctionLoader(job)

    def execute(self) -> dict:
        """
        Execute the map task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'intermediate_files', 'records_read', 'valid_records',
            'pairs_emitted', 'pairs_written' and 'max_buffered' fields
        """
        start_time = time.time()

        try:
            map_func = self.loader.get_map_function()
            combiner_func = self.loader.get_combiner_function() if self.use_combiner else None

            key_values = self._read_input_split()
            logger.info(f"Map task {self.task_id}: Processing {len(key_values)} records")

            # Apply map function and partition output, combining as pairs are emitted
            if combiner_func:
                intermediate = defaultdict(dict)
            else:
                intermediate = defaultdict(list)
            valid_records = 0
            pairs_emitted = 0
            buffered = 0
            max_buffered = 0
            for key, value in key_values:
                emitted = False
                for out_key, out_value in map_func(key, value):
                    partition = intermediate[partition_for(out_key, self.num_reduce_tasks)]
                    if combiner_func:
                        buffered += self._combine_into(partition, combiner_func, out_key, out_value)
                    else:
                        partition.append((out_key, out_value))
                        buffered += 1
                    pairs_emitted += 1
                    emitted = True
                max_buffered = max(max_buffered, buffered)
                if emitted:
                    valid_records += 1

            if combiner_func:
                intermediate = {p: list(combined.items()) for p, combined in intermediate.items()}
                logger.info(f"Map task {self.task_id}: Combined {pairs_emitted} intermediate pairs "
                            f"into {buffered}")
            else:
                logger.info(f"Map task {self.task_id}: Generated {pairs_emitted} intermediate pairs")

            intermediate_files = self._write_intermediate_files(intermediate)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Map task {self.task_id}: Completed in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'intermediate_files': intermediate_files,
                'records_read': len(key_values),
                'valid_records': valid_records,
                'pairs_emitted': pairs_emitted,
                'pairs_written': sum(len(v) for v in intermediate.values()),
                'max_buffered': max_buffered,
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Map task {self.task_id} failed: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'exception': e,
            }

    def _read_input_split(self) -> List[Tuple[int, str]]:
        """
        Read the assigned slice of the sample

        Returns:
            List of (record_index, record) tuples
        """
        return [(index, self.records[index])
                for index in range(self.start_offset, min(self.end_offset, len(self.records)))]

    @staticmethod
    def _combine_into(combined: dict, combiner_func, key, value) -> int:
        """
        Fold one emitted pair into a partition's combined values

        The combiner is applied to the running value and the new one, so
        a partition holds a single entry per distinct key.

        Returns:
            Number of new entries added to the partition (0 or 1)
        """
        if key not in combined:
            combined[key] = value
            return 1
        for _, combined_value in combiner_func(key, [combined[key], value]):
            combined[key] = combined_value
        return 0

    def _write_intermediate_files(self, intermediate: dict) -> List[str]:
        """
        Write intermediate key-value pairs to disk, one JSON object per line

        Args:
            intermediate: Dictionary mapping partition_id to list of (key, value) pairs

        Returns:
            Paths of the files written, one per non-empty partition
        """
        os.makedirs(self.intermediate_dir, exist_ok=True)

        written = []
        for partition, kv_pairs in sorted(intermediate.items()):
            if not kv_pairs:
                continue
            filename = intermediate_filename(self.intermediate_dir, self.task_id, partition)
            with open(filename, 'w', encoding='utf-8') as f:
                for key, value in kv_pairs:
                    f.write(json.dumps({'key': key, 'value': value}) + '\n')
            written.append(filename)

        return written
