"""
Job Manager
Splits a sample into map tasks, assigns intermediate files to reduce tasks,
and tracks task state for one aggregation run
"""

import glob
import os
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class JobStatus(Enum):
    """Status of an aggregation job"""
    PENDING = "pending"
    MAP_PHASE = "map_phase"
    SHUFFLE_PHASE = "shuffle_phase"
    REDUCE_PHASE = "reduce_phase"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatus(Enum):
    """Status of individual map or reduce tasks"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class MapTask:
    """Represents a single map task over a contiguous slice of the sample"""
    task_id: int
    start_offset: int
    end_offset: int
    status: TaskStatus = TaskStatus.PENDING


@dataclass
class ReduceTask:
    """Represents a single reduce task"""
    task_id: int
    partition_id: int
    intermediate_files: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING


@dataclass
class Job:
    """Represents one aggregation run of one strategy"""
    job_id: str
    strategy: str
    num_records: int
    num_map_tasks: int
    num_reduce_tasks: int
    intermediate_dir: str
    status: JobStatus = JobStatus.PENDING
    map_tasks: List[MapTask] = field(default_factory=list)
    reduce_tasks: List[ReduceTask] = field(default_factory=list)
    start_time: float = 0.0
    end_time: float = 0.0
    error_message: str = ""


def new_job_id(strategy: str) -> str:
    return f"{strategy}-{uuid.uuid4().hex[:8]}"


class JobManager:
    """Manages the lifecycle of aggregation jobs"""

    def __init__(self):
        self.jobs: Dict[str, Job] = {}
        self.lock = threading.Lock()

    def create_job(self, strategy: str, num_records: int, num_map_tasks: int,
                   num_reduce_tasks: int, intermediate_dir: str) -> Job:
        """Create a new job; its intermediate files live in a per-job directory"""
        job_id = new_job_id(strategy)
        with self.lock:
            job = Job(
                job_id=job_id,
                strategy=strategy,
                num_records=num_records,
                num_map_tasks=num_map_tasks,
                num_reduce_tasks=num_reduce_tasks,
                intermediate_dir=os.path.join(intermediate_dir, job_id),
                start_time=time.time()
            )
            self.jobs[job_id] = job
            return job

    def generate_map_tasks(self, job: Job) -> List[MapTask]:
        """Split the sample into at most M contiguous, disjoint map tasks"""
        num_tasks = max(1, min(job.num_map_tasks, job.num_records))
        chunk_size = job.num_records // num_tasks

        map_tasks = []
        for i in range(num_tasks):
            start = i * chunk_size
            end = job.num_records if i == num_tasks - 1 else (i + 1) * chunk_size
            map_tasks.append(MapTask(task_id=i, start_offset=start, end_offset=end))

        job.map_tasks = map_tasks
        job.status = JobStatus.MAP_PHASE
        return map_tasks

    def generate_reduce_tasks(self, job: Job) -> List[ReduceTask]:
        """Create R reduce tasks with intermediate file assignments"""
        reduce_tasks = []
        for partition_id in range(job.num_reduce_tasks):
            pattern = os.path.join(job.intermediate_dir, f"map-*-reduce-{partition_id}.jsonl")
            reduce_tasks.append(ReduceTask(
                task_id=partition_id,
                partition_id=partition_id,
                intermediate_files=sorted(glob.glob(pattern))
            ))

        job.reduce_tasks = reduce_tasks
        job.status = JobStatus.REDUCE_PHASE
        return reduce_tasks

    def mark_map_task(self, job: Job, task_id: int, success: bool):
        with self.lock:
            job.map_tasks[task_id].status = TaskStatus.COMPLETED if success else TaskStatus.FAILED
            if all(t.status == TaskStatus.COMPLETED for t in job.map_tasks):
                job.status = JobStatus.SHUFFLE_PHASE

    def mark_reduce_task(self, job: Job, task_id: int, success: bool):
        with self.lock:
            job.reduce_tasks[task_id].status = TaskStatus.COMPLETED if success else TaskStatus.FAILED
            if all(t.status == TaskStatus.COMPLETED for t in job.reduce_tasks):
                job.status = JobStatus.COMPLETED
                job.end_time = time.time()

    def mark_failed(self, job: Job, error_message: str):
        with self.lock:
            job.status = JobStatus.FAILED
            job.error_message = error_message
            job.end_time = time.time()

    def get_job_status(self, job_id: str) -> Optional[Dict]:
        """Get current job status with progress"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return None

            map_completed = sum(1 for t in job.map_tasks if t.status == TaskStatus.COMPLETED)
            reduce_completed = sum(1 for t in job.reduce_tasks if t.status == TaskStatus.COMPLETED)
            total_tasks = len(job.map_tasks) + len(job.reduce_tasks)
            progress = int((map_completed + reduce_completed) / total_tasks * 100) if total_tasks > 0 else 0

            return {
                'status': job.status.value,
                'progress': progress,
                'map_completed': map_completed,
                'map_total': len(job.map_tasks),
                'reduce_completed': reduce_completed,
                'reduce_total': len(job.reduce_tasks),
                'error_message': job.error_message,
            }
