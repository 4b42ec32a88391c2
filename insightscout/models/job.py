# models/job.py

"""
Job-related data models
"""

from pydantic import Field
from typing import Optional, List, Tuple
from enum import Enum

from insightscout.models.research import CamelModel, CompanyResult


class JobState(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not JobState.PROCESSING


class Job(CamelModel):
    id: str
    companies: Tuple[str, ...]
    status: JobState = JobState.PROCESSING
    progress: int = Field(0, ge=0, le=100)
    current_company: str = ""
    results: List[CompanyResult] = []
    error: Optional[str] = None
    is_cancelled: bool = False
    created_at: float
    last_updated: float

    @property
    def total(self) -> int:
        return len(self.companies)


class JobStatus(CamelModel):
    job_id: str
    status: JobState
    progress: int
    total: int
    current_company: str
    results: List[CompanyResult]
    error: Optional[str] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobStatus":
        return cls(
            job_id=job.id,
            status=job.status,
            progress=job.progress,
            total=job.total,
            current_company=job.current_company,
            results=job.results,
            error=job.error,
        )
