# services/__init__.py

from .job_store import JobStore
from .job_runner import JobRunner
from .poll_limiter import PollRateLimiter
from .founder_service import FounderLookupService
from .contact_service import ContactFinderService
from .research_service import ResearchService

__all__ = [
    'JobStore',
    'JobRunner',
    'PollRateLimiter',
    'FounderLookupService',
    'ContactFinderService',
    'ResearchService'
]
