# models/__init__.py

from .research import (
    NOT_FOUND,
    CamelModel,
    CompanyResultStatus,
    Founder,
    CompanyResult,
    StartResearchRequest,
    StartResearchResponse,
    UploadResearchResponse,
    LoadCompaniesResponse,
    MessageResponse,
    ContactLookupRequest,
    EmailLookupResponse,
    PhoneLookupResponse
)
from .job import Job, JobStatus, JobState

__all__ = [
    'NOT_FOUND',
    'CamelModel',
    'CompanyResultStatus',
    'Founder',
    'CompanyResult',
    'StartResearchRequest',
    'StartResearchResponse',
    'UploadResearchResponse',
    'LoadCompaniesResponse',
    'MessageResponse',
    'ContactLookupRequest',
    'EmailLookupResponse',
    'PhoneLookupResponse',
    'Job',
    'JobStatus',
    'JobState'
]
