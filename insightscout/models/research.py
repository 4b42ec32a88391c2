# models/research.py

"""
Research-related data models
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from enum import Enum

NOT_FOUND = "Not Found"


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CompanyResultStatus(str, Enum):
    COMPLETED = "completed"
    ERROR = "error"


class Founder(CamelModel):
    name: str = NOT_FOUND
    role: str = NOT_FOUND
    linkedin_url: str = NOT_FOUND
    email: str = NOT_FOUND
    phone: str = NOT_FOUND

    @field_validator("*", mode="before")
    @classmethod
    def missing_to_sentinel(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return NOT_FOUND
        return value

    @classmethod
    def placeholder(cls) -> "Founder":
        """Founder with every field set to the Not Found sentinel"""
        return cls()


class CompanyResult(CamelModel):
    company_name: str
    founders_data: List[Founder] = []
    status: CompanyResultStatus
    error: Optional[str] = None


class StartResearchRequest(CamelModel):
    companies: List[str] = Field(..., description="Company names in processing order")

    @field_validator("companies")
    @classmethod
    def strip_blank_companies(cls, value: List[str]) -> List[str]:
        companies = [name.strip() for name in value if name and name.strip()]
        if not companies:
            raise ValueError("No companies provided")
        return companies


class StartResearchResponse(CamelModel):
    job_id: str


class UploadResearchResponse(CamelModel):
    job_id: str
    total: int
    companies: List[str]


class LoadCompaniesResponse(CamelModel):
    companies: List[str]


class MessageResponse(CamelModel):
    message: str


class ContactLookupRequest(CamelModel):
    url: Optional[str] = Field(None, description="LinkedIn profile URL")


class EmailLookupResponse(CamelModel):
    email: Optional[str] = None


class PhoneLookupResponse(CamelModel):
    phone: Optional[str] = None
