# routers/research_router.py

"""
Research job control API routes
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile

from insightscout.core.config import Settings
from insightscout.core.exceptions import (
    InsufficientCreditsError,
    ProviderError,
    ProviderNotConfiguredError,
    UnsupportedFileError
)
from insightscout.models.job import JobStatus
from insightscout.models.research import (
    ContactLookupRequest,
    EmailLookupResponse,
    LoadCompaniesResponse,
    MessageResponse,
    PhoneLookupResponse,
    StartResearchRequest,
    StartResearchResponse,
    UploadResearchResponse
)
from insightscout.services.contact_service import ContactFinderService
from insightscout.services.job_runner import JobRunner
from insightscout.services.job_store import JobStore
from insightscout.services.poll_limiter import PollRateLimiter
from insightscout.utils.company_loader import load_companies
from insightscout.utils.file_handler import XLSX_CONTENT_TYPE, build_results_workbook, validate_upload

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/research", tags=["Research"])


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


def get_job_runner(request: Request) -> JobRunner:
    return request.app.state.job_runner


def get_poll_limiter(request: Request) -> PollRateLimiter:
    return request.app.state.poll_limiter


def get_contact_finder(request: Request) -> ContactFinderService:
    contact_finder = getattr(request.app.state, "contact_finder", None)
    if contact_finder is None or not contact_finder.configured:
        raise HTTPException(status_code=503, detail="Contact finder API key not configured")
    return contact_finder


def _start_job(companies: List[str], store: JobStore, runner: JobRunner) -> str:
    job_id = store.create(companies)
    runner.start(job_id, companies)
    return job_id


async def _read_companies(file: UploadFile, settings: Settings) -> List[str]:
    try:
        content = await file.read(settings.max_upload_bytes + 1)
    finally:
        await file.close()

    try:
        validate_upload(file.filename, file.content_type, len(content), settings.max_upload_bytes)
        companies = load_companies(file.filename, content)
    except UnsupportedFileError as e:
        logger.warning(f"Rejected upload '{file.filename}': {e}")
        raise HTTPException(status_code=400, detail=str(e))

    if not companies:
        raise HTTPException(status_code=400, detail="No valid company names found in the file")
    return companies


@router.post("/start", response_model=StartResearchResponse)
async def start_research(
        request: StartResearchRequest,
        store: JobStore = Depends(get_job_store),
        runner: JobRunner = Depends(get_job_runner)
):
    """Start researching a list of companies in the background"""
    logger.info(f"POST /api/research/start - {len(request.companies)} companies")
    job_id = _start_job(request.companies, store, runner)
    return StartResearchResponse(job_id=job_id)


@router.get("/status/{job_id}", response_model=JobStatus)
async def get_research_status(
        job_id: str,
        store: JobStore = Depends(get_job_store),
        limiter: PollRateLimiter = Depends(get_poll_limiter)
):
    """Current snapshot of a research job"""
    if job_id not in store:
        raise HTTPException(status_code=404, detail="Job not found")

    retry_after = limiter.try_acquire(job_id)
    if retry_after > 0:
        raise HTTPException(
            status_code=429,
            detail="Status polled too frequently",
            headers={"Retry-After": str(max(1, round(retry_after)))}
        )

    # Deleted between the existence check and the snapshot
    job = store.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")

    return JobStatus.from_job(job)


@router.post("/cancel/{job_id}", response_model=MessageResponse)
async def cancel_research(
        job_id: str,
        store: JobStore = Depends(get_job_store),
        runner: JobRunner = Depends(get_job_runner)
):
    """Stop a job before its next company"""
    if not store.cancel(job_id):
        raise HTTPException(status_code=404, detail="Job not found")

    runner.notify_cancelled(job_id)
    return MessageResponse(message="cancelled")


@router.post("/cleanup/{job_id}", response_model=MessageResponse)
async def cleanup_research(
        job_id: str,
        store: JobStore = Depends(get_job_store),
        runner: JobRunner = Depends(get_job_runner),
        limiter: PollRateLimiter = Depends(get_poll_limiter)
):
    """Delete a job immediately"""
    if not store.delete(job_id):
        raise HTTPException(status_code=404, detail="Job not found")

    runner.notify_cancelled(job_id)
    limiter.forget(job_id)
    return MessageResponse(message="cleaned up")


@router.post("/load", response_model=LoadCompaniesResponse)
async def load_company_list(
        file: UploadFile = File(...),
        settings: Settings = Depends(get_settings)
):
    """Read company names from an uploaded .xlsx or .csv file"""
    logger.info(f"POST /api/research/load - '{file.filename}'")
    companies = await _read_companies(file, settings)
    return LoadCompaniesResponse(companies=companies)


@router.post("/upload", response_model=UploadResearchResponse)
async def upload_and_start(
        file: UploadFile = File(...),
        settings: Settings = Depends(get_settings),
        store: JobStore = Depends(get_job_store),
        runner: JobRunner = Depends(get_job_runner)
):
    """Read company names from a file and start researching them"""
    logger.info(f"POST /api/research/upload - '{file.filename}'")
    companies = await _read_companies(file, settings)
    job_id = _start_job(companies, store, runner)
    return UploadResearchResponse(job_id=job_id, total=len(companies), companies=companies)


@router.get("/export/{job_id}")
async def export_research(job_id: str, store: JobStore = Depends(get_job_store)):
    """Download a job's results as an Excel workbook"""
    job = store.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")

    return Response(
        content=build_results_workbook(job.results),
        media_type=XLSX_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="research_{job_id}.xlsx"'}
    )


@router.post("/email", response_model=EmailLookupResponse)
async def lookup_email(
        request: ContactLookupRequest,
        contact_finder: ContactFinderService = Depends(get_contact_finder)
):
    """Find the email for one LinkedIn profile"""
    if not request.url:
        raise HTTPException(status_code=400, detail="LinkedIn URL is required")

    email = await _contact_lookup(contact_finder.find_email, request.url)
    return EmailLookupResponse(email=email)


@router.post("/phone", response_model=PhoneLookupResponse)
async def lookup_phone(
        request: ContactLookupRequest,
        contact_finder: ContactFinderService = Depends(get_contact_finder)
):
    """Find the mobile number for one LinkedIn profile"""
    if not request.url:
        raise HTTPException(status_code=400, detail="LinkedIn URL is required")

    phone = await _contact_lookup(contact_finder.find_phone, request.url)
    return PhoneLookupResponse(phone=phone)


async def _contact_lookup(lookup, url: str):
    try:
        return await lookup(url)
    except InsufficientCreditsError as e:
        raise HTTPException(status_code=402, detail=str(e))
    except ProviderNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ProviderError as e:
        logger.error(f"Contact lookup failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch contact details")
