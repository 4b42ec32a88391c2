# services/job_runner.py

"""
Job runner - drives the enrichment provider over a job's companies
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Union, Mapping, Any

from insightscout.models.research import CompanyResult, CompanyResultStatus, Founder
from insightscout.services.job_store import JobStore

logger = logging.getLogger(__name__)

EnrichmentProvider = Callable[[str], Awaitable[Sequence[Union[Founder, Mapping[str, Any]]]]]


def percent_complete(processed: int, total: int) -> int:
    """Progress percentage, floored so only a finished job reports 100"""
    return processed * 100 // total


class JobRunner:
    def __init__(
            self,
            store: JobStore,
            provider: EnrichmentProvider,
            provider_timeout: float = 60.0,
            item_delay: float = 3.0
    ):
        self.store = store
        self.provider = provider
        self.provider_timeout = provider_timeout
        self.item_delay = item_delay
        self._tasks: Dict[str, asyncio.Task] = {}
        self._cancel_events: Dict[str, asyncio.Event] = {}

    def start(self, job_id: str, companies: Sequence[str]) -> asyncio.Task:
        """Spawn the background task for a job. Must be called from the event loop."""
        if job_id in self._tasks:
            raise RuntimeError(f"Job {job_id} is already running")

        self._cancel_events[job_id] = asyncio.Event()
        task = asyncio.create_task(self.run(job_id, companies), name=f"research-job-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._forget(job_id))

        logger.info(f"Started runner for job {job_id}")
        return task

    def notify_cancelled(self, job_id: str):
        """Wake a runner that is pausing between companies"""
        event = self._cancel_events.get(job_id)
        if event is not None:
            event.set()

    @property
    def running_jobs(self) -> List[str]:
        return list(self._tasks)

    async def shutdown(self):
        """Cancel every outstanding runner task"""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Stopped {len(tasks)} running jobs")

    async def run(self, job_id: str, companies: Sequence[str]):
        """Process every company in order, recording a result for each"""
        companies = list(companies)
        total = len(companies)
        logger.info(f"Job {job_id}: processing {total} companies")

        try:
            for index, company in enumerate(companies):
                if self._should_stop(job_id):
                    logger.info(f"Job {job_id} was cancelled, stopping before '{company}'")
                    return

                self.store.update(
                    job_id,
                    current_company=company,
                    progress=percent_complete(index, total)
                )

                logger.info(f"Job {job_id}: researching {index + 1}/{total} '{company}'")
                result = await self._research(company)

                if self._should_stop(job_id):
                    logger.info(f"Job {job_id} was cancelled while researching '{company}', result dropped")
                    return

                self.store.append_result(job_id, result, percent_complete(index + 1, total))

                if index < total - 1:
                    await self._pause(job_id)

            if not self._should_stop(job_id):
                self.store.complete(job_id)

        except asyncio.CancelledError:
            logger.warning(f"Runner task for job {job_id} cancelled")
            raise
        except Exception as e:
            logger.error(f"Job {job_id} aborted: {e}", exc_info=True)
            self.store.fail(job_id, str(e) or type(e).__name__)

    async def _research(self, company: str) -> CompanyResult:
        try:
            raw = await asyncio.wait_for(self.provider(company), timeout=self.provider_timeout)
            founders = [
                f if isinstance(f, Founder) else Founder.model_validate(f)
                for f in (raw or [])
            ]
        except asyncio.TimeoutError:
            logger.warning(f"Provider timed out after {self.provider_timeout}s for '{company}'")
            return self._error_result(company, f"Timed out after {self.provider_timeout:g}s")
        except Exception as e:
            logger.warning(f"Provider failed for '{company}': {e}", exc_info=True)
            return self._error_result(company, str(e) or type(e).__name__)

        logger.info(f"Found {len(founders)} founders for '{company}'")
        return CompanyResult(
            company_name=company,
            founders_data=founders,
            status=CompanyResultStatus.COMPLETED
        )

    @staticmethod
    def _error_result(company: str, error: Optional[str]) -> CompanyResult:
        return CompanyResult(
            company_name=company,
            founders_data=[Founder.placeholder()],
            status=CompanyResultStatus.ERROR,
            error=error
        )

    async def _pause(self, job_id: str):
        # Fixed pacing between provider calls; a cancel request cuts it short.
        event = self._cancel_events.get(job_id)
        if event is None:
            await asyncio.sleep(self.item_delay)
            return

        try:
            await asyncio.wait_for(event.wait(), timeout=self.item_delay)
        except asyncio.TimeoutError:
            pass

    def _should_stop(self, job_id: str) -> bool:
        return self.store.is_halted(job_id)

    def _forget(self, job_id: str):
        self._tasks.pop(job_id, None)
        self._cancel_events.pop(job_id, None)
