"""
Unit tests for insightscout/services/job_runner.py
"""
import asyncio

import pytest

from insightscout.models.job import JobState
from insightscout.models.research import NOT_FOUND, CompanyResultStatus, Founder
from insightscout.services.job_runner import JobRunner, percent_complete
from insightscout.services.job_store import JobStore

from conftest import ACME_FOUNDER, FakeProvider


@pytest.fixture
def store():
    return JobStore()


class RecordingStore(JobStore):
    """Job store that records progress after every mutation."""

    def __init__(self):
        super().__init__()
        self.progress_history = []

    def update(self, job_id, **patch):
        changed = super().update(job_id, **patch)
        self.progress_history.append(self.get(job_id).progress)
        return changed

    def append_result(self, job_id, result, progress):
        changed = super().append_result(job_id, result, progress)
        self.progress_history.append(self.get(job_id).progress)
        return changed


class TestPercentComplete:
    def test_floors_fractions(self):
        assert percent_complete(1, 3) == 33
        assert percent_complete(2, 3) == 66
        assert percent_complete(3, 3) == 100

    def test_only_full_completion_reaches_100(self):
        assert percent_complete(199, 200) == 99


@pytest.mark.asyncio
class TestRun:
    async def test_results_follow_submission_order(self, store):
        companies = ["Acme", "Globex", "Initech", "Umbrella"]
        provider = FakeProvider()
        job_id = store.create(companies)

        await JobRunner(store, provider, item_delay=0).run(job_id, companies)

        job = store.get(job_id)
        assert job.status == JobState.COMPLETED
        assert job.progress == 100
        assert [r.company_name for r in job.results] == companies
        assert provider.calls == companies

    async def test_acme_globex_scenario(self, store):
        provider = FakeProvider(founders={"Acme": [Founder.model_validate(ACME_FOUNDER)]})
        job_id = store.create(["Acme", "Globex"])

        await JobRunner(store, provider, item_delay=0).run(job_id, ["Acme", "Globex"])

        job = store.get(job_id)
        assert job.status == JobState.COMPLETED
        assert job.progress == 100
        assert [r.model_dump(by_alias=True, exclude_none=True) for r in job.results] == [
            {"companyName": "Acme", "status": "completed", "foundersData": [ACME_FOUNDER]},
            {"companyName": "Globex", "status": "completed", "foundersData": []},
        ]

    async def test_failure_is_recorded_and_processing_continues(self, store):
        companies = ["Acme", "Initech", "Globex"]
        provider = FakeProvider(failing={"Initech"})
        job_id = store.create(companies)

        await JobRunner(store, provider, item_delay=0).run(job_id, companies)

        job = store.get(job_id)
        assert job.status == JobState.COMPLETED
        failed = job.results[1]
        assert failed.company_name == "Initech"
        assert failed.status == CompanyResultStatus.ERROR
        assert "lookup failed" in failed.error
        assert len(failed.founders_data) == 1
        placeholder = failed.founders_data[0]
        assert [placeholder.name, placeholder.role, placeholder.linkedin_url,
                placeholder.email, placeholder.phone] == [NOT_FOUND] * 5
        assert job.results[2].status == CompanyResultStatus.COMPLETED
        assert provider.calls == companies

    async def test_timeout_fails_only_that_company(self, store):
        async def provider(company):
            if company == "Slow":
                await asyncio.sleep(10)
            return []

        job_id = store.create(["Slow", "Fast"])
        await JobRunner(store, provider, provider_timeout=0.05, item_delay=0).run(job_id, ["Slow", "Fast"])

        job = store.get(job_id)
        assert job.status == JobState.COMPLETED
        assert job.results[0].status == CompanyResultStatus.ERROR
        assert "Timed out" in job.results[0].error
        assert job.results[1].status == CompanyResultStatus.COMPLETED

    async def test_dict_founders_are_accepted(self, store):
        async def provider(company):
            return [{"name": "Jane Doe", "role": "Founder"}]

        job_id = store.create(["Acme"])
        await JobRunner(store, provider, item_delay=0).run(job_id, ["Acme"])

        founder = store.get(job_id).results[0].founders_data[0]
        assert founder.name == "Jane Doe"
        assert founder.email == NOT_FOUND

    async def test_null_and_blank_founder_fields_become_not_found(self, store):
        async def provider(company):
            return [{"name": "Jane Doe", "role": "CEO", "email": None, "phone": "  "}]

        job_id = store.create(["Acme"])
        await JobRunner(store, provider, item_delay=0).run(job_id, ["Acme"])

        result = store.get(job_id).results[0]
        assert result.status == CompanyResultStatus.COMPLETED
        assert result.error is None
        founder = result.founders_data[0]
        assert founder.name == "Jane Doe"
        assert founder.email == NOT_FOUND
        assert founder.phone == NOT_FOUND
        assert founder.linkedin_url == NOT_FOUND

    async def test_progress_is_monotonic(self):
        store = RecordingStore()
        companies = ["A", "B", "C"]
        job_id = store.create(companies)

        await JobRunner(store, FakeProvider(), item_delay=0).run(job_id, companies)

        history = store.progress_history
        assert history == sorted(history)
        assert history[-1] == 100

    async def test_unexpected_error_fails_job_and_keeps_results(self, store):
        class BrokenStore(JobStore):
            appended = 0

            def append_result(self, job_id, result, progress):
                self.appended += 1
                if self.appended == 2:
                    raise RuntimeError("store exploded")
                return super().append_result(job_id, result, progress)

        store = BrokenStore()
        companies = ["Acme", "Globex", "Initech"]
        job_id = store.create(companies)

        await JobRunner(store, FakeProvider(), item_delay=0).run(job_id, companies)

        job = store.get(job_id)
        assert job.status == JobState.FAILED
        assert job.error == "store exploded"
        assert [r.company_name for r in job.results] == ["Acme"]

    async def test_missing_job_stops_quietly(self, store):
        provider = FakeProvider()
        await JobRunner(store, provider, item_delay=0).run("missing", ["Acme"])
        assert provider.calls == []

    async def test_stop_checks_do_not_snapshot_the_job(self):
        class CountingStore(JobStore):
            snapshots = 0

            def get(self, job_id):
                self.snapshots += 1
                return super().get(job_id)

        store = CountingStore()
        companies = ["Acme", "Globex", "Initech"]
        job_id = store.create(companies)

        await JobRunner(store, FakeProvider(), item_delay=0).run(job_id, companies)

        assert store.snapshots == 0
        assert store.get(job_id).status == JobState.COMPLETED


@pytest.mark.asyncio
class TestCancellation:
    async def test_cancel_during_pause_stops_before_next_company(self, store):
        provider = FakeProvider()
        companies = ["Acme", "Globex", "Initech"]
        job_id = store.create(companies)
        runner = JobRunner(store, provider, item_delay=30)

        task = runner.start(job_id, companies)
        while not store.get(job_id).results:
            await asyncio.sleep(0.01)

        store.cancel(job_id)
        runner.notify_cancelled(job_id)
        await asyncio.wait_for(task, timeout=1)

        job = store.get(job_id)
        assert job.status == JobState.CANCELLED
        assert [r.company_name for r in job.results] == ["Acme"]
        assert provider.calls == ["Acme"]
        assert runner.running_jobs == []

    async def test_result_of_inflight_call_is_dropped_after_cancel(self, store):
        release = asyncio.Event()
        calls = []

        async def provider(company):
            calls.append(company)
            if company == "Globex":
                await release.wait()
            return []

        companies = ["Acme", "Globex", "Initech"]
        job_id = store.create(companies)
        runner = JobRunner(store, provider, item_delay=0)
        task = runner.start(job_id, companies)

        while "Globex" not in calls:
            await asyncio.sleep(0.01)
        store.cancel(job_id)
        release.set()
        await asyncio.wait_for(task, timeout=1)

        job = store.get(job_id)
        assert job.status == JobState.CANCELLED
        assert [r.company_name for r in job.results] == ["Acme"]
        assert calls == ["Acme", "Globex"]

    async def test_cleanup_while_running_stops_runner(self, store):
        provider = FakeProvider()
        companies = ["Acme", "Globex"]
        job_id = store.create(companies)
        runner = JobRunner(store, provider, item_delay=30)

        task = runner.start(job_id, companies)
        while not store.get(job_id).results:
            await asyncio.sleep(0.01)

        store.delete(job_id)
        runner.notify_cancelled(job_id)
        await asyncio.wait_for(task, timeout=1)

        assert provider.calls == ["Acme"]

    async def test_start_twice_is_rejected(self, store):
        job_id = store.create(["Acme"])
        runner = JobRunner(store, FakeProvider(), item_delay=0)
        task = runner.start(job_id, ["Acme"])
        with pytest.raises(RuntimeError):
            runner.start(job_id, ["Acme"])
        await task

    async def test_shutdown_cancels_running_tasks(self, store):
        async def provider(company):
            await asyncio.sleep(10)
            return []

        job_id = store.create(["Acme"])
        runner = JobRunner(store, provider, provider_timeout=60, item_delay=0)
        task = runner.start(job_id, ["Acme"])
        await asyncio.sleep(0.01)

        await runner.shutdown()
        assert task.cancelled()
