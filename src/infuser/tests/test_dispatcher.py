"""
End-to-end tests for JobDispatcher.
"""

import dataclasses
import threading

import pytest

from infuser import DuplicateJobError, JobDispatcher, MissingIdentityError, NoEligibleClientError
from infuser.config import InfuserConfig
from infuser.log import LogMode
from infuser.store import JobStore, SQLiteStore


@pytest.fixture
def config(tmp_path):
    return InfuserConfig(
        db_path=str(tmp_path / "infuser.db"),
        db_name="FarmDB",
        default_client="render-00",
        log_path=str(tmp_path / "infuser.log"),
    )


@pytest.fixture
def dispatcher(config):
    return JobDispatcher(SQLiteStore(config.db_path), config)


class TestRegisterClient:
    """Tests for client registration"""

    def test_default_name(self, dispatcher):
        """Test that the configured default client name is used"""
        client = dispatcher.register_client(maximum_jobs=2, online=True)
        assert client.name == "render-00"
        assert client.id is not None
        assert client.maximum_jobs == 2

    def test_register_twice(self, dispatcher):
        """Test that registering an existing name returns the stored client"""
        first = dispatcher.register_client("render-01")
        second = dispatcher.register_client("render-01", maximum_jobs=9)
        assert first == second
        assert len(dispatcher.store.get_clients()) == 1


class TestSubmit:
    """Tests for job submission"""

    def test_fills_farm_in_selection_order(self, dispatcher):
        """Test assignment order as load builds up on two equal clients"""
        a = dispatcher.register_client("a", maximum_jobs=2, online=True)
        b = dispatcher.register_client("b", maximum_jobs=2, online=True)

        picked = []
        for i in range(4):
            _, selection = dispatcher.submit(f"job{i}", f"/rec/{i}.ts", "")
            picked.append(selection.client)

        # both idle: last idle wins; then the idle one; then lowest count
        assert picked == [b, a, a, b]

        with pytest.raises(NoEligibleClientError):
            dispatcher.submit("job4", "/rec/4.ts", "")

    def test_priority_tier_first(self, dispatcher):
        """Test that the higher priority tier is filled before the next one"""
        primary = dispatcher.register_client("primary", maximum_jobs=1, priority=0, online=True)
        backup = dispatcher.register_client("backup", maximum_jobs=1, priority=1, online=True)

        _, first = dispatcher.submit("one", "/1.ts", "")
        _, second = dispatcher.submit("two", "/2.ts", "")
        assert first.client == primary
        assert second.client == backup

    def test_job_recorded_with_reference(self, dispatcher):
        """Test that the stored job references the chosen client"""
        client = dispatcher.register_client("a", online=True)
        job_id, selection = dispatcher.submit("Wildflowers", "/rec/w.ts", "Bloom", ["--fast"])

        job = dispatcher.store.get_jobs()[0]
        assert job.id == job_id
        assert job.assigned_client.refers_to(client)
        assert job.assigned_client.database == "FarmDB"
        assert job.custom_parameters == ["--fast"]
        assert selection.current_count == 0

    def test_duplicate_path(self, dispatcher):
        """Test that the same source path is not assigned twice"""
        dispatcher.register_client("a", maximum_jobs=5, online=True)
        dispatcher.submit("one", "/same.ts", "")
        with pytest.raises(DuplicateJobError):
            dispatcher.submit("again", "/same.ts", "")
        assert len(dispatcher.store.get_jobs()) == 1

    def test_excluded(self, dispatcher):
        """Test that excluded clients do not receive the job"""
        a = dispatcher.register_client("a", online=True)
        b = dispatcher.register_client("b", online=True)
        _, selection = dispatcher.submit("one", "/1.ts", "", excluded=[b])
        assert selection.client == a

    def test_offline_clients(self, dispatcher):
        """Test that an all-offline farm rejects the job"""
        dispatcher.register_client("a")
        with pytest.raises(NoEligibleClientError):
            dispatcher.submit("one", "/1.ts", "")
        assert dispatcher.get_stats()["rejected"] == 1


class TestRunLogging:
    """Tests for run log output"""

    def test_flush_log(self, dispatcher, config):
        """Test that outcomes end up in the configured log file"""
        dispatcher.register_client("a", online=True)
        dispatcher.submit("one", "/1.ts", "")
        dispatcher.flush_log(LogMode.OVERWRITE)

        with open(config.log_path, encoding="utf-8") as f:
            content = f.read()
        assert "infuser dispatch (render-00)" in content
        assert "assigned one (/1.ts) to a [1/1] as job 1" in content
        assert dispatcher.run_log.lines == []

    def test_stats(self, dispatcher):
        """Test dispatcher statistics"""
        client = dispatcher.register_client("a", online=True)
        dispatcher.submit("one", "/1.ts", "")
        stats = dispatcher.get_stats()
        assert stats["submitted"] == 1
        assert stats["store"]["load_counts"] == {str(client.id): 1}

    def test_concurrent_submits_all_logged(self, dispatcher, config):
        """Test that every submission from parallel threads reaches the log file"""
        dispatcher.register_client("a", maximum_jobs=100, online=True)
        num_threads = 4
        jobs_per_thread = 10

        def submit_jobs(thread_idx: int):
            for i in range(jobs_per_thread):
                dispatcher.submit(f"job{thread_idx}-{i}", f"/rec/{thread_idx}-{i}.ts", "")
                if i % 3 == 0:
                    dispatcher.flush_log()

        threads = [threading.Thread(target=submit_jobs, args=(i,)) for i in range(num_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        dispatcher.flush_log()

        with open(config.log_path, encoding="utf-8") as f:
            content = f.read()
        assert content.count("assigned job") == num_threads * jobs_per_thread


class MemoryJobStore(JobStore):
    """Dict backed store for running the dispatcher without SQLite"""

    def __init__(self):
        self.clients = []
        self.jobs = []

    def get_clients(self):
        return list(self.clients)

    def add_client(self, client):
        stored = dataclasses.replace(client, id=len(self.clients) + 1)
        self.clients.append(stored)
        return stored

    def get_client_by_name(self, name):
        return next((c for c in self.clients if c.name == name), None)

    def get_load_counts(self):
        counts = {}
        for job in self.jobs:
            key = str(job.assigned_client.id)
            counts[key] = counts.get(key, 0) + 1
        return counts

    def insert_job(self, job):
        if job.assigned_client.id is None:
            raise MissingIdentityError("job without client id")
        job.id = len(self.jobs) + 1
        self.jobs.append(job)
        return job.id

    def job_exists(self, path):
        return any(job.path == path for job in self.jobs)

    def get_stats(self):
        return {"clients": len(self.clients), "jobs": len(self.jobs), "load_counts": self.get_load_counts()}


class TestOtherBackends:
    """Tests for running the dispatcher on a different JobStore"""

    def test_memory_store(self, config):
        """Test the full submit flow against an in-memory store"""
        store = MemoryJobStore()
        dispatcher = JobDispatcher(store, config)
        a = dispatcher.register_client("a", maximum_jobs=1, online=True)
        b = dispatcher.register_client("b", maximum_jobs=1, priority=1, online=True)

        _, first = dispatcher.submit("one", "/1.ts", "")
        _, second = dispatcher.submit("two", "/2.ts", "")
        assert first.client == a
        assert second.client == b
        assert store.jobs[0].assigned_client.database == "FarmDB"

        with pytest.raises(NoEligibleClientError):
            dispatcher.submit("three", "/3.ts", "")
        assert dispatcher.get_stats()["store"]["load_counts"] == {"1": 1, "2": 1}

    def test_incomplete_store_rejected(self):
        """Test that a store missing part of the interface cannot be built"""
        class ClientsOnly(JobStore):
            def get_clients(self):
                return []

        with pytest.raises(TypeError):
            ClientsOnly()
