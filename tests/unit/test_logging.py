# ============================================================================
# FILE: tests/unit/test_logging.py
# ============================================================================
"""
Unit tests for logging utilities
"""

import json
import logging
import threading

from api.main import run_extraction_job
from src.health_ingestion.core import InMemoryJobStore, new_job
from src.utils.exceptions import DocumentProcessingError
from src.utils.logging import JsonFormatter, LogAdapter


LOGGER_NAME = "tests.job_context"


def test_log_adapter_tags_records(caplog):
    """Test adapter context lands on the record"""
    adapter = LogAdapter(logging.getLogger(LOGGER_NAME), {"job_id": "job-1"})

    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        adapter.info("started", extra={"page_number": 3})

    record = caplog.records[-1]
    assert record.job_id == "job-1"
    assert record.page_number == 3


def test_overlapping_jobs_keep_their_own_job_id(caplog):
    """Test two interleaved jobs never see each other's job_id"""
    logger = logging.getLogger(LOGGER_NAME)
    factory_before = logging.getLogRecordFactory()
    a_started = threading.Event()
    b_logged = threading.Event()

    def job_a():
        adapter = LogAdapter(logger, {"job_id": "A"})
        adapter.info("A first")
        a_started.set()
        b_logged.wait(timeout=5)
        adapter.info("A second")

    def job_b():
        a_started.wait(timeout=5)
        adapter = LogAdapter(logger, {"job_id": "B"})
        adapter.info("B only")
        b_logged.set()

    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        threads = [threading.Thread(target=job_a), threading.Thread(target=job_b)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        # Plain logger after both jobs finished
        logger.info("no job")

    tags = {r.getMessage(): getattr(r, "job_id", None) for r in caplog.records}
    assert tags == {"A first": "A", "B only": "B", "A second": "A", "no job": None}
    assert logging.getLogRecordFactory() is factory_before


def test_json_formatter_includes_job_id(caplog):
    """Test JSON output carries adapter context"""
    adapter = LogAdapter(logging.getLogger(LOGGER_NAME), {"job_id": "job-9"})

    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        adapter.info("hello")

    data = json.loads(JsonFormatter().format(caplog.records[-1]))
    assert data["job_id"] == "job-9"
    assert data["message"] == "hello"


class _FailingPipeline:
    def process_pdf(self, file_path, progress=None):
        raise DocumentProcessingError("cannot open")


def test_extraction_job_logs_carry_job_id(caplog, tmp_path):
    """Test a failed extraction job logs with its own job_id"""
    job_store = InMemoryJobStore()
    job_store.put(new_job("a.pdf", job_id="job-x"))

    with caplog.at_level(logging.INFO, logger="api.main"):
        run_extraction_job("job-x", tmp_path / "a.pdf", job_store, _FailingPipeline())

    failures = [r for r in caplog.records if "failed" in r.getMessage()]
    assert failures and all(r.job_id == "job-x" for r in failures)
    assert job_store.get("job-x")["status"] == "failed"
