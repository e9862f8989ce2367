# ============================================================================
# src/health_ingestion/core/job_store.py
# ============================================================================
"""
Extraction Job Store

Tracks background extraction jobs (status, progress, logs, result).

- InMemoryJobStore: process lifetime only. Jobs are lost on restart.
- SQLiteJobStore: durable; raw sqlite3 with the job dict stored as JSON.

Both satisfy the JobStore interface (get / put / list / delete), so the API
can swap one for the other.
"""

import copy
import json
import logging
import sqlite3
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from src.utils.exceptions import JobNotFoundError

logger = logging.getLogger(__name__)

JOB_PENDING = "pending"
JOB_PROCESSING = "processing"
JOB_COMPLETED = "completed"
JOB_FAILED = "failed"

FINISHED_STATUSES = (JOB_COMPLETED, JOB_FAILED)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_job(file_name: str = "", total: int = 0, job_id: Optional[str] = None) -> Dict[str, Any]:
    """Fresh job dict in the shape served by the API."""
    now = _now()
    return {
        "jobId": job_id or uuid.uuid4().hex,
        "fileName": file_name,
        "status": JOB_PENDING,
        "processed": 0,
        "total": total,
        "done": False,
        "error": None,
        "logs": [],
        "lastLog": None,
        "result": None,
        "createdAt": now,
        "updatedAt": now,
    }


class JobStore(ABC):
    """Storage interface for extraction jobs."""

    @abstractmethod
    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def put(self, job: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def list(self, status: Optional[str] = None, limit: int = 200) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def delete(self, job_id: str) -> bool:
        ...

    # ------------------------------------------------------------------
    # Helpers built on the primitives
    # ------------------------------------------------------------------
    def require(self, job_id: str) -> Dict[str, Any]:
        job = self.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def update(self, job_id: str, **fields) -> Dict[str, Any]:
        job = self.require(job_id)
        job.update(fields)
        job["updatedAt"] = _now()
        job["done"] = job.get("status") in FINISHED_STATUSES
        self.put(job)
        return job

    def log(self, job_id: str, message: str) -> None:
        job = self.require(job_id)
        job["logs"].append(message)
        job["lastLog"] = message
        job["updatedAt"] = _now()
        self.put(job)


class InMemoryJobStore(JobStore):
    """
    Dict-backed store. NOT durable: contents vanish with the process.
    """

    def __init__(self):
        self._jobs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            job = self._jobs.get(job_id)
            return copy.deepcopy(job) if job is not None else None

    def put(self, job: Dict[str, Any]) -> None:
        with self._lock:
            self._jobs[job["jobId"]] = copy.deepcopy(job)

    def list(self, status: Optional[str] = None, limit: int = 200) -> List[Dict[str, Any]]:
        with self._lock:
            jobs = [copy.deepcopy(j) for j in self._jobs.values()
                    if status is None or j.get("status") == status]
        jobs.sort(key=lambda j: j.get("createdAt", ""), reverse=True)
        return jobs[:limit]

    def delete(self, job_id: str) -> bool:
        with self._lock:
            return self._jobs.pop(job_id, None) is not None


class SQLiteJobStore(JobStore):
    """
    SQLite-backed job store; jobs survive API restarts.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._init_database()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------
    def _init_database(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()

        cur.execute("""
            CREATE TABLE IF NOT EXISTS jobs (
                job_id      TEXT PRIMARY KEY,
                file_name   TEXT,
                status      TEXT NOT NULL,
                created_at  TEXT NOT NULL,
                updated_at  TEXT,
                job_data    TEXT NOT NULL
            )
        """)
        cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_jobs_status
            ON jobs (status)
        """)

        conn.commit()
        conn.close()
        logger.info(f"Job store initialized: {self.db_path}")

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------
    def put(self, job: Dict[str, Any]) -> None:
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()

        cur.execute("""
            INSERT OR REPLACE INTO jobs
                (job_id, file_name, status, created_at, updated_at, job_data)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (
            job["jobId"],
            job.get("fileName", ""),
            job.get("status", JOB_PENDING),
            job.get("createdAt", _now()),
            job.get("updatedAt"),
            json.dumps(job, default=str, ensure_ascii=False),
        ))

        conn.commit()
        conn.close()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()
        cur.execute("SELECT job_data FROM jobs WHERE job_id = ?", (job_id,))
        row = cur.fetchone()
        conn.close()
        if row:
            return json.loads(row[0])
        return None

    def list(self, status: Optional[str] = None, limit: int = 200) -> List[Dict[str, Any]]:
        """List jobs, newest first."""
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()

        query = "SELECT job_data FROM jobs"
        params: list = []
        if status:
            query += " WHERE status = ?"
            params.append(status)
        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)

        cur.execute(query, params)
        rows = cur.fetchall()
        conn.close()

        return [json.loads(r[0]) for r in rows]

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------
    def delete(self, job_id: str) -> bool:
        conn = sqlite3.connect(str(self.db_path))
        cur = conn.cursor()
        cur.execute("DELETE FROM jobs WHERE job_id = ?", (job_id,))
        deleted = cur.rowcount > 0
        conn.commit()
        conn.close()
        return deleted
