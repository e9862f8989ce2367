# ============================================================================
# api/main.py
# ============================================================================
"""
FastAPI Backend for the Health Ingestion Engine

Runs on port 8000.

- Lab report extraction: upload a PDF, poll the background job, fetch result
- Comprehensive extraction of already-extracted report text
- WHOOP incremental sync and stored-data reads
"""

import sys
import uuid
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from contextlib import asynccontextmanager

from fastapi import (
    FastAPI,
    UploadFile,
    File,
    HTTPException,
    BackgroundTasks,
    Depends,
    Cookie,
    Header,
    Query,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

# Project root on the path so `python api/main.py` works without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.health_ingestion import __version__
from src.health_ingestion.config import base_settings
from src.health_ingestion.core import (
    JobStore,
    SQLiteJobStore,
    new_job,
    JOB_PROCESSING,
    JOB_COMPLETED,
    JOB_FAILED,
)
from src.health_ingestion.core.pipeline import LabReportPipeline
from src.health_ingestion.extractors import ComprehensiveExtractor
from src.health_ingestion.sync import SyncService, resolve_access_token, parse_data_types
from src.utils.exceptions import AuthenticationError, DocumentProcessingError
from src.utils.file_utils import ensure_directory, sanitize_filename
from src.utils.logging import LogAdapter, setup_logging_from_settings

logger = logging.getLogger(__name__)


_job_store: Optional[JobStore] = None
_sync_service: Optional[SyncService] = None


def get_job_store() -> JobStore:
    """SQLite job store, created on first use."""
    global _job_store
    if _job_store is None:
        _job_store = SQLiteJobStore(base_settings.JOBS_DB_PATH)
    return _job_store


def get_sync_service() -> SyncService:
    global _sync_service
    if _sync_service is None:
        _sync_service = SyncService()
    return _sync_service


def get_pipeline() -> LabReportPipeline:
    return LabReportPipeline()


def get_uploads_dir() -> Path:
    return ensure_directory(base_settings.UPLOADS_DIR)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging_from_settings()
    base_settings.create_directories()
    logger.info("Health Ingestion API starting")
    yield
    if _sync_service is not None:
        await _sync_service.close()


app = FastAPI(
    title="Health Ingestion Engine API",
    description="Lab report extraction and WHOOP incremental sync",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Models
# ============================================================================

class TextExtractionRequest(BaseModel):
    text: str


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/api/health")
async def health():
    """Health check for monitoring."""
    return {"status": "healthy", "version": __version__}


# ----------------------------------------------------------------------------
# Lab report extraction
# ----------------------------------------------------------------------------

def run_extraction_job(
    job_id: str,
    file_path: Path,
    job_store: JobStore,
    pipeline: LabReportPipeline,
):
    """
    Background task: run the pipeline and record progress on the job.

    Failures are stored on the job.
    """
    job_store.update(job_id, status=JOB_PROCESSING)

    def progress(processed: int, total: int, message: str):
        job_store.update(job_id, processed=processed, total=total)
        job_store.log(job_id, message)

    job_logger = LogAdapter(logger, {"job_id": job_id})

    try:
        report = pipeline.process_pdf(file_path, progress=progress)
        job_store.update(job_id, status=JOB_COMPLETED, result=report.to_dict())
        job_store.log(job_id, "Extraction completed")
        job_logger.info(f"Extraction job {job_id} completed")

    except DocumentProcessingError as e:
        job_logger.error(f"Extraction job {job_id} failed: {e}")
        job_store.update(job_id, status=JOB_FAILED, error=str(e))
        job_store.log(job_id, f"Extraction failed: {e}")

    except Exception as e:
        # Poller only sees what is on the job
        job_logger.exception(f"Unexpected error in extraction job {job_id}")
        job_store.update(job_id, status=JOB_FAILED, error=f"Unexpected error: {e}")


@app.post("/api/extraction/jobs", status_code=202)
async def create_extraction_job(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    job_store: JobStore = Depends(get_job_store),
    pipeline: LabReportPipeline = Depends(get_pipeline),
    uploads_dir: Path = Depends(get_uploads_dir),
):
    """
    Upload a PDF lab report and start extraction in the background.

    Returns:
        jobId for polling
    """
    content = await file.read()
    if not content.startswith(b"%PDF-"):
        raise HTTPException(status_code=400, detail="Uploaded file is not a PDF")

    job_id = str(uuid.uuid4())
    file_path = uploads_dir / f"{job_id}.pdf"
    with open(file_path, "wb") as f:
        f.write(content)

    job = new_job(file_name=sanitize_filename(file.filename or file_path.name), job_id=job_id)
    job_store.put(job)
    logger.info(f"Extraction job {job_id} created for {job['fileName']} ({len(content)} bytes)")

    background_tasks.add_task(run_extraction_job, job_id, file_path, job_store, pipeline)

    return {"jobId": job_id, "status": job["status"]}


@app.get("/api/extraction/jobs")
async def list_extraction_jobs(
    status: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    job_store: JobStore = Depends(get_job_store),
):
    """List jobs, newest first (results omitted)."""
    jobs = job_store.list(status=status, limit=limit)
    return {
        "jobs": [{k: v for k, v in job.items() if k != "result"} for job in jobs],
        "total": len(jobs),
    }


@app.get("/api/extraction/jobs/{job_id}")
async def get_extraction_job(job_id: str, job_store: JobStore = Depends(get_job_store)):
    """Job status and progress (result omitted)."""
    job = job_store.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return {k: v for k, v in job.items() if k != "result"}


@app.get("/api/extraction/jobs/{job_id}/result")
async def get_extraction_result(job_id: str, job_store: JobStore = Depends(get_job_store)):
    """ConsolidatedReport of a completed job."""
    job = job_store.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")

    if job["status"] == JOB_FAILED:
        raise HTTPException(status_code=422, detail=job.get("error") or "Extraction failed")

    if job["status"] != JOB_COMPLETED:
        raise HTTPException(
            status_code=409,
            detail=f"Job is {job['status']} ({job['processed']}/{job['total']} pages)"
        )

    return job["result"]


@app.delete("/api/extraction/jobs/{job_id}")
async def delete_extraction_job(
    job_id: str,
    job_store: JobStore = Depends(get_job_store),
    uploads_dir: Path = Depends(get_uploads_dir),
):
    """Delete a job and its uploaded PDF."""
    if not job_store.delete(job_id):
        raise HTTPException(status_code=404, detail="Job not found")

    file_path = uploads_dir / f"{job_id}.pdf"
    if file_path.exists():
        file_path.unlink()
        logger.info(f"Deleted file: {file_path}")

    return {"status": "deleted"}


@app.post("/api/extraction/text")
async def extract_text(request: TextExtractionRequest):
    """Comprehensive extraction over already-extracted report text."""
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="Text cannot be empty")
    return ComprehensiveExtractor().extract(request.text)


# ----------------------------------------------------------------------------
# WHOOP sync
# ----------------------------------------------------------------------------

def _needs_auth(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"error": message, "needsAuth": True},
    )


@app.get("/api/whoop/incremental")
async def whoop_incremental(
    type: Optional[str] = Query(None, description="sleep, strain, recovery or all"),
    force_refresh: bool = Query(False, alias="forceRefresh"),
    access_token: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None),
    service: SyncService = Depends(get_sync_service),
):
    """
    Incremental WHOOP sync for one type or all types.

    A single type returns that type's data; all types return
    {results, errors, summary}.
    """
    try:
        data_types = parse_data_types(type)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid type: {type}. Use sleep, strain, recovery or all"
        )

    token = resolve_access_token(access_token, authorization, service.settings)
    if not token:
        return _needs_auth("Not authenticated")

    try:
        if len(data_types) == 1:
            return await service.sync_type(data_types[0], token, force_refresh=force_refresh)
        return await service.sync(token, data_types, force_refresh=force_refresh)

    except AuthenticationError as e:
        return _needs_auth(str(e))


@app.get("/api/whoop/stored")
async def whoop_stored(
    type: Optional[str] = Query(None, description="sleep, strain, recovery or all"),
    service: SyncService = Depends(get_sync_service),
) -> Dict[str, Any]:
    """Stored WHOOP data without contacting the API."""
    try:
        data_types = parse_data_types(type)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid type: {type}")

    if len(data_types) == 1:
        return service.stored_data(data_types[0])
    return service.stored_data()


@app.get("/api/whoop/summary")
async def whoop_summary(service: SyncService = Depends(get_sync_service)):
    """Per-type record count, last update and date range."""
    return service.summary()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
