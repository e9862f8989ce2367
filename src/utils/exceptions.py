# ============================================================================
# src/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the health ingestion engine.
"""

from typing import Any, Dict, List, Optional


class HealthIngestionError(Exception):
    """Base exception for all health ingestion errors."""
    pass


class DocumentProcessingError(HealthIngestionError):
    """Error during document processing."""
    pass


class PDFExtractionError(DocumentProcessingError):
    """PDF could not be read or interpreted."""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ConfigurationError(HealthIngestionError):
    """Invalid configuration."""
    pass


class SyncError(HealthIngestionError):
    """Error while synchronizing records from a remote API."""
    def __init__(self, message: str, data_type: Optional[str] = None):
        super().__init__(message)
        self.data_type = data_type


class AuthenticationError(SyncError):
    """Remote API rejected the access token (HTTP 401)."""
    needs_auth = True


class RateLimitExceededError(SyncError):
    """Rate-limit retries exhausted for a page."""
    def __init__(
        self,
        message: str,
        data_type: Optional[str] = None,
        attempts: int = 0,
        partial_records: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(message, data_type)
        self.attempts = attempts
        self.partial_records = partial_records or []


class SyncHTTPError(SyncError):
    """Non-2xx response that is neither 401 nor 429."""
    def __init__(
        self,
        message: str,
        data_type: Optional[str] = None,
        status: Optional[int] = None,
        body: str = ""
    ):
        super().__init__(message, data_type)
        self.status = status
        self.body = body


class JobNotFoundError(HealthIngestionError):
    """Requested extraction job does not exist."""
    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id
