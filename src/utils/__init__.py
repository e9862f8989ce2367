# ============================================================================
# src/utils/__init__.py
# ============================================================================
"""
Utility modules for the health ingestion engine.
"""

from .exceptions import (
    HealthIngestionError,
    DocumentProcessingError,
    PDFExtractionError,
    ConfigurationError,
    SyncError,
    AuthenticationError,
    RateLimitExceededError,
    SyncHTTPError,
    JobNotFoundError,
)

from .logging import (
    setup_logging,
    setup_logging_from_settings,
    LogAdapter,
    log_performance,
)

from .file_utils import (
    ensure_directory,
    is_pdf,
    read_json,
    write_json,
    sanitize_filename,
)

__all__ = [
    # Exceptions
    'HealthIngestionError',
    'DocumentProcessingError',
    'PDFExtractionError',
    'ConfigurationError',
    'SyncError',
    'AuthenticationError',
    'RateLimitExceededError',
    'SyncHTTPError',
    'JobNotFoundError',
    # Logging
    'setup_logging',
    'setup_logging_from_settings',
    'LogAdapter',
    'log_performance',
    # File Utils
    'ensure_directory',
    'is_pdf',
    'read_json',
    'write_json',
    'sanitize_filename',
]
