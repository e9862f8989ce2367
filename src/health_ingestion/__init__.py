"""
Health Ingestion Engine

Lab-report PDF extraction and incremental WHOOP sync.
"""

__version__ = "1.0.0"
