# ============================================================================
# src/utils/file_utils.py
# ============================================================================
"""
File system helpers shared by the upload flow and the sync file store.
"""

import os
import re
import json
import tempfile
from pathlib import Path
from typing import Any


def ensure_directory(path: Path) -> Path:
    """
    Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path

    Returns:
        The directory path
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def is_pdf(file_path: Path) -> bool:
    """
    Check whether a file looks like a PDF (magic bytes).

    Args:
        file_path: Path to file

    Returns:
        True if the file starts with the PDF header
    """
    file_path = Path(file_path)
    if not file_path.exists():
        return False

    with open(file_path, 'rb') as f:
        header = f.read(5)

    return header == b'%PDF-'


def read_json(file_path: Path) -> Any:
    """
    Read JSON file.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed JSON data
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(data: Any, file_path: Path, indent: int = 2) -> None:
    """
    Write JSON file atomically.

    The payload is written to a temp file in the same directory and moved
    into place with os.replace, so readers never see a half-written file.

    Args:
        data: Data to write
        file_path: Path to JSON file
        indent: Indentation level
    """
    file_path = Path(file_path)
    ensure_directory(file_path.parent)

    fd, tmp_name = tempfile.mkstemp(
        dir=str(file_path.parent),
        prefix=f".{file_path.name}.",
        suffix=".tmp"
    )
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
        os.replace(tmp_name, file_path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename by removing invalid characters.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    sanitized = re.sub(r'[<>:"/\\|?*]', '_', filename)
    sanitized = sanitized.strip('. ')

    if not sanitized:
        sanitized = 'unnamed'

    return sanitized
