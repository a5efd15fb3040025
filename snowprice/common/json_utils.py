"""
JSON File Utilities

Whole-document JSON read and atomic replace for the catalog snapshot,
custom store list and classification overrides. Writers never patch a file
in place: the new document is written next to the target and swapped in
with os.replace().
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


def read_json(file_path: str | Path, default: Optional[Any] = None) -> Any:
    """
    Read a JSON document.

    Args:
        file_path: Path to the JSON file
        default: Returned when the file is missing or unreadable

    Returns:
        Parsed document or default
    """
    path = Path(file_path)
    if not path.exists():
        return default

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read %s: %s", path, e)
        return default


def write_json_atomic(file_path: str | Path, payload: Any) -> None:
    """
    Write a JSON document, replacing the target atomically.

    Args:
        file_path: Target path (parent directories are created)
        payload: JSON-serializable document
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
