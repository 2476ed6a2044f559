"""
File utility functions.
"""

import json
import mimetypes
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .logger import get_logger

logger = get_logger(__name__)


def ensure_directory(directory: Union[Path, str]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        directory: Path to the directory

    Returns:
        Path object for the directory
    """
    path = Path(directory) if isinstance(directory, str) else directory
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_json(data: Dict[str, Any], filepath: Union[Path, str], indent: int = 2) -> None:
    """
    Save data to a JSON file.

    Args:
        data: Data to save
        filepath: Path to the JSON file
        indent: JSON indentation level
    """
    path = Path(filepath)
    ensure_directory(path.parent)

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)

    logger.debug(f"Saved JSON to {path}")


def guess_content_type(filepath: Union[Path, str]) -> Optional[str]:
    """Guess a file's MIME type from its name."""
    content_type, _ = mimetypes.guess_type(str(filepath))
    return content_type


def is_image_file(filepath: Union[Path, str]) -> bool:
    """Check whether a file looks like an image by its MIME type."""
    content_type = guess_content_type(filepath)
    return bool(content_type and content_type.startswith("image/"))


def file_size(filepath: Union[Path, str]) -> int:
    """Size of a file in bytes."""
    return Path(filepath).stat().st_size
