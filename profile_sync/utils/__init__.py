"""Utility modules."""

from .logger import get_logger, setup_logging
from .file_utils import ensure_directory, save_json
from .text import clean_text, excerpt
from .validators import format_handle, network_url, validate_handle, validate_phone

__all__ = [
    "get_logger",
    "setup_logging",
    "ensure_directory",
    "save_json",
    "clean_text",
    "excerpt",
    "format_handle",
    "network_url",
    "validate_handle",
    "validate_phone",
]
