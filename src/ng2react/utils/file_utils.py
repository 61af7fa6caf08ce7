"""
File utility functions.
"""

import os
from typing import Dict, Optional
from .logger import get_logger

logger = get_logger(__name__)

SOURCE_EXTENSIONS = (".ts", ".html", ".css", ".scss")
SKIPPED_DIRECTORIES = {"node_modules", "dist", ".angular", ".git"}


def read_file(file_path: str) -> Optional[str]:
    """
    Read content from a file.

    Args:
        file_path: Path to the file

    Returns:
        File content as string, or None if error
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read file {file_path}: {e}")
        return None


def write_file(file_path: str, content: str) -> bool:
    """
    Write content to a file.

    Args:
        file_path: Path to the file
        content: Content to write

    Returns:
        True if successful, False otherwise
    """
    try:
        ensure_directory(os.path.dirname(file_path))
        with open(file_path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        logger.debug(f"Successfully wrote file: {file_path}")
        return True
    except OSError as e:
        logger.error(f"Failed to write file {file_path}: {e}")
        return False


def ensure_directory(directory: str) -> bool:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        directory: Path to the directory

    Returns:
        True if successful, False otherwise
    """
    try:
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)
            logger.debug(f"Created directory: {directory}")
        return True
    except OSError as e:
        logger.error(f"Failed to create directory {directory}: {e}")
        return False


def is_source_file(file_name: str) -> bool:
    if file_name.endswith(".spec.ts") or file_name.endswith(".d.ts"):
        return False
    return file_name.endswith(SOURCE_EXTENSIONS)


def collect_sources(source_dir: str) -> Dict[str, Optional[str]]:
    """
    Gather every source and resource file below ``source_dir``.

    Returns:
        Mapping of POSIX-style relative path -> file content, in sorted path
        order. Unreadable files map to None so the caller can decide whether
        that is fatal.
    """
    found = []
    for root, dirs, files in os.walk(source_dir):
        dirs[:] = sorted(d for d in dirs if d not in SKIPPED_DIRECTORIES)
        for name in files:
            if is_source_file(name):
                full_path = os.path.join(root, name)
                rel_path = os.path.relpath(full_path, source_dir).replace(os.sep, "/")
                found.append((rel_path, full_path))

    sources: Dict[str, Optional[str]] = {}
    for rel_path, full_path in sorted(found):
        sources[rel_path] = read_file(full_path)
    logger.debug(f"Collected {len(sources)} files from {source_dir}")
    return sources
