"""Output path validation for HAR files.

Filenames are produced per request from request-controlled data, so every
candidate path is checked against the output directory before it is opened.
"""

from __future__ import annotations

import os
from pathlib import Path

from harlog.exceptions import PathEscapeError


def validate_output_path(candidate: str | os.PathLike[str], root: str | os.PathLike[str]) -> Path:
    """Resolve *candidate* and ensure it stays within *root*.

    Both paths are made absolute and canonical (``..`` segments and symlinks
    resolved) before comparison. A relative candidate is taken relative to
    *root*.

    Args:
        candidate: Path returned by a filename function.
        root: Directory the file must live under.

    Returns:
        The resolved candidate path.

    Raises:
        PathEscapeError: If the resolved candidate lies outside *root*.
    """
    root_path = Path(root).resolve()
    candidate_path = Path(candidate)
    if not candidate_path.is_absolute():
        candidate_path = root_path / candidate_path
    resolved = candidate_path.resolve()

    try:
        rel = os.path.relpath(resolved, root_path)
    except ValueError:
        # Different drives on Windows
        raise PathEscapeError(os.fspath(candidate), os.fspath(root)) from None

    if rel == os.pardir or rel.startswith(os.pardir + os.sep):
        raise PathEscapeError(os.fspath(candidate), os.fspath(root))
    return resolved
