"""
utils
=====

Small, shared utilities used across the codebase.

This module intentionally contains only low-level helpers that are safe to
import from anywhere (no database calls, no heavy imports).

Functions
---------
- :func:`encode_key`:
  Turn a correlation key into a filesystem-safe filename component, one
  distinct component per distinct key.
- :func:`write_text`:
  Write UTF-8 text with normalized newlines.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote


def encode_key(key: str) -> str:
    """Return a filesystem-safe, reversible encoding of *key*.

    Used by :class:`pgdiff.storage.SnapshotStore` so that a correlation key such
    as a ticket id or a branch name always maps to a single file in the
    snapshot directory, and two different keys never share one.

    Parameters
    ----------
    key:
        The correlation key given on the command line.

    Returns
    -------
    str
        *key* with every character outside ``[A-Za-z0-9._-]`` percent-encoded
        (UTF-8). Plain keys come back unchanged.

    Examples
    --------
    >>> encode_key("JIRA-123")
    'JIRA-123'
    >>> encode_key("release/1")
    'release%2F1'
    >>> encode_key("release 1")
    'release%201'
    """
    return quote(key, safe="-._")


def write_text(path: Path, content: str) -> None:
    """Write UTF-8 text to *path* with normalized newlines.

    Parameters
    ----------
    path:
        File path to write. Parent directories are created.
    content:
        Text content.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    content = content.replace("\r\n", "\n").replace("\r", "\n")
    path.write_text(content, encoding="utf-8")
