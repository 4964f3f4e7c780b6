"""Shared URL utilities — build page URLs and derive on-disk artifact keys."""

from __future__ import annotations

import re

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def artifact_key(page_path: str) -> str:
    """Map a page path to the file stem its screenshots are stored under.

    Every ``/`` becomes ``_`` (``/apply/`` -> ``_apply_``), any other
    character outside ``[A-Za-z0-9._-]`` also becomes ``_``, and the empty
    path maps to ``_`` like the site root.
    """
    if not page_path:
        return "_"
    return _UNSAFE_CHARS.sub("_", page_path)


def page_url(base_url: str, page_path: str) -> str:
    """Join an environment origin and a site-relative page path."""
    base = base_url.rstrip("/")
    if not page_path.startswith("/"):
        page_path = "/" + page_path
    return f"{base}{page_path}"
