"""Helpers for normalizing crawl targets and deriving their on-disk identities."""

from __future__ import annotations

import re
from urllib.parse import urldefrag, urlparse

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


def normalize_url(url: str) -> str:
    """Drop the fragment and give bare hosts an explicit ``/`` path."""
    url, _ = urldefrag(url)
    parsed = urlparse(url)
    if not parsed.path:
        parsed = parsed._replace(path="/")
    return parsed.geturl()


def target_key(url: str) -> tuple[str, str]:
    """Return the ``(hostname, path)`` pair that identifies a crawl target."""
    parsed = urlparse(url)
    return (parsed.hostname or "", parsed.path or "/")


def derive_identity(url: str) -> str:
    """Derive the filesystem-safe directory name for a URL.

    The query string and fragment are ignored so that repeated visits with
    different parameters land in the same directory.
    """
    hostname, path = target_key(url)
    return _NON_ALNUM.sub("_", f"{hostname}{path}")


def same_host(base_url: str, candidate_url: str) -> bool:
    return urlparse(base_url).hostname == urlparse(candidate_url).hostname
