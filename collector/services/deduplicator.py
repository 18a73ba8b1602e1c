"""Stable content identity derived from the item URL."""

from __future__ import annotations

import hashlib
import re

ID_LENGTH = 20
_PREFIX_LENGTH = 100
_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*://")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_url_key(url: str) -> str:
    """Lowercase, drop scheme and trailing slash, replace non-alphanumerics, keep a bounded prefix."""
    key = url.strip().lower()
    key = _SCHEME.sub("", key)
    key = key.rstrip("/")
    key = _NON_ALNUM.sub("_", key)
    return key[:_PREFIX_LENGTH]


def derive_id(url: str) -> str:
    """Fixed-length hex id; the same URL (modulo case/scheme/trailing slash) always maps to the same id."""
    if not url or not url.strip():
        raise ValueError("url must not be empty")
    digest = hashlib.sha256(normalize_url_key(url).encode("utf-8")).hexdigest()
    return digest[:ID_LENGTH]
