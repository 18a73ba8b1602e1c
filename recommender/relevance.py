"""Interest relevance between content tags and a user's interest list."""

from __future__ import annotations

import re
from typing import Iterable, List, Tuple

_SEGMENT_SPLIT = re.compile(r"[^a-z0-9]+")
# Shorter segments ("ai", "e") would partially match almost any interest.
MIN_SEGMENT_CHARS = 3


def normalize_terms(values: Iterable[str]) -> List[str]:
    return [v.strip().lower() for v in values if isinstance(v, str) and v.strip()]


def partial_match(tag: str, interest: str) -> bool:
    """Case-insensitive containment in either direction.

    Compound tags are also compared segment by segment, so ``tech-news`` is
    related to ``technology`` through its ``tech`` segment.
    """
    tag = tag.strip().lower()
    interest = interest.strip().lower()
    if not tag or not interest:
        return False
    if tag in interest or interest in tag:
        return True
    for segment in _SEGMENT_SPLIT.split(tag):
        if len(segment) >= MIN_SEGMENT_CHARS and (segment in interest or interest in segment):
            return True
    return False


def count_matches(tags: Iterable[str], interests: Iterable[str]) -> Tuple[int, int]:
    """Return ``(exact, partial)`` where partial excludes pairs already exact."""
    interest_list = normalize_terms(interests)
    interest_set = set(interest_list)
    exact = 0
    partial = 0
    for tag in normalize_terms(tags):
        if tag in interest_set:
            exact += 1
        for interest in interest_list:
            if tag != interest and partial_match(tag, interest):
                partial += 1
    return exact, partial


def is_relevant(tags: Iterable[str], interests: Iterable[str]) -> bool:
    """Users without recorded interests accept everything."""
    interest_list = normalize_terms(interests)
    if not interest_list:
        return True
    exact, partial = count_matches(tags, interest_list)
    return exact > 0 or partial > 0
