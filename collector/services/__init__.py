"""Collection pipeline services: normalization, dedupe keys, pacing, ranker sync."""
