"""HTTP surface for collection, sync and recommendation operations."""
