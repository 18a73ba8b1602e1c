"""Celery tasks for the collection and ranker-sync jobs."""
