"""Content sources (feeds and query APIs) and the error taxonomy they share."""
