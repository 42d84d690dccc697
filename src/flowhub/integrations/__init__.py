"""Background execution with Celery."""
