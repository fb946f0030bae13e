"""Celery application, periodic scheduling tasks and notification delivery."""
