"""
Celery tasks package.

- pipeline_tasks: stage moves queued from the pipeline board
"""

from app.tasks import pipeline_tasks

__all__ = ["pipeline_tasks"]
