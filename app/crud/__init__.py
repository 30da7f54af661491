"""
CRUD operations (Create, Read, Update, Delete) for database models.

This layer provides a clean separation between API routes and database operations,
following the Repository pattern. Every tenant-owned table is reached through
ScopedCollection (collection.py).
"""

from app.crud import activity, candidate, candidate_job, collection, job, live_query

__all__ = ["activity", "candidate", "candidate_job", "collection", "job", "live_query"]
