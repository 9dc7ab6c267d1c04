"""
Backend package for the participant lifecycle service.

This package provides the lifecycle operations, a FastAPI application, and
repository adapters for the Firebase Realtime Database, SQL databases, and
an in-memory store for development.
"""
