"""
Celery tasks package.

Task modules are imported by celery_app after configuration.
Do NOT import task modules here to avoid circular imports.
"""

__all__ = []
