"""
Task Manager API package.

The FastAPI application lives in ``task_api.main``; run it with the
``task-api`` console script or ``uvicorn task_api.main:app``.
"""

__version__ = "1.0.0"
