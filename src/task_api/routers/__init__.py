"""HTTP routers for the task API."""
