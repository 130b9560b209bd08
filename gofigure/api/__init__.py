"""
API module.

FastAPI application and routers for all HTTP endpoints.
"""
