"""
PracticeFlow API server.

FastAPI application, routers, middleware and request dependencies.
"""
