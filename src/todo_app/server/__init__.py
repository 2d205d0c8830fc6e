"""
HTTP boundary: FastAPI application exposing the TaskStore as a REST API.
"""
