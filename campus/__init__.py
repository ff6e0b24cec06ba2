"""
Backend package for the campus community API.

This package provides a FastAPI application with database and image-upload
abstractions so the MongoDB driver and the image host are chosen by
configuration rather than duplicated per provider.
"""
