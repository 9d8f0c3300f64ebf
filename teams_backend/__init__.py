"""
Backend package for the teams API.

This package provides a FastAPI application that manages organisational
bodies ("teamlist" entries), their members ("team") and member photos kept
in a chunked object store.
"""
