"""
Backend package for the historical artifacts API.

This package provides a FastAPI application over a single collection of
artifact records, with cookie-based JWT sessions and a like/unlike toggle
that keeps ``likeCount`` and ``likedBy`` consistent under concurrent requests.
"""
