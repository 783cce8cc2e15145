"""
CineSync Engagement Backend

A FastAPI backend for a movie news and reviews site.
Keeps reactions, comments, ratings and interest markers consistent in a
document store, and serves the paginated news and movie listings.
"""

__version__ = "1.0.0"
