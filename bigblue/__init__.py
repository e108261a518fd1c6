"""
BigBlue
Backend for a scuba-diving community: dive sites, dive logs and buddy matching.

Architecture:
- FastAPI: REST API under /api
- MongoDB: every collection (users, locations, buddy_requests, dives)
"""

__version__ = "1.0.0"
