"""
Schemas module - Request/Response schemas for API endpoints.

Everything lives in bigblue.schemas.schemas; import from there.
"""
