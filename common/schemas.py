"""
Shared Pydantic schemas for the authentication responses.
"""

from ninja import Schema


class UserInfo(Schema):
    """User information returned by login and /auth/me."""
    id: int
    username: str
    email: str
    first_name: str = ""
    last_name: str = ""
    is_doctor: bool = False


class UserResponse(Schema):
    """Current user information response.

    Used for /auth/me endpoint.
    """
    status: str  # "success" | "error"
    user: UserInfo | None = None
    message: str | None = None
