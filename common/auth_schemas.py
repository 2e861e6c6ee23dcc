"""
JWT login response schemas.

The login endpoint returns 'access_token' and 'refresh_token' instead of
ninja_jwt's default 'access' and 'refresh', plus the user card the
dashboard shows after sign-in.
"""

from ninja import Schema
from ninja_jwt.tokens import RefreshToken

from .schemas import UserInfo


def user_info(user) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'is_doctor': hasattr(user, 'doctor_profile'),
    }


class LoginResponse(Schema):
    access_token: str
    refresh_token: str
    user: UserInfo
    status: str = 'success'
    message: str = 'Login successful'

    @classmethod
    def for_user(cls, user) -> 'LoginResponse':
        """Issue a refresh/access pair for an authenticated user."""
        refresh = RefreshToken.for_user(user)
        return cls(
            access_token=str(refresh.access_token),
            refresh_token=str(refresh),
            user=UserInfo(**user_info(user)),
        )
