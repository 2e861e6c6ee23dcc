"""
Authentication API endpoints with JWT token authentication.

- POST /auth/login - form login returning JWT tokens
- POST /auth/refresh - refresh access token
- GET /auth/me - current authenticated user

The doctor and TAT routers authenticate with the access token issued here.
"""

import logging

from django.contrib.auth import authenticate
from django.http import HttpRequest
from ninja import Form, Router
from ninja.errors import HttpError
from ninja_jwt.authentication import JWTAuth
from ninja_jwt.schema import TokenRefreshInputSchema, TokenRefreshOutputSchema

from .auth_schemas import LoginResponse, user_info
from .schemas import UserInfo, UserResponse

logger = logging.getLogger(__name__)

auth_router = Router()


@auth_router.post('/login', response=LoginResponse)
def user_login(
    request: HttpRequest,
    username: Form[str] = '',
    password: Form[str] = '',
):
    """
    JWT login endpoint - accepts form data.

    Status Codes:
        200: Login successful
        400: Missing credentials
        401: Invalid credentials

    Example:
        POST /api/v1/auth/login
        Content-Type: application/x-www-form-urlencoded

        username=dr.rao&password=secret

    Response:
        {
            "access_token": "eyJ0eXAiOiJKV1QiLCJhbGc...",
            "refresh_token": "eyJ0eXAiOiJKV1QiLCJhbGc...",
            "user": {"id": 7, "username": "dr.rao", ..., "is_doctor": true},
            "status": "success",
            "message": "Login successful"
        }
    """
    if not username or not password:
        logger.warning('Login failed: Missing username or password')
        raise HttpError(400, 'Username and password required')

    logger.info(f'Login attempt for user: {username}')
    user = authenticate(request, username=username, password=password)

    if user is None:
        logger.warning(f'Login failed for user: {username}')
        raise HttpError(401, 'Invalid username or password')

    logger.info(f'User login successful: {username}')
    return LoginResponse.for_user(user)


@auth_router.post('/refresh', response=TokenRefreshOutputSchema)
def refresh_token(request: HttpRequest, refresh_data: TokenRefreshInputSchema):
    """
    Exchange a refresh token for a new access token.

    Example:
        POST /api/v1/auth/refresh
        {"refresh": "eyJ0eXAiOiJKV1Qi..."}
    """
    return refresh_data.to_response_schema()


@auth_router.get('/me', response=UserResponse, auth=JWTAuth())
def get_current_user(request: HttpRequest):
    """Current user from the bearer token; 401 when missing or invalid."""
    user = request.auth  # type: ignore[attr-defined]
    return UserResponse(status='success', user=UserInfo(**user_info(user)))
