"""
Custom middleware for request timing and logging.
Logs every API request with response time, user and request id.
"""

import time
import logging
import uuid

logger = logging.getLogger('request_timing')

REQUEST_ID_HEADER = 'X-Request-ID'


class RequestTimingMiddleware:
    """
    Middleware to measure and log request processing time.

    Logs format:
    "GET /api/v1/doctor/studies?limit=20 HTTP/1.1" 200 15053 [125ms] user=7 rid=3f2a...

    The request id is taken from an incoming X-Request-ID header when present,
    stored on ``request.request_id`` and echoed back on the response.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        start_time = time.time()

        request_id = request.META.get('HTTP_X_REQUEST_ID') or uuid.uuid4().hex
        request.request_id = request_id

        response = self.get_response(request)

        duration_ms = (time.time() - start_time) * 1000

        # Streaming responses have no .content
        content_length = len(response.content) if hasattr(response, 'content') else 0

        response[REQUEST_ID_HEADER] = request_id

        logger.info(
            f'"{request.method} {request.get_full_path()} '
            f'{request.META.get("SERVER_PROTOCOL", "HTTP/1.1")}" '
            f'{response.status_code} {content_length} '
            f'[{duration_ms:.0f}ms] '
            f'user={self._user_label(request)} rid={request_id}'
        )

        return response

    @staticmethod
    def _user_label(request) -> str:
        # JWT routers authenticate inside the view and set request.auth
        user = getattr(request, 'auth', None) or getattr(request, 'user', None)
        if user is not None and getattr(user, 'is_authenticated', False):
            return str(user.pk)
        return '-'
