"""
URL configuration for Django Ninja API.
All endpoints under /api/v1/ prefix.
"""

import logging

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.http import JsonResponse
from django.urls import path
from ninja import NinjaAPI
from ninja_jwt.exceptions import AuthenticationFailed

from common.auth_api import auth_router
from common.config import get_all_config
from common.exceptions import ReportingServiceError, get_http_status, to_error_dict
from doctor.api import router as doctor_router
from tat.api import router as tat_router

logger = logging.getLogger(__name__)

api = NinjaAPI(
    title=f'{settings.APP_NAME} API',
    version=settings.APP_VERSION,
    description='REST API for radiologist worklists, report submission and TAT reporting',
)

api.add_router('/doctor', doctor_router, tags=['doctor'])
api.add_router('/tat', tat_router, tags=['tat'])
api.add_router('/auth', auth_router, tags=['authentication'])


@api.exception_handler(ReportingServiceError)
def reporting_service_error(request, exc: ReportingServiceError):
    return api.create_response(
        request,
        to_error_dict(exc, getattr(request, 'request_id', None)),
        status=get_http_status(exc),
    )


@api.exception_handler(AuthenticationFailed)
def authentication_failed(request, exc: AuthenticationFailed):
    return api.create_response(
        request,
        {
            'success': False,
            'message': 'Invalid or expired token',
            'error': {'code': 'AUTHENTICATION_FAILED', 'message': 'Invalid or expired token'},
        },
        status=getattr(exc, 'status_code', 401),
    )


@api.exception_handler(Exception)
def unhandled_error(request, exc: Exception):
    logger.exception(f'Unhandled error on {request.method} {request.path}: {str(exc)}')
    body = to_error_dict(exc, getattr(request, 'request_id', None), message='Internal server error')
    if settings.DEBUG:
        body['error']['details'] = {'exception': f'{type(exc).__name__}: {str(exc)}'}
    return api.create_response(request, body, status=500)


@api.get('/health', auth=None)
def health_check(request):
    """Health check endpoint; DEBUG builds also echo the effective limits and TTLs."""
    payload = {'status': 'ok', 'version': settings.APP_VERSION}
    if settings.DEBUG:
        payload['config'] = get_all_config()
    return payload


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', api.urls),
    path('', lambda request: JsonResponse({
        'app': settings.APP_NAME,
        'version': settings.APP_VERSION,
        'docs': '/api/v1/docs',
    })),
]

urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
