"""
Custom exception hierarchy for the reporting application.

This module defines domain-specific exceptions for clear error semantics
and consistent HTTP mapping at the API boundary.

Exception Hierarchy:
    ReportingServiceError (base)
    ├── DoctorProfileNotFoundError
    ├── StudyNotFoundError
    ├── PatientNotFoundError
    ├── InvalidSearchParameterError
    │   └── MissingParameterError
    └── DatabaseQueryError

Usage Examples:
    >>> raise StudyNotFoundError('42')
    StudyNotFoundError: Study not found or not assigned to you

    >>> raise InvalidSearchParameterError('custom_date_from', '2025-13-01', 'Must be YYYY-MM-DD format')
    InvalidSearchParameterError: Invalid custom_date_from=2025-13-01: Must be YYYY-MM-DD format
"""

from typing import Any, Dict, Optional


class ReportingServiceError(Exception):
    """Base exception for all reporting service operations.

    All custom exceptions inherit from this base class, so the API layer can
    register a single handler for the whole family.
    """

    http_status: int = 500


class DoctorProfileNotFoundError(ReportingServiceError):
    """Raised when the authenticated user has no doctor profile."""

    http_status = 404

    def __init__(self, user_id: Any):
        self.user_id = user_id
        super().__init__('Doctor profile not found')


class StudyNotFoundError(ReportingServiceError):
    """Raised when a study does not exist or is not assigned to the doctor.

    Both cases share one message so a doctor cannot discover studies
    assigned to someone else.

    Attributes:
        study_id: The study identifier that was requested
    """

    http_status = 404

    def __init__(self, study_id: Any):
        self.study_id = study_id
        super().__init__('Study not found or not assigned to you')


class PatientNotFoundError(ReportingServiceError):
    """Raised when a patient with the given business id cannot be found."""

    http_status = 404

    def __init__(self, patient_id: str):
        self.patient_id = patient_id
        super().__init__(f'Patient not found: {patient_id}')


class InvalidSearchParameterError(ReportingServiceError):
    """Raised when query parameters are invalid or malformed.

    Attributes:
        param: The parameter name that is invalid
        value: The invalid value that was provided
        reason: Explanation of why the value is invalid

    Example:
        >>> raise InvalidSearchParameterError(
        ...     'category', 'archived', 'Must be one of: all, pending, inprogress, completed'
        ... )
    """

    http_status = 400

    def __init__(self, param: str, value: Any, reason: str):
        self.param = param
        self.value = value
        self.reason = reason
        super().__init__(f'Invalid {param}={value}: {reason}')


class MissingParameterError(InvalidSearchParameterError):
    """Raised when a required query parameter is absent."""

    def __init__(self, param: str, label: Optional[str] = None):
        super().__init__(param, None, 'Required')
        # Plain message for the UI toast, e.g. "Location is required"
        self.args = (f'{label or param.capitalize()} is required',)


class DatabaseQueryError(ReportingServiceError):
    """Raised when database queries fail due to connection or execution errors.

    This wraps database-level exceptions to provide consistent error handling
    at the service layer.

    Attributes:
        query_description: Human-readable description of the query
        original_error: The original database exception

    Example:
        >>> try:
        ...     rows = list(queryset)
        ... except DatabaseError as e:
        ...     raise DatabaseQueryError('Fetch assigned studies', e) from e
    """

    http_status = 500

    def __init__(self, query_description: str, original_error: Exception):
        self.query_description = query_description
        self.original_error = original_error
        super().__init__(
            f'Database query failed: {query_description}. '
            f'Error: {type(original_error).__name__}: {str(original_error)}'
        )


# Error code mapping for API responses
ERROR_CODES = {
    DoctorProfileNotFoundError: 'DOCTOR_PROFILE_NOT_FOUND',
    StudyNotFoundError: 'STUDY_NOT_FOUND',
    PatientNotFoundError: 'PATIENT_NOT_FOUND',
    InvalidSearchParameterError: 'INVALID_SEARCH_PARAMETER',
    MissingParameterError: 'MISSING_PARAMETER',
    DatabaseQueryError: 'DATABASE_QUERY_ERROR',
}


def get_error_code(exception: Exception) -> str:
    """Get standardized error code for an exception.

    Example:
        >>> get_error_code(StudyNotFoundError('42'))
        'STUDY_NOT_FOUND'
    """
    return ERROR_CODES.get(type(exception), 'REPORTING_SERVICE_ERROR')


def get_http_status(exception: Exception) -> int:
    """HTTP status for an exception; anything outside the hierarchy is a 500."""
    return getattr(exception, 'http_status', 500)


def to_error_dict(
    exception: Exception,
    request_id: Optional[str] = None,
    message: Optional[str] = None,
) -> Dict:
    """Convert exception to standardized error dictionary for API responses.

    Args:
        exception: The exception to convert
        request_id: Optional request identifier for tracking
        message: Optional public message replacing ``str(exception)``

    Returns:
        Dictionary with error details in API-friendly format

    Example:
        >>> exc = InvalidSearchParameterError('to_date', '2025-13-01', 'Invalid month')
        >>> to_error_dict(exc, 'req-123')
        {
            'success': False,
            'message': 'Invalid to_date=2025-13-01: Invalid month',
            'error': {
                'code': 'INVALID_SEARCH_PARAMETER',
                'message': 'Invalid to_date=2025-13-01: Invalid month',
                'details': {'param': 'to_date', 'value': '2025-13-01', 'reason': 'Invalid month'},
                'request_id': 'req-123'
            }
        }
    """
    text = message if message is not None else str(exception)
    error_dict: Dict[str, Any] = {
        'success': False,
        'message': text,
        'error': {
            'code': get_error_code(exception),
            'message': text,
        },
    }

    # Add exception-specific details
    if isinstance(exception, InvalidSearchParameterError):
        error_dict['error']['details'] = {
            'param': exception.param,
            'value': str(exception.value),
            'reason': exception.reason,
        }
    elif isinstance(exception, StudyNotFoundError):
        error_dict['error']['details'] = {'study_id': str(exception.study_id)}
    elif isinstance(exception, PatientNotFoundError):
        error_dict['error']['details'] = {'patient_id': exception.patient_id}

    if request_id:
        error_dict['error']['request_id'] = request_id

    return error_dict
