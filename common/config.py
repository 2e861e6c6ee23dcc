"""
Configuration constants for the reporting application.

This module centralizes the magic numbers, preset names, cache keys and TTLs
used by the doctor worklists and TAT reporting, making them easy to find,
understand, and modify.

Usage:
    >>> from common.config import WorklistConfig
    >>> WorklistConfig.DEFAULT_LIMIT
    20
"""


class WorklistConfig:
    """Doctor worklist configuration constants.

    These values control paging and summary behavior in DoctorWorklistService.
    """

    # ========== Paging ==========

    DEFAULT_LIMIT: int = 20
    """Default rows for assigned / pending / in-progress lists."""

    MAX_LIMIT: int = 100
    """Upper bound for assigned / pending / in-progress lists.

    Requests above the bound are capped, not rejected.
    """

    COMPLETED_DEFAULT_LIMIT: int = 100
    """Default rows for the completed list (doctors review in bulk)."""

    COMPLETED_MAX_LIMIT: int = 1000
    """Upper bound for the completed list."""

    # ========== Summary ==========

    URGENT_PRIORITIES: list[str] = ["URGENT", "EMERGENCY", "STAT"]
    """Assignment priorities counted as urgent in list summaries."""

    URGENT_CASE_TYPES: list[str] = ["URGENT", "EMERGENCY"]
    """Case types counted as urgent in doctor statistics."""

    DEFAULT_PRIORITY: str = "NORMAL"
    DEFAULT_CASE_TYPE: str = "routine"

    # ========== Date filtering ==========

    DATE_TYPE_STUDY: str = "StudyDate"
    """`date_type` value that filters on the DICOM study date.

    Any other value filters on the upload (creation) time.
    """


class DateRangeConfig:
    """Quick date preset names accepted by list and report endpoints."""

    PRESET_LAST_24H: str = "last24h"
    PRESET_TODAY: str = "today"
    PRESET_YESTERDAY: str = "yesterday"
    PRESET_THIS_WEEK: str = "thisWeek"
    PRESET_THIS_MONTH: str = "thisMonth"
    PRESET_ASSIGNED_TODAY: str = "assignedToday"
    PRESET_CUSTOM: str = "custom"

    PRESET_ALIASES: dict[str, str] = {
        "24h": "last24h",
        "week": "thisWeek",
        "month": "thisMonth",
    }
    """Short preset names used by the completed-studies screen."""

    CUSTOM_FILTER: str = "custom"
    """`date_filter` value that activates custom from/to dates."""


class TATConfig:
    """Turnaround-time calculation and reporting configuration."""

    OVERDUE_THRESHOLD_MINUTES: int = 24 * 60
    """An open study older than this (since upload) is overdue."""

    DATE_TYPES: dict[str, str] = {
        "studyDate": "study_date",
        "uploadDate": "created_at",
        "assignedDate": "assignments__assigned_at",
        "reportDate": "report_finalized_at",
    }
    """Report `date_type` values mapped to the study lookup they filter."""

    DEFAULT_DATE_TYPE: str = "uploadDate"

    DEFAULT_PAGE_SIZE: int = 100
    MAX_PAGE_SIZE: int = 1000

    ANALYTICS_PERIODS: dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}
    """Analytics period values mapped to days of upload history."""

    DEFAULT_ANALYTICS_PERIOD: str = "30d"


class CacheConfig:
    """Cache keys and TTLs for expensive aggregate results.

    Cache failures never fail a request: reads fall through to the database
    and writes are skipped with a warning (see common.cache.cached).
    """

    TAT_LOCATIONS_KEY: str = "tat_locations"
    TAT_LOCATIONS_TTL: int = 60 * 60  # 1 hour

    TAT_STATUSES_KEY: str = "tat_statuses"
    TAT_STATUSES_TTL: int = 24 * 60 * 60  # 24 hours

    TAT_REPORT_PREFIX: str = "tat_report"
    TAT_REPORT_TTL: int = 5 * 60  # 5 minutes

    TAT_ANALYTICS_PREFIX: str = "tat_analytics_v2"
    TAT_ANALYTICS_TTL: int = 15 * 60  # 15 minutes


# ========== Validation Constants ==========


class ValidationConfig:
    """Input validation configuration.

    These constants define validation rules for user inputs.
    """

    DATE_FORMAT_REGEX: str = r"^\d{4}-\d{2}-\d{2}$"
    """Regex pattern for date validation (YYYY-MM-DD).

    Used to validate custom_date_from / custom_date_to and report dates
    before parsing.
    """

    DATE_FORMAT_EXAMPLE: str = "2025-06-15"
    """Example date string for error messages."""

    MAX_SEARCH_QUERY_LENGTH: int = 200
    """Maximum length for free-text and patient-name search."""


def get_all_config() -> dict:
    """Get all configuration as dictionary for debugging/logging.

    Returns:
        Dictionary with all configuration constants organized by category
    """
    return {
        "worklist": {
            "default_limit": WorklistConfig.DEFAULT_LIMIT,
            "max_limit": WorklistConfig.MAX_LIMIT,
            "completed_default_limit": WorklistConfig.COMPLETED_DEFAULT_LIMIT,
            "completed_max_limit": WorklistConfig.COMPLETED_MAX_LIMIT,
            "urgent_priorities": WorklistConfig.URGENT_PRIORITIES,
        },
        "date_range": {
            "aliases": DateRangeConfig.PRESET_ALIASES,
        },
        "tat": {
            "overdue_threshold_minutes": TATConfig.OVERDUE_THRESHOLD_MINUTES,
            "date_types": list(TATConfig.DATE_TYPES),
            "analytics_periods": list(TATConfig.ANALYTICS_PERIODS),
        },
        "cache": {
            "tat_locations_ttl": CacheConfig.TAT_LOCATIONS_TTL,
            "tat_statuses_ttl": CacheConfig.TAT_STATUSES_TTL,
            "tat_report_ttl": CacheConfig.TAT_REPORT_TTL,
            "tat_analytics_ttl": CacheConfig.TAT_ANALYTICS_TTL,
        },
        "validation": {
            "date_format": ValidationConfig.DATE_FORMAT_EXAMPLE,
            "max_query_length": ValidationConfig.MAX_SEARCH_QUERY_LENGTH,
        },
    }
