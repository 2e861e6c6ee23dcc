"""
Export service for generating CSV and Excel exports of the TAT report.

PRAGMATIC DESIGN: Direct export functions without complex abstractions.
Rows come from study.formatters.project_tat_export_row; this module only
knows about columns, formats and file names.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date
from io import BytesIO
from typing import Any, Optional

import pandas as pd
from django.utils import timezone

from common.date_range import reporting_timezone
from common.exceptions import InvalidSearchParameterError
from study.formatters import project_tat_export_row

logger = logging.getLogger(__name__)


class ExportService:
    """Service for exporting TAT rows to CSV / XLSX.

    Each method is self-contained and testable.
    """

    @staticmethod
    def validate_format(format: str) -> str:
        format = (format or ExportConfig.DEFAULT_EXPORT_FORMAT).lower()
        if format not in ExportConfig.ALLOWED_EXPORT_FORMATS:
            raise InvalidSearchParameterError(
                'format', format, f'Must be one of: {", ".join(ExportConfig.ALLOWED_EXPORT_FORMATS)}'
            )
        return format

    @staticmethod
    def prepare_export_data(
        studies: Iterable,
        progress_callback: Callable[[int], None] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Convert studies to export rows.

        Args:
            studies: Iterable of Study objects with patient, lab and
                assignments loaded
            progress_callback: Called with the running row count every
                EXPORT_BATCH_SIZE rows and once at the end

        Returns:
            List of dictionaries keyed by ExportConfig.TAT_COLUMNS
        """
        export_data = []
        now = timezone.now()

        try:
            for idx, study in enumerate(studies, start=1):
                export_data.append(project_tat_export_row(study, now))

                # Check export size limit to prevent memory issues
                if len(export_data) >= ExportConfig.MAX_EXPORT_RECORDS:
                    logger.warning(
                        f"Export limit reached: {ExportConfig.MAX_EXPORT_RECORDS} records"
                    )
                    break

                if progress_callback and idx % ExportConfig.EXPORT_BATCH_SIZE == 0:
                    progress_callback(len(export_data))

        except Exception as e:
            logger.error(f"Error preparing export data: {str(e)}")
            raise

        if progress_callback:
            progress_callback(len(export_data))

        return export_data

    @staticmethod
    def _to_dataframe(export_data: list[dict[str, Any]]) -> pd.DataFrame:
        if not export_data:
            # Headers only
            return pd.DataFrame(columns=ExportConfig.TAT_COLUMNS)
        return pd.DataFrame(export_data)[ExportConfig.TAT_COLUMNS]

    @staticmethod
    def export_to_csv(export_data: list[dict[str, Any]]) -> bytes:
        """
        Export rows to CSV format.

        UTF-8 with BOM for Excel compatibility.
        """
        try:
            df = ExportService._to_dataframe(export_data)
            output = BytesIO()
            df.to_csv(
                output,
                index=False,
                encoding=ExportConfig.CSV_ENCODING,
                date_format="%Y-%m-%d %H:%M:%S",
            )
            return output.getvalue()

        except Exception as e:
            logger.error(f"Error generating CSV export: {str(e)}")
            raise

    @staticmethod
    def export_to_excel(export_data: list[dict[str, Any]]) -> bytes:
        """
        Export rows to Excel (XLSX) format.

        Uses openpyxl engine; header row frozen, column widths fitted.
        """
        try:
            df = ExportService._to_dataframe(export_data)
            output = BytesIO()

            engine: str = ExportConfig.EXCEL_ENGINE
            with pd.ExcelWriter(
                output,
                engine=engine,  # type: ignore[arg-type]
                datetime_format="YYYY-MM-DD HH:MM:SS",
                date_format="YYYY-MM-DD",
            ) as writer:
                df.to_excel(
                    writer,
                    sheet_name=ExportConfig.SHEET_NAME,
                    index=False,
                    freeze_panes=(1, 0),  # Freeze header row
                )
                ExportService._adjust_excel_column_widths(writer.sheets[ExportConfig.SHEET_NAME], df)

            return output.getvalue()

        except Exception as e:
            logger.error(f"Error generating Excel export: {str(e)}")
            raise

    @staticmethod
    def _adjust_excel_column_widths(worksheet, df):
        """Helper to adjust Excel column widths based on content."""
        from openpyxl.utils import get_column_letter

        for column in df.columns:
            if not df.empty:
                max_length = df[column].astype(str).map(len).max()
            else:
                max_length = 0

            column_length = max(max_length, len(column)) + 2  # Add padding

            # Cap maximum width for readability
            column_length = min(column_length, 50)

            col_idx = df.columns.get_loc(column) + 1  # openpyxl is 1-indexed
            column_letter = get_column_letter(col_idx)
            worksheet.column_dimensions[column_letter].width = column_length

    @staticmethod
    def export(export_data: list[dict[str, Any]], format: str) -> bytes:
        if format == "xlsx":
            return ExportService.export_to_excel(export_data)
        return ExportService.export_to_csv(export_data)

    @staticmethod
    def generate_export_filename(location: str, format: str, on: Optional[date] = None) -> str:
        """
        Filename for a TAT export.

        Example: TAT_Report_LAB01_2025-06-15.xlsx
        """
        on = on or timezone.now().astimezone(reporting_timezone()).date()
        extension = "xlsx" if format == "xlsx" else "csv"
        safe_location = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in str(location))
        return f"TAT_Report_{safe_location}_{on.isoformat()}.{extension}"

    @staticmethod
    def get_content_type(format: str) -> str:
        if format == "xlsx":
            return "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        else:
            return "text/csv; charset=utf-8"


class ExportConfig:
    """Export-specific configuration constants."""

    # Export limits
    MAX_EXPORT_RECORDS: int = 10000
    """Maximum records to export (prevent memory issues)."""

    EXPORT_BATCH_SIZE: int = 1000
    """Progress callback interval and iterator chunk size."""

    # CSV configuration
    CSV_ENCODING: str = "utf-8-sig"
    """UTF-8 with BOM for Excel compatibility."""

    TAT_COLUMNS: list[str] = [
        "Study Status",
        "Patient ID",
        "Patient Name",
        "Accession No",
        "Modality",
        "Study Date",
        "Upload Date",
        "Assigned Date",
        "Report Date",
        "Upload-to-Assign TAT",
        "Assign-to-Report TAT",
        "Upload-to-Report TAT",
        "Reported By",
    ]
    """Column order for CSV/Excel export."""

    # Excel configuration
    EXCEL_ENGINE: str = "openpyxl"
    SHEET_NAME: str = "TAT Report"

    # Export formats
    DEFAULT_EXPORT_FORMAT: str = "xlsx"
    ALLOWED_EXPORT_FORMATS: list[str] = ["xlsx", "csv"]
