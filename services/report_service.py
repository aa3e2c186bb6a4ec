"""
Report Service
Exports the intake history as CSV or JSON
"""

import csv
import io
import json
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Sequence

from config import settings
from exceptions import ValidationError
from models import Intake, Medicine


logger = logging.getLogger(__name__)


EXPORT_HEADER = ["Date", "Medicine", "Time", "Status", "Dosage"]


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
    PDF = "pdf"


@dataclass
class ExportResult:
    content: str
    media_type: str
    filename: str
    record_count: int


def export_rows(
    intakes: Sequence[Intake],
    medicines: Sequence[Medicine],
    start: Optional[date] = None,
    end: Optional[date] = None,
    limit: Optional[int] = None
) -> List[List[str]]:
    """
    Header row followed by one row per intake inside [start, end].

    Rows keep ledger order. `limit` keeps only the last N matching intakes.
    Intakes of deleted medicines are exported as "Unknown".
    """
    by_id: Dict[str, Medicine] = {m.id: m for m in medicines}
    selected = [
        intake for intake in intakes
        if (start is None or intake.date >= start) and (end is None or intake.date <= end)
    ]
    if limit is not None:
        selected = selected[-limit:] if limit > 0 else []

    rows = [list(EXPORT_HEADER)]
    for intake in selected:
        medicine = by_id.get(intake.medicine_id)
        rows.append([
            intake.date.isoformat(),
            medicine.name if medicine else "Unknown",
            intake.time,
            intake.status.value,
            medicine.dosage if medicine else "",
        ])
    return rows


def to_csv(rows: Sequence[Sequence[str]]) -> str:
    """RFC 4180 CSV, quoting only where needed"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerows(rows)
    return buffer.getvalue()


class ReportService:
    """
    Service for exporting adherence history
    """

    def export(
        self,
        intakes: Sequence[Intake],
        medicines: Sequence[Medicine],
        export_format: ExportFormat = ExportFormat.CSV,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: Optional[int] = None
    ) -> ExportResult:
        """
        Render the intake history in the requested format.

        Args:
            intakes: Ledger rows in recording order
            medicines: Current medicines, used for names and dosages
            export_format: csv or json; pdf is not supported
            start: First date to include
            end: Last date to include
            limit: Keep only the most recent N records (defaults to EXPORT_MAX_RECORDS)

        Returns:
            ExportResult with the rendered document
        """
        try:
            export_format = ExportFormat(export_format)
        except ValueError as e:
            raise ValidationError(f"Unknown export format '{export_format}'") from e
        if export_format == ExportFormat.PDF:
            raise ValidationError("PDF export is not supported, use csv or json")
        if start and end and start > end:
            raise ValidationError(f"start {start} is after end {end}")

        if limit is None:
            limit = settings.EXPORT_MAX_RECORDS
        rows = export_rows(intakes, medicines, start, end, limit)
        stamp = date.today().isoformat()

        if export_format == ExportFormat.CSV:
            content = to_csv(rows)
            media_type = "text/csv"
        else:
            header, body = rows[0], rows[1:]
            content = json.dumps([dict(zip(header, row)) for row in body], indent=2)
            media_type = "application/json"

        logger.info(f"Exported {len(rows) - 1} intake records as {export_format.value}")
        return ExportResult(
            content=content,
            media_type=media_type,
            filename=f"medcare-report-{stamp}.{export_format.value}",
            record_count=len(rows) - 1,
        )


# Singleton instance
report_service = ReportService()
