import os
from datetime import datetime
from typing import Any, List, Optional, Sequence

import click
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from portal_cli.grade_definitions import is_passing_grade
from portal_cli.portal import Portal

RESULT_HEADERS = [
    "Matric",
    "Student Name",
    "Course Code",
    "Course Title",
    "Units",
    "Score",
    "Grade",
    "Status",
    "Semester",
    "Updated At",
    "Updated By",
]

AUDIT_HEADERS = [
    "Timestamp",
    "Actor",
    "Matric",
    "Course Code",
    "Old Grade",
    "New Grade",
    "Reason",
]


def _write_sheet(ws: Worksheet, headers: Sequence[str], rows: List[List[Any]]) -> None:
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(
        start_color="366092", end_color="366092", fill_type="solid"
    )

    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col)
        cell.value = header
        cell.font = header_font
        cell.fill = header_fill

    for row_index, row in enumerate(rows, 2):
        for col, value in enumerate(row, 1):
            ws.cell(row=row_index, column=col, value=value)

    for col in range(1, len(headers) + 1):
        column_letter = get_column_letter(col)
        max_length = max(
            (len(str(cell.value)) for cell in ws[column_letter] if cell.value is not None),
            default=0,
        )
        ws.column_dimensions[column_letter].width = min(max_length + 2, 50)


def export_results(portal: Portal, output_dir: str = "exports") -> Optional[str]:
    """
    Export every result, plus the grade audit trail, to an Excel workbook.

    Returns:
        The path of the written workbook, or None when there are no results
    """
    results = portal.results.get_results()
    if not results:
        click.secho("No results found.", fg="yellow")
        return None

    profiles = {p.id: p for p in portal.profiles.all_students_with_profiles()}
    courses = {c.id: c for c in portal.registry.get_courses()}

    result_rows = []
    for result in results:
        profile = profiles.get(result.student_id)
        course = courses.get(result.course_id)
        result_rows.append(
            [
                profile.matric if profile else result.student_id,
                profile.name if profile else "",
                course.code if course else result.course_id,
                course.title if course else "",
                course.units if course else "",
                result.score,
                result.grade,
                "Pass" if is_passing_grade(result.grade) else "Fail",
                result.semester,
                result.updated_at,
                result.updated_by,
            ]
        )
    result_rows.sort(key=lambda row: (str(row[0]), str(row[2])))

    audit_rows = []
    for entry in portal.audit.get_audit_trail():
        profile = profiles.get(entry.student_id)
        course = courses.get(entry.course_id)
        audit_rows.append(
            [
                entry.ts,
                entry.actor_name,
                profile.matric if profile else entry.student_id,
                course.code if course else entry.course_id,
                entry.old_grade,
                entry.new_grade,
                entry.reason,
            ]
        )

    os.makedirs(output_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    excel_path = os.path.join(output_dir, f"results_{timestamp}.xlsx")

    wb = Workbook()
    if wb.active:
        wb.remove(wb.active)
    _write_sheet(wb.create_sheet(title="Results"), RESULT_HEADERS, result_rows)
    _write_sheet(wb.create_sheet(title="Audit Trail"), AUDIT_HEADERS, audit_rows)
    wb.save(excel_path)

    click.secho(f"Successfully exported results to: {excel_path}", fg="green")
    click.echo(f"- Results: {len(result_rows)}")
    click.echo(f"- Audit entries: {len(audit_rows)}")
    return excel_path
