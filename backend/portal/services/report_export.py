"""
CSV export of progress reports - one row per program
"""

import csv
import io
from datetime import date
from typing import Any, Dict, List

from portal.services.normalizers import FINANCIAL_CATEGORIES

CSV_BOM = "﻿"  # lets Excel open the UTF-8 file correctly

REPORT_CSV_HEADERS: List[str] = [
    "Report ID",
    "College ID",
    "College Name",
    "Academic Year",
    "Institution",
    "Level",
    "Program Name",
    "Total Students",
    "Male Students",
    "Female Students",
    "Scholarship Students",
    "Scholarship Rule Applied",
    "New Admissions",
    "Graduated Students",
    "Pass Percentage",
    "Has Approval Letter",
    "Approval Letter Filename",
    *[
        f"{category.title()} {figure}"
        for category in FINANCIAL_CATEGORIES
        for figure in ("Budget", "Expenditure", "Revenue")
    ],
    "Total Annual Budget",
    "Total Actual Expenditure",
    "Total Revenue Generated",
    "Budget Utilization %",
    "Building Status",
    "Classroom Count",
    "Lab Count",
    "Library Books",
    "Submission Date",
    "Created At",
    "Updated At",
]


def export_filename(today: date = None) -> str:
    return f"progress_reports_{(today or date.today()).isoformat()}.csv"


def _financial_columns(financial: Dict[str, Any]) -> List[Any]:
    columns: List[Any] = []
    for category in FINANCIAL_CATEGORIES:
        figures = financial.get(category) or {}
        columns.extend([
            figures.get("annualBudget") or 0,
            figures.get("actualExpenditure") or 0,
            figures.get("revenueGenerated") or 0,
        ])

    budget = financial.get("totalAnnualBudget") or 0
    expenditure = financial.get("totalActualExpenditure") or 0
    utilization = (expenditure / budget) * 100 if budget > 0 else 0
    columns.extend([
        budget,
        expenditure,
        financial.get("totalRevenueGenerated") or 0,
        f"{utilization:.2f}",
    ])
    return columns


def _program_columns(program: Dict[str, Any]) -> List[Any]:
    return [
        program.get("institution") or "",
        program.get("level") or "",
        program.get("programName") or "",
        program.get("totalStudents") or 0,
        program.get("maleStudents") or 0,
        program.get("femaleStudents") or 0,
        program.get("scholarshipStudents") or 0,
        "Yes" if program.get("isScholarshipRuleApplied") else "No",
        program.get("newAdmissions") or 0,
        program.get("graduatedStudents") or 0,
        f"{float(program.get('passPercentage') or 0):.2f}",
        "Yes" if program.get("approvalLetterPath") else "No",
        program.get("approvalLetterFilename") or "",
    ]


def build_reports_csv(reports: List[Dict[str, Any]]) -> str:
    """
    Render reports as CSV text (BOM-prefixed).

    A report without programs still gets a single row with
    Program Name "N/A" and blank program figures.
    """
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(REPORT_CSV_HEADERS)

    for report in reports:
        head = [
            report.get("id"),
            report.get("collegeId"),
            report.get("collegeName") or "",
            report.get("academicYear") or "",
        ]
        tail = _financial_columns(report.get("financialStatus") or {}) + [
            report.get("buildingStatus") or "",
            report.get("classroomCount") or 0,
            report.get("labCount") or 0,
            report.get("libraryBooks") or 0,
            report.get("submissionDate") or "",
            report.get("createdAt") or "",
            report.get("updatedAt") or "",
        ]

        programs = report.get("programs") or []
        if not programs:
            blank_program = ["", "", "N/A", report.get("totalStudents") or 0] + [""] * 9
            writer.writerow(head + blank_program + tail)
            continue

        for program in programs:
            writer.writerow(head + _program_columns(program) + tail)

    return CSV_BOM + output.getvalue()
