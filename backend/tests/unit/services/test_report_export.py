"""
Unit Tests for CSV export
"""
import csv
import io
from datetime import date

import pytest

from portal.services.report_export import (
    CSV_BOM,
    REPORT_CSV_HEADERS,
    build_reports_csv,
    export_filename,
)


def parse_csv(text: str):
    assert text.startswith(CSV_BOM)
    rows = list(csv.reader(io.StringIO(text[len(CSV_BOM):])))
    return rows[0], [dict(zip(rows[0], row)) for row in rows[1:]]


class TestBuildReportsCsv:

    def test_header_only_for_no_reports(self):
        header, rows = parse_csv(build_reports_csv([]))

        assert header == REPORT_CSV_HEADERS
        assert rows == []

    @pytest.mark.asyncio
    async def test_one_row_per_program(self, store, report_factory, program_factory):
        report = await store.create(report_factory(collegeName="Pokhara Engineering College", programs=[
            program_factory(programName="Civil", totalStudents=100, passPercentage=80),
            program_factory(programName="Computer", totalStudents=60,
                            approvalLetterPath="uploads/letters/computer.pdf",
                            approvalLetterFilename="computer.pdf"),
        ]))

        _, rows = parse_csv(build_reports_csv([report]))

        assert [r["Program Name"] for r in rows] == ["Civil", "Computer"]
        assert all(r["Report ID"] == report["id"] for r in rows)
        assert all(r["College Name"] == "Pokhara Engineering College" for r in rows)
        assert rows[0]["Total Students"] == "100"
        assert rows[0]["Pass Percentage"] == "80.00"
        assert rows[0]["Has Approval Letter"] == "No"
        assert rows[1]["Has Approval Letter"] == "Yes"
        assert rows[1]["Approval Letter Filename"] == "computer.pdf"

    @pytest.mark.asyncio
    async def test_financial_columns(self, store, report_payload):
        report = await store.create(report_payload)

        _, [row] = parse_csv(build_reports_csv([report]))

        assert row["Salaries Budget"] == "500000"
        assert row["Research Revenue"] == "5000"
        assert row["Total Annual Budget"] == "850000"
        assert row["Total Actual Expenditure"] == "650000"
        assert row["Budget Utilization %"] == f"{650000 / 850000 * 100:.2f}"

    @pytest.mark.asyncio
    async def test_report_without_programs(self, store, report_factory):
        report = await store.create(report_factory(programs=[], financialStatus={}))

        _, [row] = parse_csv(build_reports_csv([report]))

        assert row["Program Name"] == "N/A"
        assert row["Total Students"] == "0"
        assert row["Budget Utilization %"] == "0.00"

    def test_export_filename(self):
        assert export_filename(date(2024, 3, 9)) == "progress_reports_2024-03-09.csv"
