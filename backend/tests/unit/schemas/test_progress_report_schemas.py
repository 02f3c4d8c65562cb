"""
Unit Tests for Progress Report Schemas
Tests for: programs, financial payloads, report create/update
"""
import pytest
from pydantic import ValidationError

from portal.schemas.progress_report import (
    ProgramInput,
    ProgramUpdate,
    FinancialCategoryInput,
    FinancialCategoryUpdate,
    FinancialStatusInput,
    ReportCreate,
    ReportUpdate,
    ProgramSearchParams,
)


class TestProgramInput:
    """Test ProgramInput schema"""

    def test_valid_program(self, program_factory):
        program = ProgramInput(**program_factory(totalStudents=100, maleStudents=55))

        assert program.femaleStudents == 45
        assert program.passPercentage == 82.5

    def test_gender_sum_must_match_total(self, program_factory):
        with pytest.raises(ValidationError):
            ProgramInput(**program_factory(totalStudents=100, maleStudents=55, femaleStudents=40))

    def test_scholarship_cannot_exceed_total(self, program_factory):
        with pytest.raises(ValidationError):
            ProgramInput(**program_factory(totalStudents=10, scholarshipStudents=11))

    @pytest.mark.parametrize("value", [-1, 100.5])
    def test_pass_percentage_range(self, program_factory, value):
        with pytest.raises(ValidationError):
            ProgramInput(**program_factory(passPercentage=value))

    def test_negative_counts_rejected(self, program_factory):
        with pytest.raises(ValidationError):
            ProgramInput(**program_factory(newAdmissions=-3))

    def test_blank_key_field_rejected(self, program_factory):
        with pytest.raises(ValidationError):
            ProgramInput(**program_factory(programName="   "))

    def test_key_fields_stripped(self, program_factory):
        program = ProgramInput(**program_factory(institution="  IOE "))
        assert program.institution == "IOE"


class TestProgramUpdate:

    def test_partial_patch_skips_sum_rule(self):
        patch = ProgramUpdate(totalStudents=90)
        assert patch.model_dump(exclude_unset=True) == {"totalStudents": 90}

    def test_full_counts_are_checked(self):
        with pytest.raises(ValidationError):
            ProgramUpdate(totalStudents=90, maleStudents=50, femaleStudents=50)

    def test_scholarship_checked_when_both_given(self):
        with pytest.raises(ValidationError):
            ProgramUpdate(totalStudents=5, scholarshipStudents=6)


    @pytest.mark.parametrize("field", ["institution", "level", "programName"])
    def test_null_key_field_rejected(self, field):
        with pytest.raises(ValidationError):
            ProgramUpdate(**{field: None})

    def test_blank_key_field_rejected(self):
        with pytest.raises(ValidationError):
            ProgramUpdate(programName="  ")

    def test_key_field_stripped(self):
        assert ProgramUpdate(level=" Master ").level == "Master"

    @pytest.mark.parametrize("field", ["totalStudents", "maleStudents", "passPercentage"])
    def test_null_figure_rejected(self, field):
        with pytest.raises(ValidationError):
            ProgramUpdate(**{field: None})

    def test_approval_letter_can_be_cleared(self):
        patch = ProgramUpdate(approvalLetterPath=None)
        assert patch.model_dump(exclude_unset=True) == {"approvalLetterPath": None}


class TestFinancialSchemas:

    def test_negative_money_rejected(self):
        with pytest.raises(ValidationError):
            FinancialCategoryInput(annualBudget=-100)

    def test_null_category_figure_rejected(self):
        with pytest.raises(ValidationError):
            FinancialCategoryUpdate(annualBudget=None)

    def test_partial_status(self):
        status = FinancialStatusInput(salaries={"annualBudget": 1000})
        assert status.model_dump(exclude_unset=True) == {"salaries": {"annualBudget": 1000}}


class TestReportCreate:
    """Test ReportCreate schema"""

    def test_valid_report(self, report_payload):
        report = ReportCreate(**report_payload)
        assert report.collegeId == report_payload["collegeId"]
        assert len(report.programs) == 1

    @pytest.mark.parametrize("field", ["collegeId", "collegeName", "academicYear", "programs"])
    def test_required_fields(self, report_payload, field):
        del report_payload[field]
        with pytest.raises(ValidationError):
            ReportCreate(**report_payload)

    def test_at_least_one_program(self, report_factory):
        with pytest.raises(ValidationError):
            ReportCreate(**report_factory(programs=[]))

    def test_duplicate_program_keys_rejected(self, report_factory, program_factory):
        with pytest.raises(ValidationError):
            ReportCreate(**report_factory(programs=[program_factory(), program_factory()]))

    def test_same_name_different_level_allowed(self, report_factory, program_factory):
        report = ReportCreate(**report_factory(programs=[
            program_factory(level="Bachelor"),
            program_factory(level="Master"),
        ]))
        assert len(report.programs) == 2

    def test_extra_fields_kept(self, report_factory):
        report = ReportCreate(**report_factory(principalName="R. Sharma"))
        assert report.model_dump(exclude_unset=True)["principalName"] == "R. Sharma"

    def test_negative_infrastructure_rejected(self, report_factory):
        with pytest.raises(ValidationError):
            ReportCreate(**report_factory(labCount=-1))


class TestReportUpdate:

    def test_empty_update(self):
        assert ReportUpdate().model_dump(exclude_unset=True) == {}

    @pytest.mark.parametrize("field", ["collegeId", "collegeName", "academicYear", "programs", "financialStatus"])
    def test_null_required_field_rejected(self, field):
        with pytest.raises(ValidationError):
            ReportUpdate(**{field: None})

    def test_null_narrative_field_allowed(self):
        assert ReportUpdate(majorChallenges=None).model_dump(exclude_unset=True) == {"majorChallenges": None}

    def test_programs_still_validated(self, program_factory):
        with pytest.raises(ValidationError):
            ReportUpdate(programs=[program_factory(totalStudents=10, maleStudents=3, femaleStudents=3)])


class TestProgramSearchParams:

    def test_defaults(self):
        assert ProgramSearchParams().model_dump(exclude_none=True) == {}

    def test_min_pass_range(self):
        with pytest.raises(ValidationError):
            ProgramSearchParams(minPassPercentage=120)
