"""
Progress Report Schemas - Pydantic models for API validation

The store works on plain dicts; these models only guard the HTTP boundary.
Computed fields (totalStudents, grand totals) are not accepted here.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List


def _not_null(value):
    # Omitting a field leaves it untouched; an explicit null would erase it
    if value is None:
        raise ValueError("may be omitted but not null")
    return value


# ============================================
# Program Schemas
# ============================================

class ProgramInput(BaseModel):
    """One academic program's yearly figures"""
    institution: str = Field(..., min_length=1, max_length=255)
    level: str = Field(..., min_length=1, max_length=100)
    programName: str = Field(..., min_length=1, max_length=255)
    totalStudents: int = Field(default=0, ge=0)
    maleStudents: int = Field(default=0, ge=0)
    femaleStudents: int = Field(default=0, ge=0)
    scholarshipStudents: int = Field(default=0, ge=0)
    isScholarshipRuleApplied: bool = False
    newAdmissions: int = Field(default=0, ge=0)
    graduatedStudents: int = Field(default=0, ge=0)
    passPercentage: float = Field(default=0, ge=0, le=100)
    approvalLetterPath: Optional[str] = None
    approvalLetterFilename: Optional[str] = None

    @field_validator("institution", "level", "programName")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @model_validator(mode="after")
    def check_student_counts(self):
        if self.maleStudents + self.femaleStudents != self.totalStudents:
            raise ValueError("maleStudents + femaleStudents must equal totalStudents")
        if self.scholarshipStudents > self.totalStudents:
            raise ValueError("scholarshipStudents cannot exceed totalStudents")
        return self


class ProgramUpdate(BaseModel):
    """Partial program patch - key fields may be renamed too"""
    institution: Optional[str] = Field(None, min_length=1, max_length=255)
    level: Optional[str] = Field(None, min_length=1, max_length=100)
    programName: Optional[str] = Field(None, min_length=1, max_length=255)
    totalStudents: Optional[int] = Field(None, ge=0)
    maleStudents: Optional[int] = Field(None, ge=0)
    femaleStudents: Optional[int] = Field(None, ge=0)
    scholarshipStudents: Optional[int] = Field(None, ge=0)
    isScholarshipRuleApplied: Optional[bool] = None
    newAdmissions: Optional[int] = Field(None, ge=0)
    graduatedStudents: Optional[int] = Field(None, ge=0)
    passPercentage: Optional[float] = Field(None, ge=0, le=100)
    approvalLetterPath: Optional[str] = None
    approvalLetterFilename: Optional[str] = None

    @field_validator("institution", "level", "programName")
    @classmethod
    def key_not_blank(cls, value: Optional[str]) -> str:
        value = _not_null(value).strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator(
        "totalStudents", "maleStudents", "femaleStudents", "scholarshipStudents",
        "isScholarshipRuleApplied", "newAdmissions", "graduatedStudents", "passPercentage",
    )
    @classmethod
    def figures_not_null(cls, value):
        return _not_null(value)

    @model_validator(mode="after")
    def check_student_counts(self):
        # Only checkable when the patch carries every figure involved
        if None not in (self.totalStudents, self.maleStudents, self.femaleStudents):
            if self.maleStudents + self.femaleStudents != self.totalStudents:
                raise ValueError("maleStudents + femaleStudents must equal totalStudents")
        if None not in (self.totalStudents, self.scholarshipStudents):
            if self.scholarshipStudents > self.totalStudents:
                raise ValueError("scholarshipStudents cannot exceed totalStudents")
        return self


# ============================================
# Financial Schemas
# ============================================

class FinancialCategoryInput(BaseModel):
    annualBudget: float = Field(default=0, ge=0)
    actualExpenditure: float = Field(default=0, ge=0)
    revenueGenerated: float = Field(default=0, ge=0)
    sources: List[str] = Field(default_factory=list)


class FinancialCategoryUpdate(BaseModel):
    """Partial patch for one of salaries / capital / operational / research"""
    annualBudget: Optional[float] = Field(None, ge=0)
    actualExpenditure: Optional[float] = Field(None, ge=0)
    revenueGenerated: Optional[float] = Field(None, ge=0)
    sources: Optional[List[str]] = None

    @field_validator("annualBudget", "actualExpenditure", "revenueGenerated", "sources")
    @classmethod
    def figures_not_null(cls, value):
        return _not_null(value)


class FinancialAttachmentsInput(BaseModel):
    """Stored document references (path + original filename)"""
    auditedFinancialStatements: Optional[str] = None
    auditedFinancialStatementsFilename: Optional[str] = None
    budgetCopy: Optional[str] = None
    budgetCopyFilename: Optional[str] = None

    class Config:
        extra = "allow"


class FinancialStatusInput(BaseModel):
    salaries: Optional[FinancialCategoryInput] = None
    capital: Optional[FinancialCategoryInput] = None
    operational: Optional[FinancialCategoryInput] = None
    research: Optional[FinancialCategoryInput] = None
    attachments: Optional[FinancialAttachmentsInput] = None


# ============================================
# Report Schemas
# ============================================

def _check_unique_programs(programs: Optional[List[ProgramInput]]) -> None:
    seen = set()
    for program in programs or []:
        key = (program.institution, program.level, program.programName)
        if key in seen:
            raise ValueError(f"Duplicate program: {' / '.join(key)}")
        seen.add(key)


class ReportCreate(BaseModel):
    """Create a progress report for one college and academic year"""
    collegeId: str = Field(..., min_length=1, max_length=100)
    collegeName: str = Field(..., min_length=1, max_length=255)
    academicYear: str = Field(..., min_length=1, max_length=20)
    programs: List[ProgramInput] = Field(..., min_length=1)
    financialStatus: Optional[FinancialStatusInput] = None
    submissionDate: Optional[str] = None
    buildingStatus: Optional[str] = None
    classroomCount: Optional[int] = Field(None, ge=0)
    labCount: Optional[int] = Field(None, ge=0)
    libraryBooks: Optional[int] = Field(None, ge=0)
    actualProgress: Optional[str] = None
    adminProgress: Optional[str] = None
    majorChallenges: Optional[str] = None
    nextYearPlan: Optional[str] = None

    class Config:
        extra = "allow"

    @model_validator(mode="after")
    def check_programs(self):
        _check_unique_programs(self.programs)
        return self


class ReportUpdate(BaseModel):
    """Shallow patch - programs / financialStatus replace the stored value"""
    collegeId: Optional[str] = Field(None, min_length=1, max_length=100)
    collegeName: Optional[str] = Field(None, min_length=1, max_length=255)
    academicYear: Optional[str] = Field(None, min_length=1, max_length=20)
    programs: Optional[List[ProgramInput]] = None
    financialStatus: Optional[FinancialStatusInput] = None
    submissionDate: Optional[str] = None
    buildingStatus: Optional[str] = None
    classroomCount: Optional[int] = Field(None, ge=0)
    labCount: Optional[int] = Field(None, ge=0)
    libraryBooks: Optional[int] = Field(None, ge=0)
    actualProgress: Optional[str] = None
    adminProgress: Optional[str] = None
    majorChallenges: Optional[str] = None
    nextYearPlan: Optional[str] = None

    class Config:
        extra = "allow"

    @field_validator("collegeId", "collegeName", "academicYear", "programs", "financialStatus")
    @classmethod
    def required_not_null(cls, value):
        return _not_null(value)

    @model_validator(mode="after")
    def check_programs(self):
        _check_unique_programs(self.programs)
        return self


# ============================================
# Query Schemas
# ============================================

class ProgramSearchParams(BaseModel):
    """Program search criteria - all optional, combined with AND"""
    institution: Optional[str] = None
    level: Optional[str] = None
    programName: Optional[str] = None
    minStudents: Optional[int] = Field(None, ge=0)
    minPassPercentage: Optional[float] = Field(None, ge=0, le=100)
