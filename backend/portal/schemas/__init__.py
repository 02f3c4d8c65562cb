# Pydantic schemas
from portal.schemas.progress_report import (
    ProgramInput,
    ProgramUpdate,
    FinancialCategoryInput,
    FinancialCategoryUpdate,
    FinancialAttachmentsInput,
    FinancialStatusInput,
    ReportCreate,
    ReportUpdate,
    ProgramSearchParams,
)
