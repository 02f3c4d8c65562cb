"""
Custom Exceptions for the Progress Reporting Portal
===================================================

Use these instead of generic Exception to:
1. Keep "not found" apart from storage failures
2. Enable proper error handling at API layer
3. Provide meaningful error messages to users

Usage:
    from portal.core.exceptions import ReportNotFoundError, StorageWriteError

    if index is None:
        raise ReportNotFoundError(report_id)

    try:
        await store.create(payload)
    except StorageWriteError as e:
        logger.error(f"Report could not be saved: {e}")
        raise
"""

from typing import Optional, Any, Dict, List


class PortalError(Exception):
    """Base exception for all portal errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(PortalError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ReportNotFoundError(ResourceNotFoundError):
    """Progress report not found"""

    def __init__(self, report_id: str):
        super().__init__("Report", report_id)


class ProgramNotFoundError(ResourceNotFoundError):
    """Program composite key not present in the report"""

    def __init__(self, report_id: str, institution: str, level: str, program_name: str):
        super().__init__("Program", f"{institution}|{level}|{program_name}")
        self.message = f"Program '{program_name}' ({institution}, {level}) not found in report '{report_id}'"
        self.details.update({
            "report_id": report_id,
            "institution": institution,
            "level": level,
            "program_name": program_name,
        })


class CollegeReportsNotFoundError(ResourceNotFoundError):
    """No reports submitted for a college"""

    def __init__(self, college_id: str):
        super().__init__("College", college_id)
        self.message = f"No reports found for college '{college_id}'"
        self.code = "COLLEGE_REPORTS_NOT_FOUND"


class NoDataToExportError(ResourceNotFoundError):
    """Nothing stored yet"""

    def __init__(self):
        super().__init__("Report", "*")
        self.message = "No data to export"
        self.code = "NO_DATA_TO_EXPORT"


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(PortalError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidFinancialCategoryError(ValidationError):
    """Category outside salaries / capital / operational / research"""

    def __init__(self, category: str, allowed: List[str]):
        super().__init__(
            f"Invalid financial category '{category}'. Must be one of: {', '.join(allowed)}",
            field="category"
        )
        self.code = "INVALID_FINANCIAL_CATEGORY"
        self.details.update({"category": category, "allowed_categories": allowed})


class DuplicateProgramError(ValidationError):
    """Program with the same composite key already in the report"""

    def __init__(self, report_id: str, institution: str, level: str, program_name: str):
        super().__init__(
            f"Program '{program_name}' ({institution}, {level}) already exists in report '{report_id}'",
            field="programName"
        )
        self.code = "PROGRAM_ALREADY_EXISTS"
        self.details.update({
            "report_id": report_id,
            "institution": institution,
            "level": level,
            "program_name": program_name,
        })


# ============================================
# Storage Errors
# ============================================

class StorageError(PortalError):
    """Backing file could not be read or written"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, code="STORAGE_ERROR")
        if path:
            self.details["path"] = path


class StorageReadError(StorageError):
    """Backing file unreadable or malformed"""

    def __init__(self, path: str, message: str = "Read failed"):
        super().__init__(f"Failed to read report collection: {message}", path)
        self.code = "STORAGE_READ_FAILED"


class StorageWriteError(StorageError):
    """Backing file could not be replaced"""

    def __init__(self, path: str, message: str = "Write failed"):
        super().__init__(f"Failed to write report collection: {message}", path)
        self.code = "STORAGE_WRITE_FAILED"


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: PortalError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
