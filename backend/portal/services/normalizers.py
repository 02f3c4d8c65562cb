"""
Structural normalization for progress report payloads.

Both normalizers accept whatever partial dict the caller hands over and
always return a fully populated structure. They never raise and never
validate business rules (gender sums, scholarship caps, ranges) - that
belongs to the request schemas.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

FINANCIAL_CATEGORIES: Tuple[str, ...] = ("salaries", "capital", "operational", "research")

CATEGORY_MONEY_FIELDS: Tuple[str, ...] = ("annualBudget", "actualExpenditure", "revenueGenerated")

ATTACHMENT_FIELDS: Tuple[str, ...] = (
    "auditedFinancialStatements",
    "auditedFinancialStatementsFilename",
    "budgetCopy",
    "budgetCopyFilename",
)

# Grand total field -> per-category field it sums
GRAND_TOTAL_FIELDS: Dict[str, str] = {
    "totalAnnualBudget": "annualBudget",
    "totalActualExpenditure": "actualExpenditure",
    "totalRevenueGenerated": "revenueGenerated",
}

PROGRAM_KEY_FIELDS: Tuple[str, ...] = ("institution", "level", "programName")

PROGRAM_COUNT_FIELDS: Tuple[str, ...] = (
    "totalStudents",
    "maleStudents",
    "femaleStudents",
    "scholarshipStudents",
    "newAdmissions",
    "graduatedStudents",
)

PROGRAM_FILE_FIELDS: Tuple[str, ...] = ("approvalLetterPath", "approvalLetterFilename")

ProgramKey = Tuple[str, str, str]


def program_key(program: Dict[str, Any]) -> ProgramKey:
    """Composite identity of a program inside one report"""
    return (
        program.get("institution") or "",
        program.get("level") or "",
        program.get("programName") or "",
    )


def normalize_program(program: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Fill every declared program field.

    Strings default to "", counts and passPercentage to 0, the scholarship
    flag to False and file references to None. Keys the caller sent that
    are not declared here are carried through untouched.
    """
    raw = dict(program or {})
    normalized = dict(raw)

    for field in PROGRAM_KEY_FIELDS:
        normalized[field] = raw.get(field) or ""
    for field in PROGRAM_COUNT_FIELDS:
        normalized[field] = raw.get(field) or 0
    normalized["isScholarshipRuleApplied"] = bool(raw.get("isScholarshipRuleApplied") or False)
    normalized["passPercentage"] = raw.get("passPercentage") or 0
    for field in PROGRAM_FILE_FIELDS:
        normalized[field] = raw.get(field) or None

    return normalized


def normalize_programs(programs: Optional[Iterable[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    return [normalize_program(p) for p in (programs or [])]


def total_students(programs: Iterable[Dict[str, Any]]) -> int:
    """Derived report total - never taken from caller input"""
    return sum(p.get("totalStudents") or 0 for p in programs)


def _normalize_category(category: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    raw = dict(category or {})
    normalized = dict(raw)
    for field in CATEGORY_MONEY_FIELDS:
        normalized[field] = raw.get(field) or 0
    normalized["sources"] = list(raw.get("sources") or [])
    return normalized


def normalize_financial_status(financial: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Build a complete FinancialStatus from a partial payload.

    Missing categories are zero-filled, attachment references default to
    None and the three grand totals are recomputed from the categories,
    ignoring any totals the caller supplied. Idempotent.
    """
    raw = dict(financial or {})

    processed: Dict[str, Any] = {
        category: _normalize_category(raw.get(category))
        for category in FINANCIAL_CATEGORIES
    }

    attachments = dict(raw.get("attachments") or {})
    for field in ATTACHMENT_FIELDS:
        attachments[field] = attachments.get(field) or None
    processed["attachments"] = attachments

    for total_field, category_field in GRAND_TOTAL_FIELDS.items():
        processed[total_field] = sum(
            processed[category][category_field] for category in FINANCIAL_CATEGORIES
        )

    return processed
