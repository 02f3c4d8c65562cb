"""
Progress Report Analytics
Multi-axis rollups recomputed from the full collection on every call
"""

import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from portal.core.logging_config import logger
from portal.services.normalizers import FINANCIAL_CATEGORIES, GRAND_TOTAL_FIELDS
from portal.services.report_store import ProgressReportStore, Report

UNKNOWN_INSTITUTION = "Unknown Institution"
UNSPECIFIED_LEVEL = "Not Specified"


def round_half_up(value: float) -> int:
    """Nearest integer, exact halves rounded toward +infinity"""
    return math.floor(value + 0.5)


def round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def percentage(part: float, whole: float) -> float:
    """part / whole * 100, 0 when whole is 0"""
    return (part / whole) * 100 if whole else 0


def _num(value: Any) -> float:
    return value or 0


def _institution_label(program: Dict[str, Any]) -> str:
    return program.get("institution") or UNKNOWN_INSTITUTION


def _level_label(program: Dict[str, Any]) -> str:
    return program.get("level") or UNSPECIFIED_LEVEL


def _latest_first(reports: List[Report]) -> List[Report]:
    """Greatest createdAt first, ties broken by id"""
    return sorted(
        reports,
        key=lambda r: (r.get("createdAt") or "", str(r.get("id") or "")),
        reverse=True,
    )


@dataclass
class GroupStats:
    """Running totals for one group-by key"""
    total_students: int = 0
    male_students: int = 0
    female_students: int = 0
    scholarship_students: int = 0
    new_admissions: int = 0
    graduated_students: int = 0
    pass_rate_sum: float = 0
    program_count: int = 0
    colleges: Set[str] = field(default_factory=set)
    institutions: Set[str] = field(default_factory=set)
    levels: Set[str] = field(default_factory=set)

    def add_program(self, program: Dict[str, Any], college_id: str) -> None:
        self.total_students += _num(program.get("totalStudents"))
        self.male_students += _num(program.get("maleStudents"))
        self.female_students += _num(program.get("femaleStudents"))
        self.scholarship_students += _num(program.get("scholarshipStudents"))
        self.new_admissions += _num(program.get("newAdmissions"))
        self.graduated_students += _num(program.get("graduatedStudents"))
        self.pass_rate_sum += _num(program.get("passPercentage"))
        self.program_count += 1
        self.colleges.add(college_id)
        self.institutions.add(_institution_label(program))
        self.levels.add(_level_label(program))

    @property
    def average_pass_rate(self) -> float:
        return self.pass_rate_sum / self.program_count if self.program_count else 0

    @property
    def average_students_per_program(self) -> int:
        return round_half_up(self.total_students / self.program_count) if self.program_count else 0


def _by_students(item: Dict[str, Any]) -> float:
    return item["totalStudents"]


def _empty_category_breakdown() -> Dict[str, Dict[str, float]]:
    return {
        category: {"budget": 0, "expenditure": 0, "revenue": 0}
        for category in FINANCIAL_CATEGORIES
    }


def _empty_financial_totals() -> Dict[str, float]:
    return {total_field: 0 for total_field in GRAND_TOTAL_FIELDS}


def _add_financial_totals(target: Dict[str, float], financial: Dict[str, Any]) -> None:
    for total_field in GRAND_TOTAL_FIELDS:
        target[total_field] += _num(financial.get(total_field))


def _college_performance(college_id: str, reports: List[Report]) -> Dict[str, Any]:
    ordered = _latest_first(reports)
    latest, oldest = ordered[0], ordered[-1]

    growth = 0.0
    if len(ordered) > 1 and _num(oldest.get("totalStudents")) > 0:
        growth = percentage(
            _num(latest.get("totalStudents")) - oldest["totalStudents"],
            oldest["totalStudents"],
        )

    financial = latest.get("financialStatus")
    financial_summary = None
    if financial:
        financial_summary = {
            "annualBudget": _num(financial.get("totalAnnualBudget")),
            "actualExpenditure": _num(financial.get("totalActualExpenditure")),
            "revenueGenerated": _num(financial.get("totalRevenueGenerated")),
            "utilizationRate": round2(percentage(
                _num(financial.get("totalActualExpenditure")),
                _num(financial.get("totalAnnualBudget")),
            )),
        }

    programs = latest.get("programs") or []
    return {
        "collegeId": college_id,
        "collegeName": latest.get("collegeName"),
        "totalReports": len(ordered),
        "totalStudents": _num(latest.get("totalStudents")),
        "totalPrograms": len(programs),
        "programSummary": [
            {
                "institution": p.get("institution"),
                "level": p.get("level"),
                "programName": p.get("programName"),
                "totalStudents": p.get("totalStudents"),
                "maleStudents": p.get("maleStudents"),
                "femaleStudents": p.get("femaleStudents"),
                "scholarshipStudents": p.get("scholarshipStudents"),
                "passPercentage": p.get("passPercentage"),
                "hasApprovalLetter": bool(p.get("approvalLetterPath")),
            }
            for p in programs
        ],
        "financialSummary": financial_summary,
        "studentGrowth": round2(growth),
        "lastSubmission": latest.get("submissionDate") or latest.get("createdAt"),
    }


def compute_analytics(reports: List[Report]) -> Dict[str, Any]:
    """
    Fold the full report set into college, program, institution, level and
    year rollups plus the financial summary. Pure: no IO, no state kept.
    """
    colleges: Dict[str, List[Report]] = {}
    programs: Dict[str, GroupStats] = {}
    program_labels: Dict[str, Dict[str, str]] = {}
    institutions: Dict[str, GroupStats] = {}
    levels: Dict[str, GroupStats] = {}
    years: Dict[str, Dict[str, Any]] = {}
    overall = GroupStats()

    financial_summary: Dict[str, Any] = {
        **_empty_financial_totals(),
        "categoryBreakdown": _empty_category_breakdown(),
    }

    for report in reports:
        college_id = report.get("collegeId")
        colleges.setdefault(college_id, []).append(report)

        year_label = str(report.get("academicYear") or "")
        year = years.setdefault(year_label, {
            "year": year_label,
            "totalStudents": 0,
            "totalMale": 0,
            "totalFemale": 0,
            "totalScholarship": 0,
            "financial": _empty_financial_totals(),
            "reportCount": 0,
        })
        year["reportCount"] += 1

        financial = report.get("financialStatus")
        if financial:
            _add_financial_totals(financial_summary, financial)
            _add_financial_totals(year["financial"], financial)
            for category in FINANCIAL_CATEGORIES:
                figures = financial.get(category) or {}
                breakdown = financial_summary["categoryBreakdown"][category]
                breakdown["budget"] += _num(figures.get("annualBudget"))
                breakdown["expenditure"] += _num(figures.get("actualExpenditure"))
                breakdown["revenue"] += _num(figures.get("revenueGenerated"))

        for program in report.get("programs") or []:
            overall.add_program(program, college_id)

            year["totalStudents"] += _num(program.get("totalStudents"))
            year["totalMale"] += _num(program.get("maleStudents"))
            year["totalFemale"] += _num(program.get("femaleStudents"))
            year["totalScholarship"] += _num(program.get("scholarshipStudents"))

            institution = _institution_label(program)
            level = _level_label(program)
            key = f"{institution}|{level}|{program.get('programName') or ''}"
            program_labels.setdefault(key, {
                "institution": institution,
                "level": level,
                "programName": program.get("programName") or "",
            })
            programs.setdefault(key, GroupStats()).add_program(program, college_id)
            institutions.setdefault(institution, GroupStats()).add_program(program, college_id)
            levels.setdefault(level, GroupStats()).add_program(program, college_id)

    financial_summary["budgetUtilization"] = round2(percentage(
        financial_summary["totalActualExpenditure"],
        financial_summary["totalAnnualBudget"],
    ))

    program_distribution = [
        {
            **program_labels[key],
            "totalStudents": stats.total_students,
            "maleStudents": stats.male_students,
            "femaleStudents": stats.female_students,
            "scholarshipStudents": stats.scholarship_students,
            "scholarshipPercentage": round2(percentage(stats.scholarship_students, stats.total_students)),
            "newAdmissions": stats.new_admissions,
            "graduatedStudents": stats.graduated_students,
            "averagePassRate": round2(stats.average_pass_rate),
            "collegeCount": len(stats.colleges),
        }
        for key, stats in programs.items()
    ]

    institution_distribution = [
        {
            "institutionName": name,
            "totalStudents": stats.total_students,
            "totalPrograms": stats.program_count,
            "collegeCount": len(stats.colleges),
            "levelCount": len(stats.levels),
            "averageStudentsPerProgram": stats.average_students_per_program,
        }
        for name, stats in institutions.items()
    ]

    level_distribution = [
        {
            "levelName": name,
            "totalStudents": stats.total_students,
            "totalPrograms": stats.program_count,
            "collegeCount": len(stats.colleges),
            "institutionCount": len(stats.institutions),
            "averageStudentsPerProgram": stats.average_students_per_program,
        }
        for name, stats in levels.items()
    ]

    college_performance = [
        _college_performance(college_id, college_reports)
        for college_id, college_reports in colleges.items()
    ]

    total_students = sum(_num(r.get("totalStudents")) for r in reports)

    return {
        "totalColleges": len(colleges),
        "totalReports": len(reports),
        "totalStudents": total_students,
        "totalMaleStudents": overall.male_students,
        "totalFemaleStudents": overall.female_students,
        "totalScholarshipStudents": overall.scholarship_students,
        "scholarshipPercentage": round2(percentage(overall.scholarship_students, total_students)),
        "financialSummary": financial_summary,
        "averagePassRate": round2(overall.average_pass_rate),
        "programDistribution": sorted(program_distribution, key=_by_students, reverse=True),
        "institutionDistribution": sorted(institution_distribution, key=_by_students, reverse=True),
        "levelDistribution": sorted(level_distribution, key=_by_students, reverse=True),
        "collegePerformance": sorted(college_performance, key=_by_students, reverse=True),
        "yearlyTrends": sorted(years.values(), key=lambda y: y["year"]),
    }


def compute_college_summary(reports: List[Report]) -> Optional[Dict[str, Any]]:
    """Latest-report view of one college; None when it has no reports"""
    if not reports:
        return None

    latest = _latest_first(reports)[0]
    programs = latest.get("programs") or []

    by_institution: Dict[str, Dict[str, Any]] = {}
    by_level: Dict[str, Dict[str, Any]] = {}
    for program in programs:
        institution = _institution_label(program)
        level = _level_label(program)

        group = by_institution.setdefault(institution, {
            "institution": institution, "totalPrograms": 0, "totalStudents": 0, "levels": set(),
        })
        group["totalPrograms"] += 1
        group["totalStudents"] += _num(program.get("totalStudents"))
        group["levels"].add(level)

        group = by_level.setdefault(level, {
            "level": level, "totalPrograms": 0, "totalStudents": 0, "institutions": set(),
        })
        group["totalPrograms"] += 1
        group["totalStudents"] += _num(program.get("totalStudents"))
        group["institutions"].add(institution)

    financial = latest.get("financialStatus")
    financial_data = None
    if financial:
        financial_data = {
            **{category: financial.get(category) for category in FINANCIAL_CATEGORIES},
            "totalAnnualBudget": financial.get("totalAnnualBudget"),
            "totalActualExpenditure": financial.get("totalActualExpenditure"),
            "totalRevenueGenerated": financial.get("totalRevenueGenerated"),
            "utilizationRate": round2(percentage(
                _num(financial.get("totalActualExpenditure")),
                _num(financial.get("totalAnnualBudget")),
            )),
            "attachments": financial.get("attachments"),
        }

    return {
        "collegeId": latest.get("collegeId"),
        "collegeName": latest.get("collegeName"),
        "totalReports": len(reports),
        "latestAcademicYear": latest.get("academicYear"),
        "totalStudents": _num(latest.get("totalStudents")),
        "maleStudents": sum(_num(p.get("maleStudents")) for p in programs),
        "femaleStudents": sum(_num(p.get("femaleStudents")) for p in programs),
        "scholarshipStudents": sum(_num(p.get("scholarshipStudents")) for p in programs),
        "totalPrograms": len(programs),
        "programs": programs,
        # sets become sorted lists so the payload is JSON-serializable
        "programsByInstitution": [
            {**g, "levels": sorted(g["levels"])} for g in by_institution.values()
        ],
        "programsByLevel": [
            {**g, "institutions": sorted(g["institutions"])} for g in by_level.values()
        ],
        "infrastructure": {
            "buildingStatus": latest.get("buildingStatus"),
            "classroomCount": latest.get("classroomCount"),
            "labCount": latest.get("labCount"),
            "libraryBooks": latest.get("libraryBooks"),
        },
        "financial": financial_data,
        "actualProgress": latest.get("actualProgress") or "",
        "adminProgress": latest.get("adminProgress") or "",
        "majorChallenges": latest.get("majorChallenges") or "",
        "nextYearPlan": latest.get("nextYearPlan") or "",
    }


def compute_financial_analytics(reports: List[Report], top_n: int = 10) -> Dict[str, Any]:
    """Budget totals, category shares and the top-N colleges by annual budget"""
    with_financials = [r for r in reports if r.get("financialStatus")]

    total_budget = 0
    total_expenditure = 0
    total_revenue = 0
    categories = {c: {"budget": 0, "expenditure": 0} for c in FINANCIAL_CATEGORIES}

    for report in with_financials:
        financial = report["financialStatus"]
        total_budget += _num(financial.get("totalAnnualBudget"))
        total_expenditure += _num(financial.get("totalActualExpenditure"))
        total_revenue += _num(financial.get("totalRevenueGenerated"))
        for category in FINANCIAL_CATEGORIES:
            figures = financial.get(category) or {}
            categories[category]["budget"] += _num(figures.get("annualBudget"))
            categories[category]["expenditure"] += _num(figures.get("actualExpenditure"))

    top_spending = sorted(
        (
            {
                "collegeName": r.get("collegeName"),
                "academicYear": r.get("academicYear"),
                "annualBudget": _num(r["financialStatus"].get("totalAnnualBudget")),
                "actualExpenditure": _num(r["financialStatus"].get("totalActualExpenditure")),
                "utilizationRate": round2(percentage(
                    _num(r["financialStatus"].get("totalActualExpenditure")),
                    _num(r["financialStatus"].get("totalAnnualBudget")),
                )),
            }
            for r in with_financials
        ),
        key=lambda item: item["annualBudget"],
        reverse=True,
    )[:top_n]

    return {
        "totalAnnualBudget": total_budget,
        "totalExpenditure": total_expenditure,
        "totalRevenue": total_revenue,
        "averageUtilization": round2(percentage(total_expenditure, total_budget)),
        "topSpendingColleges": top_spending,
        "categoryAnalysis": {
            category: {
                **figures,
                "percentage": round2(percentage(figures["budget"], total_budget)),
            }
            for category, figures in categories.items()
        },
    }


def search_programs(reports: List[Report], criteria: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Flatten programs across reports and keep the ones matching every given
    criterion: institution / programName substring, exact level (all
    case-insensitive), minStudents, minPassPercentage.
    """
    institution = (criteria.get("institution") or "").lower()
    level = (criteria.get("level") or "").lower()
    program_name = (criteria.get("programName") or "").lower()
    min_students = criteria.get("minStudents")
    min_pass = criteria.get("minPassPercentage")

    results = []
    for report in reports:
        for program in report.get("programs") or []:
            if institution and institution not in (program.get("institution") or "").lower():
                continue
            if level and level != (program.get("level") or "").lower():
                continue
            if program_name and program_name not in (program.get("programName") or "").lower():
                continue
            if min_students is not None and _num(program.get("totalStudents")) < min_students:
                continue
            if min_pass is not None and _num(program.get("passPercentage")) < min_pass:
                continue
            results.append({
                **program,
                "collegeId": report.get("collegeId"),
                "collegeName": report.get("collegeName"),
                "academicYear": report.get("academicYear"),
                "reportId": report.get("id"),
            })
    return results


class AnalyticsService:
    """Read-only reporting over a ProgressReportStore; owns no state"""

    def __init__(self, store: ProgressReportStore, slow_threshold_ms: float = 1000):
        self.store = store
        self.slow_threshold_ms = slow_threshold_ms

    async def get_analytics(self) -> Dict[str, Any]:
        reports = await self.store.get_all()
        start = time.perf_counter()
        analytics = compute_analytics(reports)
        logger.log_performance(
            "analytics",
            (time.perf_counter() - start) * 1000,
            threshold_ms=self.slow_threshold_ms,
            report_count=len(reports),
        )
        return analytics

    async def get_college_summary(self, college_id: str) -> Optional[Dict[str, Any]]:
        return compute_college_summary(await self.store.get_by_college(college_id))

    async def get_financial_analytics(self, top_n: int = 10) -> Dict[str, Any]:
        return compute_financial_analytics(await self.store.get_all(), top_n=top_n)

    async def search_programs(self, criteria: Dict[str, Any]) -> List[Dict[str, Any]]:
        return search_programs(await self.store.get_all(), criteria)
