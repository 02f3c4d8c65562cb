"""
Progress Report Store - durable CRUD over the report collection

The whole collection lives in one JSON array on disk. Every mutation is a
full read-modify-write of that file:

1. Mutations are serialized through a single asyncio.Lock
2. Writes land in a sibling temp file and are swapped in with os.replace
3. Read paths degrade to [] on a corrupt file, write paths refuse to run
"""

import json
import time
import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

import aiofiles
import aiofiles.os

from portal.core.logging_config import logger
from portal.core.exceptions import (
    ReportNotFoundError,
    ProgramNotFoundError,
    DuplicateProgramError,
    InvalidFinancialCategoryError,
    StorageReadError,
    StorageWriteError,
)
from portal.services.normalizers import (
    FINANCIAL_CATEGORIES,
    ProgramKey,
    normalize_financial_status,
    normalize_program,
    normalize_programs,
    program_key,
    total_students,
)

Report = Dict[str, Any]

# Fields the store owns; a caller patch can never set them
PROTECTED_FIELDS = ("id", "createdAt", "updatedAt", "totalStudents")


def utc_timestamp() -> str:
    """ISO-8601 UTC with millisecond precision and a trailing Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ProgressReportStore:
    """
    Manages the progress report collection backed by a single JSON file.

    Features:
    - Creation-ordered string ids, unique within the collection
    - Server-side derivation of totalStudents and financial grand totals
    - Program sub-mutations keyed by (institution, level, programName)
    - Atomic file replacement on every write
    """

    def __init__(self, data_file: Path):
        self.data_file = Path(data_file)
        self._write_lock = asyncio.Lock()
        self._last_id_ms = 0

    # ==================== LOW-LEVEL IO ====================

    async def _read_collection(self) -> List[Report]:
        """Strict read: missing file is empty, anything else unreadable raises"""
        if not await aiofiles.os.path.exists(self.data_file):
            return []

        try:
            async with aiofiles.open(self.data_file, "r", encoding="utf-8") as f:
                content = await f.read()
        except OSError as e:
            raise StorageReadError(str(self.data_file), str(e)) from e

        if not content.strip():
            return []

        try:
            reports = json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageReadError(str(self.data_file), f"malformed JSON: {e}") from e

        if not isinstance(reports, list):
            raise StorageReadError(str(self.data_file), "expected a JSON array of reports")

        if not all(isinstance(report, dict) for report in reports):
            raise StorageReadError(str(self.data_file), "every report must be a JSON object")

        return reports

    async def _write_collection(self, reports: List[Report]) -> None:
        """Serialize the full collection and atomically replace the data file"""
        temp_path = self.data_file.with_name(f".{self.data_file.name}.{uuid4().hex}.tmp")
        try:
            await aiofiles.os.makedirs(self.data_file.parent, exist_ok=True)
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(reports, indent=2, default=str))
            await aiofiles.os.replace(temp_path, self.data_file)
        except (OSError, TypeError, ValueError) as e:
            if await aiofiles.os.path.exists(temp_path):
                await aiofiles.os.remove(temp_path)
            raise StorageWriteError(str(self.data_file), str(e)) from e

    async def _mutate(
        self,
        operation: str,
        apply: Callable[[List[Report]], Tuple[List[Report], Any]],
    ) -> Any:
        """Run one read-modify-write cycle under the writer lock"""
        async with self._write_lock:
            start = time.perf_counter()
            reports = await self._read_collection()
            updated, result = apply(reports)
            await self._write_collection(updated)
            logger.log_store_operation(
                operation,
                len(updated),
                (time.perf_counter() - start) * 1000,
            )
            return result

    def _next_id(self, reports: List[Report]) -> str:
        existing = {str(r.get("id")) for r in reports}
        candidate = max(int(time.time() * 1000), self._last_id_ms + 1)
        while str(candidate) in existing:
            candidate += 1
        self._last_id_ms = candidate
        return str(candidate)

    @staticmethod
    def _index_of(reports: List[Report], report_id: str) -> int:
        for index, report in enumerate(reports):
            if report.get("id") == report_id:
                return index
        raise ReportNotFoundError(report_id)

    @staticmethod
    def _merge(existing: Report, patch: Dict[str, Any]) -> Report:
        """Shallow top-level merge with re-derivation of computed fields"""
        changes = {k: v for k, v in patch.items() if k not in PROTECTED_FIELDS}

        if "programs" in changes:
            changes["programs"] = normalize_programs(changes["programs"])
            changes["totalStudents"] = total_students(changes["programs"])

        if "financialStatus" in changes:
            changes["financialStatus"] = normalize_financial_status(changes["financialStatus"])

        return {
            **existing,
            **changes,
            "id": existing["id"],
            "createdAt": existing.get("createdAt"),
            "updatedAt": utc_timestamp(),
        }

    # ==================== READS ====================

    async def get_all(self) -> List[Report]:
        """Every stored report in storage order; [] if the file is unreadable"""
        try:
            return await self._read_collection()
        except StorageReadError as e:
            logger.error(f"[ReportStore] {e.message} - serving empty collection")
            return []

    async def get_by_id(self, report_id: str) -> Optional[Report]:
        """Report with the given id, or None"""
        for report in await self.get_all():
            if report.get("id") == report_id:
                return report
        return None

    async def get_by_college(self, college_id: str) -> List[Report]:
        return [r for r in await self.get_all() if r.get("collegeId") == college_id]

    async def get_by_academic_year(self, academic_year: str) -> List[Report]:
        return [r for r in await self.get_all() if r.get("academicYear") == academic_year]

    async def get_by_program_name(self, text: str) -> List[Report]:
        """Reports having a program whose name contains text (case-insensitive)"""
        needle = text.lower()
        return [
            r for r in await self.get_all()
            if any(needle in (p.get("programName") or "").lower() for p in r.get("programs") or [])
        ]

    async def get_by_institution(self, text: str) -> List[Report]:
        """Reports having a program whose institution contains text (case-insensitive)"""
        needle = text.lower()
        return [
            r for r in await self.get_all()
            if any(needle in (p.get("institution") or "").lower() for p in r.get("programs") or [])
        ]

    async def get_by_level(self, level: str) -> List[Report]:
        """Reports having a program at exactly this level (case-insensitive)"""
        wanted = level.lower()
        return [
            r for r in await self.get_all()
            if any((p.get("level") or "").lower() == wanted for p in r.get("programs") or [])
        ]

    # ==================== WRITES ====================

    async def create(self, data: Dict[str, Any]) -> Report:
        """
        Store a new report.

        Assigns id and timestamps, normalizes programs and financial status,
        and derives totalStudents. Returns the stored entity.
        """
        def apply(reports: List[Report]) -> Tuple[List[Report], Report]:
            programs = normalize_programs(data.get("programs"))
            now = utc_timestamp()
            extra = {k: v for k, v in data.items() if k not in PROTECTED_FIELDS}
            report = {
                **extra,
                "id": self._next_id(reports),
                "programs": programs,
                "totalStudents": total_students(programs),
                "financialStatus": normalize_financial_status(data.get("financialStatus")),
                "createdAt": now,
                "updatedAt": now,
            }
            return reports + [report], report

        report = await self._mutate("create", apply)
        logger.info(f"[ReportStore] Created report {report['id']} for college {report.get('collegeId')}")
        return report

    async def update(self, report_id: str, patch: Dict[str, Any]) -> Report:
        """
        Shallow-merge patch onto a stored report.

        programs / financialStatus in the patch replace the prior value
        wholesale and are re-normalized. id and createdAt never change.
        """
        def apply(reports: List[Report]) -> Tuple[List[Report], Report]:
            index = self._index_of(reports, report_id)
            merged = self._merge(reports[index], patch)
            reports[index] = merged
            return reports, merged

        report = await self._mutate("update", apply)
        logger.info(f"[ReportStore] Updated report {report_id}")
        return report

    async def _update_with(
        self,
        operation: str,
        report_id: str,
        build_patch: Callable[[Report], Dict[str, Any]],
    ) -> Report:
        """Derive a patch from the current stored report, then merge it"""
        def apply(reports: List[Report]) -> Tuple[List[Report], Report]:
            index = self._index_of(reports, report_id)
            merged = self._merge(reports[index], build_patch(reports[index]))
            reports[index] = merged
            return reports, merged

        return await self._mutate(operation, apply)

    async def update_program(
        self,
        report_id: str,
        key: ProgramKey,
        patch: Dict[str, Any],
    ) -> Report:
        """Shallow-merge patch onto the program identified by key"""
        def build_patch(report: Report) -> Dict[str, Any]:
            programs = list(report.get("programs") or [])
            for index, program in enumerate(programs):
                if program_key(program) == tuple(key):
                    updated = {**program, **patch}
                    new_key = program_key(updated)
                    others = programs[:index] + programs[index + 1:]
                    if new_key != tuple(key) and any(program_key(p) == new_key for p in others):
                        raise DuplicateProgramError(report_id, *new_key)
                    programs[index] = updated
                    return {"programs": programs}
            raise ProgramNotFoundError(report_id, *key)

        report = await self._update_with("update_program", report_id, build_patch)
        logger.info(f"[ReportStore] Updated program {'|'.join(key)} in report {report_id}")
        return report

    async def add_program(self, report_id: str, program: Dict[str, Any]) -> Report:
        """Append a program; its composite key must be new to the report"""
        new_program = normalize_program(program)
        key = program_key(new_program)

        def build_patch(report: Report) -> Dict[str, Any]:
            programs = list(report.get("programs") or [])
            if any(program_key(p) == key for p in programs):
                raise DuplicateProgramError(report_id, *key)
            return {"programs": programs + [new_program]}

        report = await self._update_with("add_program", report_id, build_patch)
        logger.info(f"[ReportStore] Added program {'|'.join(key)} to report {report_id}")
        return report

    async def remove_program(self, report_id: str, key: ProgramKey) -> Report:
        def build_patch(report: Report) -> Dict[str, Any]:
            programs = list(report.get("programs") or [])
            remaining = [p for p in programs if program_key(p) != tuple(key)]
            if len(remaining) == len(programs):
                raise ProgramNotFoundError(report_id, *key)
            return {"programs": remaining}

        report = await self._update_with("remove_program", report_id, build_patch)
        logger.info(f"[ReportStore] Removed program {'|'.join(key)} from report {report_id}")
        return report

    async def update_financial_category(
        self,
        report_id: str,
        category: str,
        patch: Dict[str, Any],
    ) -> Report:
        """
        Merge patch onto one of the four categories and re-derive grand totals.

        An unknown report id is reported before an unknown category.
        """
        def build_patch(report: Report) -> Dict[str, Any]:
            if category not in FINANCIAL_CATEGORIES:
                raise InvalidFinancialCategoryError(category, list(FINANCIAL_CATEGORIES))
            financial = normalize_financial_status(report.get("financialStatus"))
            financial[category] = {**financial[category], **patch}
            return {"financialStatus": financial}

        report = await self._update_with("update_financial_category", report_id, build_patch)
        logger.info(f"[ReportStore] Updated {category} figures for report {report_id}")
        return report

    async def update_financial_attachments(
        self,
        report_id: str,
        attachments: Dict[str, Any],
    ) -> Report:
        def build_patch(report: Report) -> Dict[str, Any]:
            financial = normalize_financial_status(report.get("financialStatus"))
            financial["attachments"] = {**financial["attachments"], **attachments}
            return {"financialStatus": financial}

        report = await self._update_with("update_financial_attachments", report_id, build_patch)
        logger.info(f"[ReportStore] Updated financial attachments for report {report_id}")
        return report

    async def delete(self, report_id: str) -> bool:
        """Hard-delete a report; raises ReportNotFoundError if absent"""
        def apply(reports: List[Report]) -> Tuple[List[Report], bool]:
            remaining = [r for r in reports if r.get("id") != report_id]
            if len(remaining) == len(reports):
                raise ReportNotFoundError(report_id)
            return remaining, True

        await self._mutate("delete", apply)
        logger.info(f"[ReportStore] Deleted report {report_id}")
        return True
