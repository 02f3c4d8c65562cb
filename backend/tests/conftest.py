"""
Progress Reporting Portal - Test Configuration and Fixtures
"""
import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DEBUG'] = 'false'
os.environ['LOG_FILE'] = ''
os.environ['REPORTS_DATA_FILE'] = str(Path(tempfile.gettempdir()) / 'portal-test-reports.json')

from portal.main import app
from portal.api.deps import get_report_store
from portal.services.report_store import ProgressReportStore

fake = Faker()


def make_program(**overrides) -> dict:
    """Valid program payload; male + female always equals total"""
    total = overrides.pop('totalStudents', fake.random_int(min=20, max=200))
    male = overrides.pop('maleStudents', total // 2)
    program = {
        'institution': 'Institute of Engineering',
        'level': 'Bachelor',
        'programName': 'Computer Engineering',
        'totalStudents': total,
        'maleStudents': male,
        'femaleStudents': total - male,
        'scholarshipStudents': min(10, total),
        'isScholarshipRuleApplied': True,
        'newAdmissions': 48,
        'graduatedStudents': 40,
        'passPercentage': 82.5,
    }
    program.update(overrides)
    return program


def make_report(**overrides) -> dict:
    """Valid report payload for one college and academic year"""
    report = {
        'collegeId': f"C{fake.random_int(min=100, max=999)}",
        'collegeName': f"{fake.city()} Multiple Campus",
        'academicYear': '2080/81',
        'programs': [make_program()],
        'financialStatus': {
            'salaries': {'annualBudget': 500000, 'actualExpenditure': 450000, 'revenueGenerated': 0},
            'capital': {'annualBudget': 200000, 'actualExpenditure': 100000, 'revenueGenerated': 0},
            'operational': {'annualBudget': 100000, 'actualExpenditure': 90000, 'revenueGenerated': 25000},
            'research': {'annualBudget': 50000, 'actualExpenditure': 10000, 'revenueGenerated': 5000},
        },
        'buildingStatus': 'Own building',
        'classroomCount': 24,
        'labCount': 4,
        'libraryBooks': 5200,
    }
    report.update(overrides)
    return report


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / 'data' / 'progress_reports.json'


@pytest.fixture
def store(data_file: Path) -> ProgressReportStore:
    """Fresh store backed by a per-test file"""
    return ProgressReportStore(data_file)


@pytest.fixture
async def client(store: ProgressReportStore) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with the report store override"""
    app.dependency_overrides[get_report_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def report_payload() -> dict:
    return make_report()


@pytest.fixture
def program_factory():
    return make_program


@pytest.fixture
def report_factory():
    return make_report
