"""In-memory stand-ins for the screening_db repositories.

Mock strategy:
  - Mock*Row dataclasses carry the same attributes as the ORM models but no
    SQLAlchemy dependency.  Services read/write attributes directly.
  - Mock*Repository classes implement every async method the services call,
    mutating rows in place just like the real repositories.
  - All repositories share one ``MockStore`` so a child deleted through one
    repository disappears for the others (mirrors ON DELETE CASCADE).
  - ``install_mock_repos`` swaps the repositories on a service instance.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any

from screening_db.models.enums import AccessStatus, ReportType


def _now() -> datetime:
    return datetime.now(timezone.utc)


# =====================================================================
# Rows
# =====================================================================


@dataclass
class MockChildRow:
    caretaker_id: str = "caretaker-1"
    name: str = "Alex"
    dob: date = field(default_factory=lambda: date.today() - timedelta(days=2 * 365))
    gender: str | None = "Male"
    notes: str | None = None
    medical_history: str = ""
    authorized_doctors: list[str] = field(default_factory=list)
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class MockQuestionnaireRow:
    name: str = "SCC-10"
    full_name: str = ""
    description: str = ""
    questions: list = field(default_factory=list)
    answer_options: list = field(default_factory=list)
    scoring_rules: list = field(default_factory=list)
    scoring_info: str = ""
    duration: str = ""
    age_range: str = ""
    is_active: bool = True
    created_by: str | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class MockAssessmentRow:
    child_id: uuid.UUID
    caretaker_id: str
    questionnaire_id: uuid.UUID | None = None
    type: str = "MCHAT"
    answers: dict = field(default_factory=dict)
    score: float | None = None
    risk: str | None = None
    analysis: dict | None = None
    progress: dict | None = None
    reviewed_by_doctor: str | None = None
    reviewed_at: datetime | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class MockAccessRequestRow:
    doctor_id: str
    child_id: uuid.UUID
    caretaker_id: str
    status: str = AccessStatus.PENDING.value
    message: str | None = None
    responded_at: datetime | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=_now)


@dataclass
class MockReportRow:
    doctor_id: str
    child_id: uuid.UUID
    assessment_id: uuid.UUID | None
    text: str
    analysis: dict | None = None
    report_type: str = ReportType.ASSESSMENT.value
    progress: dict | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=_now)


# =====================================================================
# Store
# =====================================================================


class MockStore:
    """Shared in-memory tables keyed by primary key."""

    def __init__(self):
        self.children: dict[uuid.UUID, MockChildRow] = {}
        self.questionnaires: dict[uuid.UUID, MockQuestionnaireRow] = {}
        self.assessments: dict[uuid.UUID, MockAssessmentRow] = {}
        self.access_requests: dict[uuid.UUID, MockAccessRequestRow] = {}
        self.reports: dict[uuid.UUID, MockReportRow] = {}

    # --- Convenience seeders for tests ---

    def add_child(self, **kwargs) -> MockChildRow:
        row = MockChildRow(**kwargs)
        self.children[row.id] = row
        return row

    def add_questionnaire(self, **kwargs) -> MockQuestionnaireRow:
        row = MockQuestionnaireRow(**kwargs)
        self.questionnaires[row.id] = row
        return row

    def add_assessment(self, **kwargs) -> MockAssessmentRow:
        row = MockAssessmentRow(**kwargs)
        self.assessments[row.id] = row
        return row

    def add_report(self, **kwargs) -> MockReportRow:
        row = MockReportRow(**kwargs)
        self.reports[row.id] = row
        return row


def _newest_first(rows):
    return sorted(rows, key=lambda r: r.created_at, reverse=True)


# =====================================================================
# Repositories
# =====================================================================


class MockChildRepository:
    def __init__(self, store: MockStore):
        self._store = store

    async def create(self, db, *, caretaker_id, name, dob, gender=None, notes=None,
                     medical_history=""):
        return self._store.add_child(
            caretaker_id=caretaker_id, name=name, dob=dob, gender=gender,
            notes=notes, medical_history=medical_history,
        )

    async def get_by_id(self, db, child_id):
        return self._store.children.get(child_id)

    async def list_by_caretaker(self, db, caretaker_id, *, limit=20, offset=0):
        rows = [c for c in self._store.children.values() if c.caretaker_id == caretaker_id]
        return _newest_first(rows)[offset:offset + limit]

    async def list_authorized(self, db, doctor_id, *, limit=20, offset=0):
        rows = [
            c for c in self._store.children.values()
            if doctor_id is None or doctor_id in c.authorized_doctors
        ]
        return _newest_first(rows)[offset:offset + limit]

    async def search(self, db, query, *, caretaker_id=None, doctor_id=None, limit=20):
        needle = query.casefold()
        rows = [
            c for c in self._store.children.values()
            if needle in c.name.casefold()
            and (caretaker_id is None or c.caretaker_id == caretaker_id)
            and (doctor_id is None or doctor_id in c.authorized_doctors)
        ]
        return _newest_first(rows)[:limit]

    async def ids_by_caretaker(self, db, caretaker_id):
        return [c.id for c in self._store.children.values() if c.caretaker_id == caretaker_id]

    async def count(self, db):
        return len(self._store.children)

    async def update(self, db, child, fields):
        for key, value in fields.items():
            setattr(child, key, value)
        child.updated_at = _now()
        return child

    async def set_authorized_doctors(self, db, child, doctor_ids):
        child.authorized_doctors = list(doctor_ids)
        child.updated_at = _now()
        return child

    async def delete(self, db, child):
        self._store.children.pop(child.id, None)
        for table in (self._store.assessments, self._store.access_requests, self._store.reports):
            for key in [k for k, r in table.items() if r.child_id == child.id]:
                del table[key]


class MockQuestionnaireRepository:
    def __init__(self, store: MockStore):
        self._store = store

    async def create(self, db, *, created_by=None, **fields):
        return self._store.add_questionnaire(created_by=created_by, **fields)

    async def get_by_id(self, db, questionnaire_id):
        return self._store.questionnaires.get(questionnaire_id)

    async def get_by_name(self, db, name):
        matches = [q for q in self._store.questionnaires.values() if q.name == name]
        return _newest_first(matches)[0] if matches else None

    async def list_all(self, db, *, active_only=True):
        rows = [
            q for q in self._store.questionnaires.values()
            if q.is_active or not active_only
        ]
        return _newest_first(rows)

    async def count(self, db):
        return len(self._store.questionnaires)

    async def update(self, db, questionnaire, fields):
        for key, value in fields.items():
            setattr(questionnaire, key, value)
        questionnaire.updated_at = _now()
        return questionnaire

    async def delete(self, db, questionnaire):
        self._store.questionnaires.pop(questionnaire.id, None)
        for a in self._store.assessments.values():
            if a.questionnaire_id == questionnaire.id:
                a.questionnaire_id = None


class MockAssessmentRepository:
    def __init__(self, store: MockStore):
        self._store = store

    async def create(self, db, *, child_id, caretaker_id, questionnaire_id, type,
                     answers, score, risk, progress=None):
        return self._store.add_assessment(
            child_id=child_id, caretaker_id=caretaker_id,
            questionnaire_id=questionnaire_id, type=type, answers=answers,
            score=None if score is None else float(score), risk=risk,
            progress=progress,
        )

    async def get_by_id(self, db, assessment_id):
        return self._store.assessments.get(assessment_id)

    async def list_by_child(self, db, child_id, *, limit=20, offset=0):
        rows = [a for a in self._store.assessments.values() if a.child_id == child_id]
        return _newest_first(rows)[offset:offset + limit]

    async def history(self, db, child_id):
        rows = [a for a in self._store.assessments.values() if a.child_id == child_id]
        return sorted(rows, key=lambda r: r.created_at)

    async def latest_by_child(self, db, child_ids):
        latest = {}
        for row in _newest_first(self._store.assessments.values()):
            if row.child_id in child_ids and row.child_id not in latest:
                latest[row.child_id] = row
        return latest

    async def save_analysis(self, db, assessment, analysis, *, reviewed_by=None):
        now = _now()
        assessment.analysis = analysis
        if reviewed_by is not None:
            assessment.reviewed_by_doctor = reviewed_by
            assessment.reviewed_at = now
        assessment.updated_at = now
        return assessment

    async def delete(self, db, assessment):
        self._store.assessments.pop(assessment.id, None)

    async def count(self, db):
        return len(self._store.assessments)

    async def count_by_risk(self, db):
        counts: dict[str, int] = {}
        for a in self._store.assessments.values():
            if a.risk is not None:
                counts[a.risk] = counts.get(a.risk, 0) + 1
        return counts


class MockAccessRequestRepository:
    def __init__(self, store: MockStore):
        self._store = store

    async def create(self, db, *, doctor_id, child_id, caretaker_id, message=None):
        row = MockAccessRequestRow(
            doctor_id=doctor_id, child_id=child_id,
            caretaker_id=caretaker_id, message=message,
        )
        self._store.access_requests[row.id] = row
        return row

    async def get_by_id(self, db, request_id):
        return self._store.access_requests.get(request_id)

    async def find_open(self, db, doctor_id, child_id):
        open_statuses = {AccessStatus.PENDING.value, AccessStatus.APPROVED.value}
        for row in _newest_first(self._store.access_requests.values()):
            if (row.doctor_id == doctor_id and row.child_id == child_id
                    and row.status in open_statuses):
                return row
        return None

    async def list_for(self, db, *, doctor_id=None, caretaker_id=None, status=None):
        rows = [
            r for r in self._store.access_requests.values()
            if (doctor_id is None or r.doctor_id == doctor_id)
            and (caretaker_id is None or r.caretaker_id == caretaker_id)
            and (status is None or r.status == status.value)
        ]
        return _newest_first(rows)

    async def respond(self, db, request, status):
        request.status = status.value
        request.responded_at = _now()
        return request

    async def count_pending(self, db):
        return sum(
            1 for r in self._store.access_requests.values()
            if r.status == AccessStatus.PENDING.value
        )


class MockReportRepository:
    def __init__(self, store: MockStore):
        self._store = store

    async def create(self, db, *, doctor_id, child_id, assessment_id, text, analysis=None,
                     report_type=ReportType.ASSESSMENT, progress=None):
        return self._store.add_report(
            doctor_id=doctor_id, child_id=child_id,
            assessment_id=assessment_id, text=text, analysis=analysis,
            report_type=report_type.value, progress=progress,
        )

    async def get_by_id(self, db, report_id):
        return self._store.reports.get(report_id)

    async def list_by_child(self, db, child_id, *, limit=20, offset=0):
        rows = [r for r in self._store.reports.values() if r.child_id == child_id]
        return _newest_first(rows)[offset:offset + limit]

    async def latest_for_children(self, db, child_ids, *, limit=5):
        rows = [r for r in self._store.reports.values() if r.child_id in child_ids]
        return _newest_first(rows)[:limit]

    async def list_by_doctor(self, db, doctor_id, *, limit=5):
        rows = [r for r in self._store.reports.values() if r.doctor_id == doctor_id]
        return _newest_first(rows)[:limit]

    async def count_by_doctor(self, db, doctor_id):
        return sum(1 for r in self._store.reports.values() if r.doctor_id == doctor_id)

    async def delete(self, db, report):
        self._store.reports.pop(report.id, None)


# =====================================================================
# Wiring
# =====================================================================

# Service attribute name -> mock repository class
_ATTRS: dict[str, Any] = {
    "_children": MockChildRepository,
    "_questionnaires": MockQuestionnaireRepository,
    "_assessments": MockAssessmentRepository,
    "_access": MockAccessRequestRepository,
    "_reports": MockReportRepository,
    "_assessment_rows": MockAssessmentRepository,
}

# Each service's own ``_repo`` attribute, keyed by service class name
_OWN_REPO: dict[str, Any] = {
    "ChildService": MockChildRepository,
    "QuestionnaireService": MockQuestionnaireRepository,
    "AssessmentService": MockAssessmentRepository,
    "AccessService": MockAccessRequestRepository,
    "ReportService": MockReportRepository,
}


def install_mock_repos(service: Any, store: MockStore) -> Any:
    """Replace every repository attribute on ``service`` with a mock.

    Attributes that hold another service (e.g. ``ReportService._assessments``)
    are left alone; wire those services separately.
    """
    own = _OWN_REPO.get(type(service).__name__)
    if own is not None:
        service._repo = own(store)
    for attr, mock_cls in _ATTRS.items():
        current = getattr(service, attr, None)
        if current is not None and type(current).__name__.endswith("Repository"):
            setattr(service, attr, mock_cls(store))
    return service
