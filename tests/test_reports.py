"""ReportService, DashboardService and AdminService tests with mocked DB layer."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from screening_core.analysis import RuleBasedAnalyzer
from screening_core.services import (
    AdminService,
    AssessmentService,
    Caller,
    DashboardService,
    ReportService,
)
from screening_db.models.enums import ReportType, UserRole

from helpers.mock_repos import install_mock_repos


@pytest.fixture
def assessments(mock_store):
    return install_mock_repos(AssessmentService(RuleBasedAnalyzer()), mock_store)


@pytest.fixture
def service(mock_store, assessments):
    return install_mock_repos(ReportService(assessments), mock_store)


@pytest.fixture
def child(mock_store, caretaker, doctor):
    return mock_store.add_child(
        caretaker_id=caretaker.user_id, name="Riley", authorized_doctors=[doctor.user_id],
    )


# =====================================================================
# Generate
# =====================================================================


class TestGenerate:
    """Report generation from an assessment."""

    @pytest.mark.asyncio
    async def test_generate_renders_and_reviews(
        self, service, mock_db, mock_store, doctor, child, caretaker, assessments,
    ):
        """The report text is rendered and the assessment marked reviewed."""
        submitted = await assessments.submit(
            mock_db, caretaker, child_id=child.id,
            answers={f"q{i}": "yes" for i in range(8)},
        )
        report = await service.generate(
            mock_db, doctor, assessment_id=submitted.id, notes="Refer to specialist.",
        )

        assert report.doctor_id == doctor.user_id
        assert report.child_id == child.id
        assert report.assessment_id == submitted.id
        assert "Patient: Riley" in report.text
        assert "Risk level: High" in report.text
        assert "Refer to specialist." in report.text
        assert report.analysis is not None

        stored = mock_store.assessments[submitted.id]
        assert stored.reviewed_by_doctor == doctor.user_id
        assert stored.reviewed_at is not None

    @pytest.mark.asyncio
    async def test_only_doctors_generate(
        self, service, mock_db, caretaker, admin, child, assessments,
    ):
        """Caretakers and admins cannot author reports."""
        submitted = await assessments.submit(
            mock_db, caretaker, child_id=child.id, answers={"q1": "no"},
        )
        for caller in (caretaker, admin):
            with pytest.raises(PermissionError):
                await service.generate(mock_db, caller, assessment_id=submitted.id)

    @pytest.mark.asyncio
    async def test_unauthorized_doctor_forbidden(
        self, service, mock_db, mock_store, caretaker, assessments,
    ):
        """A doctor without a grant cannot report on the child."""
        child = mock_store.add_child(caretaker_id=caretaker.user_id)
        submitted = await assessments.submit(
            mock_db, caretaker, child_id=child.id, answers={"q1": "no"},
        )
        stranger = Caller(user_id="doctor-9", role=UserRole.DOCTOR)
        with pytest.raises(PermissionError):
            await service.generate(mock_db, stranger, assessment_id=submitted.id)

    @pytest.mark.asyncio
    async def test_missing_assessment(self, service, mock_db, doctor):
        """Unknown assessments are not found."""
        with pytest.raises(ValueError, match="not found"):
            await service.generate(mock_db, doctor, assessment_id=uuid.uuid4())


# =====================================================================
# Progress reports
# =====================================================================


def _history(mock_store, child, *entries):
    """Store (type, score, risk) assessments one day apart, oldest first."""
    start = datetime.now(timezone.utc) - timedelta(days=len(entries))
    rows = []
    for i, (type_, score, risk) in enumerate(entries):
        row = mock_store.add_assessment(
            child_id=child.id, caretaker_id=child.caretaker_id,
            type=type_, score=score, risk=risk,
        )
        row.created_at = start + timedelta(days=i)
        rows.append(row)
    return rows


class TestGenerateProgress:
    """Progress reports compare a child's whole assessment history."""

    @pytest.mark.asyncio
    async def test_improvement_is_reported(self, service, mock_db, mock_store, doctor, child):
        """A falling score and risk read as improvement."""
        _history(
            mock_store, child,
            ("SCC-10", 7.0, "High"),
            ("DCS-6", 3.0, "Medium"),
            ("SCC-10", 2.0, "Low"),
        )

        report = await service.generate_progress(
            mock_db, doctor, child_id=child.id, notes="Good progress.",
        )

        assert report.report_type == ReportType.PROGRESS
        assert report.assessment_id is None
        assert report.analysis is None
        progress = report.progress
        assert progress.total_attempts == 3
        assert progress.overall_change == -5
        assert progress.improvement_areas == [
            "SCC-10: Score improved from 7 to 2 (5 point decrease)",
        ]
        assert progress.key_observations == [
            "SCC-10: Risk level changed from High to Low (improvement)",
        ]
        assert "significant improvement" in progress.overall_summary
        assert "PROGRESS REPORT" in report.text
        assert "Patient: Riley" in report.text
        assert "Good progress." in report.text

        stored = mock_store.reports[report.id]
        assert stored.report_type == "progress"
        assert stored.progress["total_attempts"] == 3

    @pytest.mark.asyncio
    async def test_escalation_raises_concern(self, service, mock_db, mock_store, doctor, child):
        """A rising score is a concern and intensifies the recommendations."""
        _history(mock_store, child, ("SCC-10", 2.0, "Low"), ("SCC-10", 8.0, "High"))

        progress = (await service.generate_progress(mock_db, doctor, child_id=child.id)).progress

        assert progress.concern_areas == ["SCC-10: Score increased from 2 to 8 (+6 points)"]
        assert "escalation" in progress.key_observations[0]
        assert "Consider intensifying intervention strategies" in progress.recommendations
        assert progress.next_steps[-1] == "Consider additional support services"

    @pytest.mark.asyncio
    async def test_needs_two_assessments(self, service, mock_db, mock_store, doctor, child):
        """No history is not found; a single assessment is bad input."""
        with pytest.raises(ValueError, match="not found"):
            await service.generate_progress(mock_db, doctor, child_id=child.id)

        _history(mock_store, child, ("SCC-10", 4.0, "Medium"))
        with pytest.raises(ValueError, match="needs 2 assessments"):
            await service.generate_progress(mock_db, doctor, child_id=child.id)
        assert mock_store.reports == {}

    @pytest.mark.asyncio
    async def test_permissions(self, service, mock_db, mock_store, caretaker, child):
        """Only doctors allowed to read the child generate progress reports."""
        _history(mock_store, child, ("SCC-10", 4.0, "Medium"), ("SCC-10", 5.0, "Medium"))
        stranger = Caller(user_id="doctor-9", role=UserRole.DOCTOR)
        for caller in (caretaker, stranger):
            with pytest.raises(PermissionError):
                await service.generate_progress(mock_db, caller, child_id=child.id)

    @pytest.mark.asyncio
    async def test_listed_with_assessment_reports(
        self, service, mock_db, mock_store, caretaker, doctor, child,
    ):
        """Progress reports sit in the child's report list next to the others."""
        _history(mock_store, child, ("SCC-10", 4.0, "Medium"), ("SCC-10", 4.0, "Medium"))
        report = await service.generate_progress(mock_db, doctor, child_id=child.id)

        listed = await service.list_for_child(mock_db, caretaker, child.id)
        assert [(r.id, r.report_type) for r in listed] == [(report.id, ReportType.PROGRESS)]
        assert "remain relatively stable" in listed[0].progress.overall_summary


# =====================================================================
# Read / delete
# =====================================================================


class TestReadAndDelete:
    """Listing, fetching and deleting reports."""

    @pytest.mark.asyncio
    async def test_list_get_delete(
        self, service, mock_db, mock_store, caretaker, doctor, other_caretaker,
        child, assessments,
    ):
        """Readers of the child read its reports; only the author deletes."""
        submitted = await assessments.submit(
            mock_db, caretaker, child_id=child.id, answers={"q1": "yes"},
        )
        report = await service.generate(mock_db, doctor, assessment_id=submitted.id)

        listed = await service.list_for_child(mock_db, caretaker, child.id)
        assert [r.id for r in listed] == [report.id]
        assert (await service.get(mock_db, caretaker, report.id)).text == report.text
        with pytest.raises(PermissionError):
            await service.get(mock_db, other_caretaker, report.id)

        with pytest.raises(PermissionError):
            await service.delete(mock_db, caretaker, report.id)
        await service.delete(mock_db, doctor, report.id)
        assert mock_store.reports == {}

    @pytest.mark.asyncio
    async def test_get_missing(self, service, mock_db, admin):
        """Unknown report ids are not found."""
        with pytest.raises(ValueError, match="not found"):
            await service.get(mock_db, admin, uuid.uuid4())


# =====================================================================
# Admin overview
# =====================================================================


class TestOverview:
    """Dashboard counters."""

    @pytest.mark.asyncio
    async def test_counts(self, mock_db, mock_store, assessments, caretaker, child):
        """Counts cover every table and group assessments by risk."""
        mock_store.add_questionnaire()
        await assessments.submit(mock_db, caretaker, child_id=child.id, answers={"q": "yes"})
        await assessments.submit(
            mock_db, caretaker, child_id=child.id,
            answers={f"q{i}": "yes" for i in range(7)},
        )

        overview = await install_mock_repos(AdminService(), mock_store).overview(mock_db)

        assert overview.children == 1
        assert overview.questionnaires == 1
        assert overview.assessments == 2
        assert overview.pending_access_requests == 0
        assert overview.assessments_by_risk == {"Low": 1, "High": 1}


# =====================================================================
# Role dashboards
# =====================================================================


@pytest.fixture
def dashboard(mock_store):
    return install_mock_repos(DashboardService(), mock_store)


class TestDashboard:
    """Caretaker and doctor landing-page summaries."""

    @pytest.mark.asyncio
    async def test_caretaker_sees_own_children_reports(
        self, dashboard, mock_db, mock_store, caretaker, other_caretaker, doctor,
    ):
        """Counts own children; lists the five newest reports about them."""
        mine = mock_store.add_child(caretaker_id=caretaker.user_id)
        mock_store.add_child(caretaker_id=caretaker.user_id)
        theirs = mock_store.add_child(caretaker_id=other_caretaker.user_id)
        now = datetime.now(timezone.utc)
        for i in range(6):
            mock_store.add_report(
                doctor_id=doctor.user_id, child_id=mine.id, assessment_id=None,
                text=f"report {i}", created_at=now + timedelta(minutes=i),
            )
        mock_store.add_report(
            doctor_id=doctor.user_id, child_id=theirs.id, assessment_id=None,
            text="not mine", created_at=now + timedelta(hours=1),
        )

        summary = await dashboard.caretaker(mock_db, caretaker)

        assert summary.children_count == 2
        assert [r.text for r in summary.latest_reports] == [
            "report 5", "report 4", "report 3", "report 2", "report 1",
        ]

    @pytest.mark.asyncio
    async def test_caretaker_without_children(self, dashboard, mock_db, caretaker):
        """An empty account has an empty dashboard."""
        summary = await dashboard.caretaker(mock_db, caretaker)
        assert summary.children_count == 0
        assert summary.latest_reports == []

    @pytest.mark.asyncio
    async def test_doctor_sees_own_reports(self, dashboard, mock_db, mock_store, doctor):
        """Totals and recent reports cover only the calling doctor's reports."""
        child = mock_store.add_child()
        for i in range(7):
            mock_store.add_report(
                doctor_id=doctor.user_id, child_id=child.id, assessment_id=None,
                text=f"r{i}",
            )
        mock_store.add_report(
            doctor_id="doctor-2", child_id=child.id, assessment_id=None, text="other",
        )

        summary = await dashboard.doctor(mock_db, doctor)

        assert summary.total_reports == 7
        assert len(summary.recent_reports) == 5
        assert {r.doctor_id for r in summary.recent_reports} == {doctor.user_id}

    @pytest.mark.asyncio
    async def test_wrong_role_forbidden(self, dashboard, mock_db, caretaker, doctor, admin):
        """Each dashboard belongs to one role."""
        with pytest.raises(PermissionError):
            await dashboard.caretaker(mock_db, doctor)
        with pytest.raises(PermissionError):
            await dashboard.doctor(mock_db, caretaker)
        with pytest.raises(PermissionError):
            await dashboard.doctor(mock_db, admin)
