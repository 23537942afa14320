"""
Tests for ReconciliationService.reconcile.

Covers:
- Actual hours per member on the project date grid
- Planned hours, differences and budget status when a plan exists
- Members without a plan or without a timesheet
- Submission status and report rows
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from timesheet_engines.cost_reconciliation import BudgetStatus
from timesheet_kernel.domain.dtos import CostingUpdate, EntryInput
from timesheet_kernel.domain.lifecycle import TimesheetStatus
from timesheet_kernel.exceptions import AccessDeniedError, ProjectNotFoundError
from timesheet_kernel.selectors.planning_selector import PlanningSelector
from timesheet_kernel.services.costing_service import CostingService
from timesheet_kernel.services.planning_service import PlanningService
from timesheet_services.reconciliation_service import ReconciliationService, submission_status

JAN_1 = date(2024, 1, 1)
JAN_2 = date(2024, 1, 2)
JAN_8 = date(2024, 1, 8)


def _entries(*pairs) -> list[EntryInput]:
    return [EntryInput(entry_date=d, hours=h) for d, h in pairs]


@pytest.fixture
def planning_service(session, deterministic_clock, config):
    return PlanningService(session, clock=deterministic_clock, config=config)


@pytest.fixture
def costing_service(session, deterministic_clock, config):
    return CostingService(session, clock=deterministic_clock, config=config)


@pytest.fixture
def bob(project, create_user, add_member, identity_for):
    user = create_user(email="bob@example.com")
    add_member(project.id, user.id, role_name="ENGINEER")
    return identity_for(user)


class TestActualHours:

    def test_grid_covers_project_dates(self, reconciliation_service, project, member, approver_identity):
        result = reconciliation_service.reconcile(project.id, approver_identity)

        assert result.date_range[0] == date(2024, 1, 1)
        assert result.date_range[-1] == date(2024, 1, 14)
        assert len(result.dates) == 14
        assert result.dates[0] == "2024-01-01"

    def test_actual_hours_per_member(
        self, reconciliation_service, timesheet_service, project, member_identity, bob, approver_identity,
    ):
        timesheet_service.save_draft(project.id, _entries((JAN_1, "8"), (JAN_2, "6")), member_identity)
        timesheet_service.save_draft(project.id, _entries((JAN_8, "4")), bob)

        result = reconciliation_service.reconcile(project.id, approver_identity)

        alice_row, bob_row = result.rows
        assert alice_row.email == "alice@example.com"
        assert alice_row.day_hours[JAN_1] == Decimal("8")
        assert alice_row.day_hours[date(2024, 1, 3)] == Decimal("0")
        assert alice_row.total_hours == Decimal("14")
        assert alice_row.status == TimesheetStatus.DRAFT
        assert bob_row.role == "ENGINEER"
        assert bob_row.total_hours == Decimal("4")
        assert result.totals.total_hours == Decimal("18")

    def test_member_without_timesheet_has_zero_row(
        self, reconciliation_service, project, member, approver_identity,
    ):
        (row,) = reconciliation_service.reconcile(project.id, approver_identity).rows

        assert row.timesheet_id is None
        assert row.total_hours == Decimal("0")
        assert set(row.day_hours.values()) == {Decimal("0")}


class TestPlannedHours:

    def test_no_plan_gives_empty_planned_columns(
        self, reconciliation_service, timesheet_service, project, member_identity, approver_identity,
    ):
        timesheet_service.save_draft(project.id, _entries((JAN_1, "8")), member_identity)

        (row,) = reconciliation_service.reconcile(project.id, approver_identity).rows

        assert row.has_plan is False
        assert row.planned_day_hours == {}
        assert row.planned_total_hours is None
        assert row.difference_hours is None
        assert row.difference_percentage is None
        assert row.budget_status is None

    def test_plan_and_costing(
        self, reconciliation_service, timesheet_service, planning_service, costing_service,
        project, member_identity, approver_identity,
    ):
        timesheet_service.save_draft(
            project.id, _entries((JAN_1, "10"), (JAN_2, "10"), (JAN_8, "10")), member_identity,
        )
        planning_service.set_weekly_plan(
            project.id, member_identity.user_id, {1: Decimal("20"), 2: Decimal("5")}, approver_identity,
        )
        costing_service.upsert_costing(
            project.id,
            [CostingUpdate(member_identity.user_id, Decimal("100"), Decimal("2500"))],
            approver_identity,
        )

        result = reconciliation_service.reconcile(project.id, approver_identity)
        (row,) = result.rows

        assert row.planned_day_hours[JAN_1] == Decimal("4")
        assert row.planned_day_hours[JAN_8] == Decimal("1")
        assert row.planned_day_hours[date(2024, 1, 6)] == Decimal("0")
        assert row.planned_total_hours == Decimal("25")
        assert row.total_hours == Decimal("30")
        assert row.difference_hours == Decimal("5")
        assert row.difference_percentage == Decimal("20.00")
        assert row.budget_status == BudgetStatus.OVER
        assert row.rate == Decimal("100")
        assert row.amount == Decimal("3000")
        assert row.planned_amount == Decimal("2500")
        assert result.totals.quote_amount == Decimal("2500")

    def test_thresholds_come_from_config(
        self, session, deterministic_clock, config, timesheet_service, planning_service,
        project, member_identity, approver_identity,
    ):
        timesheet_service.save_draft(project.id, _entries((JAN_1, "21")), member_identity)
        planning_service.set_weekly_plan(project.id, member_identity.user_id, {1: Decimal("20")}, approver_identity)
        strict = ReconciliationService(
            session, clock=deterministic_clock, config=replace(config, budget_over_threshold_pct=Decimal("2")),
        )

        (row,) = strict.reconcile(project.id, approver_identity).rows
        assert row.budget_status == BudgetStatus.OVER

    def test_unreadable_plans_degrade_to_no_plan(
        self, reconciliation_service, timesheet_service, planning_service, project,
        member_identity, approver_identity, monkeypatch, captured_logs,
    ):
        timesheet_service.save_draft(project.id, _entries((JAN_1, "8")), member_identity)
        planning_service.set_weekly_plan(project.id, member_identity.user_id, {1: Decimal("40")}, approver_identity)

        def broken(self, project_id):
            raise OperationalError("SELECT weekly_plans", {}, Exception("no such table"))

        monkeypatch.setattr(PlanningSelector, "weekly_plans_for_project", broken)

        (row,) = reconciliation_service.reconcile(project.id, approver_identity).rows

        assert row.total_hours == Decimal("8")
        assert row.planned_total_hours is None
        assert any(r["message"] == "planned_hours_unavailable" for r in captured_logs())


class TestSubmissionStatus:

    def test_counts(
        self, reconciliation_service, timesheet_service, project, member_identity, bob, approver_identity,
    ):
        draft = timesheet_service.save_draft(project.id, _entries((JAN_1, "8")), member_identity)
        timesheet_service.submit(draft.id, member_identity)

        status = reconciliation_service.reconcile(project.id, approver_identity).submission_status

        assert status.total_members == 2
        assert status.submitted_count == 1
        assert status.pending_count == 1
        assert status.all_submitted is False
        assert status.pending_users == ("bob@example.com",)

    def test_empty_roster_is_not_all_submitted(self):
        status = submission_status([], {})
        assert status.total_members == 0
        assert status.all_submitted is False


class TestAccess:

    def test_other_organization_denied(self, reconciliation_service, project, create_user, identity_for):
        outsider = identity_for(create_user(organization_id=uuid4()))
        with pytest.raises(AccessDeniedError):
            reconciliation_service.reconcile(project.id, outsider)

    def test_unknown_project(self, reconciliation_service, approver_identity):
        with pytest.raises(ProjectNotFoundError):
            reconciliation_service.reconcile(uuid4(), approver_identity)


class TestReportRows:

    def test_rows_are_plain_values(
        self, reconciliation_service, timesheet_service, project, member_identity, approver_identity,
    ):
        timesheet_service.save_draft(project.id, _entries((JAN_1, "8")), member_identity)

        (report,) = reconciliation_service.reconcile(project.id, approver_identity).as_report_rows()

        assert report["name"] == "alice"
        assert report["status"] == "draft"
        assert report["day_hours"]["2024-01-01"] == Decimal("8")
        assert report["planned_day_hours"] == {}
        assert report["budget_status"] is None
        assert report["user_id"] == str(member_identity.user_id)
