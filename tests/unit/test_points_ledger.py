import pytest
from decimal import Decimal
from types import SimpleNamespace

from leave_lottery.models.shared.enums import ApplicationStatus, LeavePeriod
from leave_lottery.schemas.system.setting_schema import LeaveSettings
from leave_lottery.services.leave import points_ledger
from tests.conftest import SETTINGS_ROW


def app(level, status, period=LeavePeriod.FULL_DAY):
    return SimpleNamespace(level=level, status=status, period=period)


class TestPointsConsumed:
    def test_single_level1_application(self, leave_settings):
        consumption = points_ledger.points_consumed(
            [app(1, ApplicationStatus.BEFORE_LOTTERY)], leave_settings
        )
        availability = points_ledger.available(consumption, 1, leave_settings)

        assert consumption.level1 == Decimal("2")
        assert consumption.total == Decimal("2")
        assert availability.remaining == Decimal("18")
        assert consumption.fiscal_year == 2026

    @pytest.mark.parametrize("status", [
        ApplicationStatus.CANCELLED,
        ApplicationStatus.CANCELLED_BEFORE_LOTTERY,
        ApplicationStatus.WITHDRAWN,
    ])
    def test_restoring_statuses_are_free(self, leave_settings, status):
        consumption = points_ledger.points_consumed([app(1, status)], leave_settings)
        assert consumption.total == Decimal("0")

    @pytest.mark.parametrize("status", [
        ApplicationStatus.BEFORE_LOTTERY,
        ApplicationStatus.AFTER_LOTTERY,
        ApplicationStatus.PENDING_APPROVAL,
        ApplicationStatus.PENDING_CANCELLATION,
        ApplicationStatus.CONFIRMED,
        ApplicationStatus.CANCELLED_AFTER_LOTTERY,
    ])
    def test_consuming_statuses_count(self, leave_settings, status):
        consumption = points_ledger.points_consumed([app(2, status)], leave_settings)
        assert consumption.level2 == Decimal("1")

    def test_breakdown_by_status(self, leave_settings):
        consumption = points_ledger.points_consumed([
            app(1, ApplicationStatus.CONFIRMED),
            app(1, ApplicationStatus.CANCELLED_AFTER_LOTTERY),
            app(1, ApplicationStatus.AFTER_LOTTERY, LeavePeriod.AM),
            app(3, ApplicationStatus.PENDING_APPROVAL),
        ], leave_settings)

        level1 = consumption.levels[1]
        assert level1.confirmed_count == Decimal("1")
        assert level1.cancelled_after_lottery_count == Decimal("1")
        assert level1.pending_count == Decimal("0.5")
        assert level1.points == Decimal("5")
        assert consumption.level3 == Decimal("0.1")
        assert consumption.total == Decimal("5.1")

    def test_half_day_costs_half(self, leave_settings):
        assert points_ledger.application_cost(1, LeavePeriod.PM, leave_settings) == Decimal("1")
        assert points_ledger.application_cost(3, LeavePeriod.AM, leave_settings) == Decimal("0.05")


class TestAvailable:
    def test_can_apply_up_to_the_limit(self, leave_settings):
        consumption = points_ledger.points_consumed(
            [app(1, ApplicationStatus.CONFIRMED)] * 9, leave_settings
        )
        availability = points_ledger.available(consumption, 1, leave_settings)
        assert availability.consumed == Decimal("18")
        assert availability.can_apply is True

    def test_cannot_exceed_the_limit(self, leave_settings):
        consumption = points_ledger.points_consumed(
            [app(1, ApplicationStatus.CONFIRMED)] * 9 + [app(2, ApplicationStatus.CONFIRMED)],
            leave_settings,
        )
        assert points_ledger.available(consumption, 1, leave_settings).can_apply is False
        assert points_ledger.available(consumption, 2, leave_settings).can_apply is True

    def test_fractional_costs_do_not_drift(self):
        settings = LeaveSettings(**{**SETTINGS_ROW, "max_annual_leave_points": Decimal("1")})
        consumption = points_ledger.points_consumed(
            [app(3, ApplicationStatus.AFTER_LOTTERY)] * 9, settings
        )
        availability = points_ledger.available(consumption, 3, settings)
        assert availability.remaining == Decimal("0.1")
        assert availability.can_apply is True

    @pytest.mark.parametrize("applications", [
        [],
        [app(1, ApplicationStatus.CONFIRMED), app(2, ApplicationStatus.WITHDRAWN)],
        [app(3, ApplicationStatus.PENDING_APPROVAL, LeavePeriod.AM)] * 7,
        [app(1, ApplicationStatus.CANCELLED_AFTER_LOTTERY), app(2, ApplicationStatus.BEFORE_LOTTERY)] * 4,
    ])
    def test_consumed_plus_remaining_is_max(self, leave_settings, applications):
        consumption = points_ledger.points_consumed(applications, leave_settings)
        availability = points_ledger.available(consumption, 1, leave_settings)
        assert availability.remaining >= 0
        assert availability.consumed + availability.remaining == leave_settings.max_annual_leave_points
