from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

from coachbook.services.booking_policy import (
    CancelApproved,
    PolicyRejection,
    RescheduleApproved,
    evaluate_cancel,
    evaluate_reschedule,
    session_start,
)

# Tuesday 10 March 2026, 10:00 SAST
SESSION_DAY = date(2026, 3, 10)
START = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)


def make_booking(**overrides):
    fields = dict(
        status="confirmed",
        date=SESSION_DAY,
        start_time="10:00",
        session_type="individual",
        reschedule_count=0,
        rescheduled_at=None,
        original_date=None,
        original_start_time=None,
        policy_override=False,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestSessionStart:
    def test_sast_wall_clock_to_utc(self):
        assert session_start(SESSION_DAY, "10:00") == START

    def test_accepts_utc_midnight_datetime(self):
        stored = datetime(2026, 3, 10, tzinfo=timezone.utc)

        assert session_start(stored, "10:00") == START


class TestEvaluateCancel:
    def test_ample_notice_is_normal(self):
        result = evaluate_cancel(make_booking(), START - timedelta(hours=50))

        assert result == CancelApproved("normal")
        assert result.credit_refunded
        assert not result.is_late

    def test_exactly_48_hours_is_normal(self):
        result = evaluate_cancel(make_booking(), START - timedelta(hours=48))

        assert result.type == "normal"

    def test_short_notice_is_late(self):
        result = evaluate_cancel(make_booking(), START - timedelta(hours=40))

        assert result == CancelApproved("late")
        assert not result.credit_refunded
        assert result.is_late

    def test_free_consultation_follows_same_notice_rule(self):
        booking = make_booking(session_type="free_consultation")

        assert evaluate_cancel(booking, START - timedelta(hours=2)).type == "late"

    def test_cancelled_booking_rejected(self):
        result = evaluate_cancel(make_booking(status="cancelled"), START - timedelta(hours=50))

        assert isinstance(result, PolicyRejection)
        assert not result.allowed
        assert result.reason == "Only pending or confirmed bookings can be cancelled."

    def test_pending_booking_allowed(self):
        result = evaluate_cancel(make_booking(status="pending"), START - timedelta(hours=50))

        assert result.allowed

    def test_started_session_rejected(self):
        for now in (START, START + timedelta(minutes=1)):
            result = evaluate_cancel(make_booking(), now)
            assert result == PolicyRejection("Cannot cancel a session that has already started.")

    def test_policy_override_forces_normal(self):
        result = evaluate_cancel(make_booking(policy_override=True), START - timedelta(hours=1))

        assert result.type == "normal"

    def test_policy_override_does_not_allow_started_session(self):
        result = evaluate_cancel(make_booking(policy_override=True), START + timedelta(hours=1))

        assert not result.allowed

    def test_rescheduled_out_of_late_window_is_anti_abuse(self):
        original_start = datetime(2026, 3, 5, 8, 0)  # 10:00 SAST, stored naive UTC
        booking = make_booking(
            reschedule_count=1,
            original_date=date(2026, 3, 5),
            original_start_time="10:00",
            rescheduled_at=original_start - timedelta(hours=10),
        )

        result = evaluate_cancel(booking, START - timedelta(hours=72))

        assert result == CancelApproved("anti_abuse")
        assert not result.credit_refunded

    def test_rescheduled_with_ample_notice_is_normal(self):
        original_start = datetime(2026, 3, 5, 8, 0)
        booking = make_booking(
            reschedule_count=1,
            original_date=date(2026, 3, 5),
            original_start_time="10:00",
            rescheduled_at=original_start - timedelta(hours=72),
        )

        assert evaluate_cancel(booking, START - timedelta(hours=72)).type == "normal"

    def test_anti_abuse_needs_full_reschedule_record(self):
        booking = make_booking(
            reschedule_count=1,
            original_date=date(2026, 3, 5),
            original_start_time=None,
            rescheduled_at=datetime(2026, 3, 4, 22, 0),
        )

        assert evaluate_cancel(booking, START - timedelta(hours=72)).type == "normal"


class TestEvaluateReschedule:
    def test_ample_notice_allowed(self):
        result = evaluate_reschedule(make_booking(), START - timedelta(hours=30))

        assert result == RescheduleApproved()
        assert result.allowed

    def test_exactly_24_hours_allowed(self):
        assert evaluate_reschedule(make_booking(), START - timedelta(hours=24)).allowed

    def test_short_notice_rejected(self):
        result = evaluate_reschedule(make_booking(), START - timedelta(hours=23))

        assert result == PolicyRejection("Rescheduling requires at least 24 hours notice.")

    def test_free_consultation_exempt_from_notice(self):
        booking = make_booking(session_type="free_consultation")

        assert evaluate_reschedule(booking, START - timedelta(hours=1)).allowed

    def test_limit_reached(self):
        result = evaluate_reschedule(make_booking(reschedule_count=2), START - timedelta(hours=72))

        assert result == PolicyRejection("This booking has already been rescheduled 2 times.")

    def test_override_lifts_limit_and_notice(self):
        booking = make_booking(reschedule_count=2, policy_override=True)

        assert evaluate_reschedule(booking, START - timedelta(hours=1)).allowed

    def test_status_rejected(self):
        result = evaluate_reschedule(make_booking(status="completed"), START - timedelta(hours=72))

        assert result.reason == "Only pending or confirmed bookings can be rescheduled."

    def test_started_session_rejected(self):
        result = evaluate_reschedule(make_booking(policy_override=True), START)

        assert result.reason == "Cannot reschedule a session that has already started."
