"""
Application service exposing the booking engine's operations.

The service resolves trainers and booking snapshots through the repository
protocols and delegates the actual work to the domain components and to
``BookingLifecycle``. The clock is injected so validation and lead-time
policies can be tested against a fixed instant.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, List, Optional

import pendulum

from ..config import PolicyConfig
from ..domain.analytics import (
    ClientActivity,
    EfficiencyAnalyzer,
    EfficiencyStats,
    ForecastDay,
    MonthlyTrend,
    PeakHour,
    SessionCounts,
    Suggestion,
    TypeStats,
    WorkloadForecaster,
)
from ..domain.calendar import WorkingHoursCalendar
from ..domain.conflicts import ConflictDetector
from ..domain.day_plan import DayPlanEntry, DayPlanner
from ..domain.lifecycle import LifecyclePolicy, PolicyDecision
from ..domain.models import Booking, BookingStatus, BookingType, RankedSlot, Slot
from ..domain.recommender import SlotRecommender
from ..domain.slot_generator import SlotGenerator
from ..domain.validation import Clock, SessionValidator, ValidationResult
from .booking_lifecycle import BookingLifecycle, new_booking_id
from .repositories import BookingRepository, TrainerRepository

logger = logging.getLogger(__name__)


class SchedulingService:
    """
    Entry point for slot discovery, booking management and reporting.

    Dependency inversion toward the repository protocols makes it easy to
    plug in the JSON store, a production database or the in-memory fakes
    used by the tests.
    """

    def __init__(
        self,
        trainers: TrainerRepository,
        bookings: BookingRepository,
        timezone: str = "Europe/Berlin",
        policy: PolicyConfig | None = None,
        clock: Clock | None = None,
        id_factory: Callable[[], str] = new_booking_id,
    ) -> None:
        self.policy = policy or PolicyConfig()
        self.timezone = timezone
        self._trainers = trainers
        self._bookings = bookings
        self._clock: Clock = clock or (lambda: pendulum.now(timezone))

        self.calendar = WorkingHoursCalendar()
        self.conflict_detector = ConflictDetector()
        self.validator = SessionValidator(
            self._clock,
            min_duration_minutes=self.policy.min_duration_minutes,
            max_duration_minutes=self.policy.max_duration_minutes,
        )
        self.lifecycle_policy = LifecyclePolicy(
            timezone,
            cancellation_lead=self.policy.cancellation_lead(),
            reschedule_lead=self.policy.reschedule_lead(),
        )
        self.slot_generator = SlotGenerator(
            self.calendar, self.conflict_detector, step_minutes=self.policy.slot_step_minutes
        )
        self.recommender = SlotRecommender()
        self.day_planner = DayPlanner(
            self.calendar,
            step_minutes=self.policy.slot_step_minutes,
            min_session_minutes=self.policy.min_duration_minutes,
        )
        self.analyzer = EfficiencyAnalyzer(self.calendar)
        self.forecaster = WorkloadForecaster(
            self.slot_generator, slot_minutes=self.policy.forecast_slot_minutes
        )
        self.lifecycle = BookingLifecycle(
            trainers,
            bookings,
            self._clock,
            self.validator,
            self.lifecycle_policy,
            calendar=self.calendar,
            conflict_detector=self.conflict_detector,
            id_factory=id_factory,
        )

    def today(self) -> date:
        return self._clock().date()

    # Validation and conflicts

    def validate_booking(self, day: date, start: str, end: str) -> ValidationResult:
        """Check a proposed booking without raising."""
        return self.validator.validate(day, start, end)

    def find_conflict(
        self,
        trainer_id: str,
        day: date,
        start: str,
        end: str,
        exclude_booking_id: Optional[str] = None,
    ) -> Booking | None:
        conflicts = self.find_conflicts(trainer_id, day, start, end, exclude_booking_id)
        return conflicts[0] if conflicts else None

    def find_conflicts(
        self,
        trainer_id: str,
        day: date,
        start: str,
        end: str,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Raises:
            ValidationError: ``start`` or ``end`` is not a valid time
        """
        times = self.validator.parse_times(start, end)
        times.raise_for_violations()
        return self.conflict_detector.find_conflicts(
            self._bookings.list_for_day(trainer_id, day),
            trainer_id, day, times.start, times.end,
            exclude_booking_id=exclude_booking_id,
        )

    # Booking lifecycle

    def get_booking(self, booking_id: str) -> Booking:
        return self.lifecycle.get_booking(booking_id)

    def create_booking(
        self,
        trainer_id: str,
        client_id: str,
        day: date,
        start: str,
        end: str,
        booking_type: BookingType | str = BookingType.PERSONAL,
        notes: Optional[str] = None,
    ) -> Booking:
        return self.lifecycle.create(trainer_id, client_id, day, start, end, booking_type, notes)

    def cancel_booking(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        return self.lifecycle.cancel(booking_id, reason)

    def reschedule_booking(
        self, booking_id: str, new_date: date, new_start: str, new_end: str
    ) -> Booking:
        return self.lifecycle.reschedule(booking_id, new_date, new_start, new_end)

    def mark_completed(self, booking_id: str) -> Booking:
        return self.lifecycle.mark_completed(booking_id)

    def mark_no_show(self, booking_id: str) -> Booking:
        return self.lifecycle.mark_no_show(booking_id)

    def can_cancel(self, booking_id: str) -> PolicyDecision:
        return self.lifecycle_policy.can_cancel(self.get_booking(booking_id), self._clock())

    def can_reschedule(self, booking_id: str) -> PolicyDecision:
        return self.lifecycle_policy.can_reschedule(self.get_booking(booking_id), self._clock())

    def effective_status(self, booking_id: str) -> str:
        """Stored status, or ``overdue`` once a scheduled session's start has passed."""
        return self.lifecycle_policy.effective_status(self.get_booking(booking_id), self._clock())

    def upcoming_bookings(self, trainer_id: str, limit: int = 10) -> List[Booking]:
        """Scheduled sessions starting after now, soonest first."""
        self.lifecycle.get_trainer(trainer_id)
        now = self._clock()
        upcoming = [
            b for b in self._bookings.list_for_trainer(trainer_id, start_date=now.date())
            if b.status is BookingStatus.SCHEDULED and b.starts_at(self.timezone) > now
        ]
        return upcoming[:limit]

    # Slot discovery

    def available_slots(self, trainer_id: str, day: date, duration_minutes: int) -> List[Slot]:
        trainer = self.lifecycle.get_trainer(trainer_id)
        slots = self.slot_generator.available_slots(
            trainer, day, duration_minutes, self._bookings.list_for_day(trainer_id, day)
        )
        logger.debug("%d slot(s) of %d min for %s on %s", len(slots), duration_minutes, trainer_id, day)
        return slots

    def recommended_slots(
        self, trainer_id: str, day: date, duration_minutes: int
    ) -> List[RankedSlot]:
        trainer = self.lifecycle.get_trainer(trainer_id)
        bookings = self._bookings.list_for_day(trainer_id, day)
        slots = self.slot_generator.available_slots(trainer, day, duration_minutes, bookings)
        return self.recommender.rank(slots, bookings)

    def next_available_date(
        self,
        trainer_id: str,
        duration_minutes: int = 60,
        from_date: date | None = None,
        max_days: int = 30,
    ) -> date | None:
        trainer = self.lifecycle.get_trainer(trainer_id)
        return self.slot_generator.next_available_date(
            trainer,
            from_date or self.today(),
            duration_minutes,
            lambda day: self._bookings.list_for_day(trainer_id, day),
            max_days=max_days,
        )

    def day_plan(self, trainer_id: str, day: date) -> List[DayPlanEntry]:
        trainer = self.lifecycle.get_trainer(trainer_id)
        return self.day_planner.plan(trainer, day, self._bookings.list_for_day(trainer_id, day))

    # Reporting

    def efficiency_stats(self, trainer_id: str, window_days: int = 30) -> EfficiencyStats:
        trainer = self.lifecycle.get_trainer(trainer_id)
        return self.analyzer.efficiency_stats(
            trainer, self._bookings.list_for_trainer(trainer_id), self.today(), window_days
        )

    def workload_forecast(self, trainer_id: str, horizon_days: int = 14) -> List[ForecastDay]:
        trainer = self.lifecycle.get_trainer(trainer_id)
        return self.forecaster.forecast(
            trainer,
            self.today(),
            horizon_days,
            lambda day: self._bookings.list_for_day(trainer_id, day),
        )

    def weekday_workload(self, trainer_id: str, weeks: int = 4) -> Dict[str, int]:
        self.lifecycle.get_trainer(trainer_id)
        return self.analyzer.weekday_workload(
            trainer_id, self._bookings.list_for_trainer(trainer_id), self.today(), weeks
        )

    def peak_hours(self, trainer_id: str, window_days: int = 30) -> List[PeakHour]:
        self.lifecycle.get_trainer(trainer_id)
        return self.analyzer.peak_hours(
            trainer_id, self._bookings.list_for_trainer(trainer_id), self.today(), window_days
        )

    def monthly_trends(self, trainer_id: str, months: int = 6) -> List[MonthlyTrend]:
        trainer = self.lifecycle.get_trainer(trainer_id)
        return self.analyzer.monthly_trends(
            trainer, self._bookings.list_for_trainer(trainer_id), self.today(), months
        )

    def session_type_stats(
        self, trainer_id: str, window_days: int = 30
    ) -> Dict[BookingType, TypeStats]:
        self.lifecycle.get_trainer(trainer_id)
        return self.analyzer.session_type_stats(
            trainer_id, self._bookings.list_for_trainer(trainer_id), self.today(), window_days
        )

    def average_booking_lead_days(self, trainer_id: str, window_days: int = 30) -> float:
        self.lifecycle.get_trainer(trainer_id)
        return self.analyzer.average_booking_lead_days(
            trainer_id,
            self._bookings.list_for_trainer(trainer_id),
            self.today(),
            self.timezone,
            window_days,
        )

    def session_counts(self, trainer_id: str) -> SessionCounts:
        self.lifecycle.get_trainer(trainer_id)
        return self.analyzer.session_counts(
            trainer_id, self._bookings.list_for_trainer(trainer_id), self.today()
        )

    def top_clients(self, trainer_id: str, window_days: int = 30) -> List[ClientActivity]:
        self.lifecycle.get_trainer(trainer_id)
        return self.analyzer.top_clients(
            trainer_id, self._bookings.list_for_trainer(trainer_id), self.today(), window_days
        )

    def average_session_interval_minutes(self, trainer_id: str) -> float:
        self.lifecycle.get_trainer(trainer_id)
        return self.analyzer.average_session_interval_minutes(
            trainer_id, self._bookings.list_for_trainer(trainer_id), self.timezone
        )

    def optimization_suggestions(self, trainer_id: str) -> List[Suggestion]:
        trainer = self.lifecycle.get_trainer(trainer_id)
        stats = self.efficiency_stats(trainer_id)
        workload = self.weekday_workload(trainer_id)
        return self.analyzer.optimization_suggestions(trainer, stats, workload)
