"""
Efficiency statistics and workload forecasting.

Everything here is a deterministic function of stored bookings and the
trainer's working hours; no sampling and no statistical modelling.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import pendulum

from .calendar import WorkingHoursCalendar
from .models import WEEKDAYS, Booking, BookingStatus, BookingType, Trainer, weekday_name
from .slot_generator import SlotGenerator


@dataclass(frozen=True)
class EfficiencyStats:
    """Rates are fractions in [0, 1]."""
    utilization_rate: float
    cancellation_rate: float
    no_show_rate: float
    completion_rate: float
    average_sessions_per_day: float
    total_sessions: int


@dataclass(frozen=True)
class PeakHour:
    hour: int
    session_count: int

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:00-{(self.hour + 1) % 24:02d}:00"


@dataclass(frozen=True)
class MonthlyTrend:
    year: int
    month: int
    session_count: int
    completion_rate: float
    revenue: float


@dataclass(frozen=True)
class TypeStats:
    count: int
    share: float
    average_duration_minutes: int


@dataclass(frozen=True)
class Suggestion:
    level: str  # "warning", "info" or "success"
    title: str
    description: str
    action: Optional[str] = None


@dataclass(frozen=True)
class ForecastDay:
    date: date
    scheduled_count: int
    available_slot_count: int
    utilization_forecast_pct: int


@dataclass(frozen=True)
class ClientActivity:
    client_id: str
    session_count: int
    last_session_date: date


@dataclass(frozen=True)
class SessionCounts:
    total: int
    by_status: Dict[BookingStatus, int]
    by_type: Dict[BookingType, int]
    today: int
    this_week: int
    this_month: int


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def _in_range(bookings: Iterable[Booking], trainer_id: str, start: date, end: date) -> List[Booking]:
    return [b for b in bookings if b.trainer_id == trainer_id and start <= b.date <= end]


class EfficiencyAnalyzer:
    """
    Aggregates a trainer's booking history over a trailing window.

    A window of N days covers the dates from ``today - N`` to ``today``
    inclusive.
    """

    LOW_UTILIZATION = 0.50
    HIGH_UTILIZATION = 0.85
    HIGH_CANCELLATION = 0.15
    HIGH_NO_SHOW = 0.10
    MAX_WEEKDAY_SPREAD = 5
    MIN_WORKING_DAYS = 5
    MAX_WORKDAY_HOURS = 10

    def __init__(self, calendar: WorkingHoursCalendar | None = None):
        self.calendar = calendar or WorkingHoursCalendar()

    def efficiency_stats(
        self,
        trainer: Trainer,
        bookings: Iterable[Booking],
        today: date,
        window_days: int = 30,
    ) -> EfficiencyStats:
        start = today - timedelta(days=window_days)
        window = _in_range(bookings, trainer.id, start, today)

        statuses = Counter(b.status for b in window)
        total = len(window)

        working_minutes = sum(
            self.calendar.working_minutes(trainer, start + timedelta(days=offset))
            for offset in range(window_days + 1)
        )
        completed_minutes = sum(
            b.duration_minutes() for b in window if b.status is BookingStatus.COMPLETED
        )

        return EfficiencyStats(
            utilization_rate=_ratio(completed_minutes, working_minutes),
            cancellation_rate=_ratio(statuses[BookingStatus.CANCELLED], total),
            no_show_rate=_ratio(statuses[BookingStatus.NO_SHOW], total),
            completion_rate=_ratio(statuses[BookingStatus.COMPLETED], total),
            average_sessions_per_day=round(_ratio(total, window_days), 1),
            total_sessions=total,
        )

    def weekday_workload(
        self,
        trainer_id: str,
        bookings: Iterable[Booking],
        today: date,
        weeks: int = 4,
    ) -> Dict[str, int]:
        """Completed sessions per weekday over the last ``weeks`` weeks."""
        workload = {day: 0 for day in WEEKDAYS}
        start = today - timedelta(weeks=weeks)
        for booking in _in_range(bookings, trainer_id, start, today):
            if booking.status is BookingStatus.COMPLETED:
                workload[weekday_name(booking.date)] += 1
        return workload

    @staticmethod
    def busiest_weekday(workload: Dict[str, int]) -> Tuple[str, int]:
        """Weekday with the most sessions; the earliest weekday wins ties."""
        best = max(WEEKDAYS, key=lambda day: (workload.get(day, 0), -WEEKDAYS.index(day)))
        return best, workload.get(best, 0)

    def peak_hours(
        self,
        trainer_id: str,
        bookings: Iterable[Booking],
        today: date,
        window_days: int = 30,
    ) -> List[PeakHour]:
        start = today - timedelta(days=window_days)
        hours = Counter(
            b.start_time.hour
            for b in _in_range(bookings, trainer_id, start, today)
            if b.status is BookingStatus.COMPLETED
        )
        peaks = [PeakHour(hour=hour, session_count=count) for hour, count in hours.items()]
        return sorted(peaks, key=lambda p: (-p.session_count, p.hour))

    def monthly_trends(
        self,
        trainer: Trainer,
        bookings: Iterable[Booking],
        today: date,
        months: int = 6,
    ) -> List[MonthlyTrend]:
        """
        Session count, completion rate and revenue for the last ``months``
        calendar months, oldest first. Revenue is the trainer's hourly rate
        times completed hours, or 0 when no rate is configured.
        """
        history = list(bookings)
        rate = trainer.hourly_rate or 0
        current_month = pendulum.date(today.year, today.month, 1)
        trends: List[MonthlyTrend] = []

        for back in range(months - 1, -1, -1):
            month_start = current_month.subtract(months=back)
            month_end = month_start.end_of("month")
            month_bookings = _in_range(history, trainer.id, month_start, month_end)
            completed = [b for b in month_bookings if b.status is BookingStatus.COMPLETED]
            revenue = sum(rate * b.duration_minutes() / 60 for b in completed)
            trends.append(MonthlyTrend(
                year=month_start.year,
                month=month_start.month,
                session_count=len(month_bookings),
                completion_rate=_ratio(len(completed), len(month_bookings)),
                revenue=round(revenue, 2),
            ))

        return trends

    def session_type_stats(
        self,
        trainer_id: str,
        bookings: Iterable[Booking],
        today: date,
        window_days: int = 30,
    ) -> Dict[BookingType, TypeStats]:
        start = today - timedelta(days=window_days)
        completed = [
            b for b in _in_range(bookings, trainer_id, start, today)
            if b.status is BookingStatus.COMPLETED
        ]
        stats: Dict[BookingType, TypeStats] = {}
        for booking_type in BookingType:
            of_type = [b for b in completed if b.type is booking_type]
            average = round(_ratio(sum(b.duration_minutes() for b in of_type), len(of_type)))
            stats[booking_type] = TypeStats(
                count=len(of_type),
                share=_ratio(len(of_type), len(completed)),
                average_duration_minutes=average,
            )
        return stats

    def average_booking_lead_days(
        self,
        trainer_id: str,
        bookings: Iterable[Booking],
        today: date,
        timezone: str,
        window_days: int = 30,
    ) -> float:
        """Average days between creating a completed booking and its start."""
        start = today - timedelta(days=window_days)
        completed = [
            b for b in _in_range(bookings, trainer_id, start, today)
            if b.status is BookingStatus.COMPLETED
        ]
        if not completed:
            return 0.0
        total_seconds = sum(
            (b.starts_at(timezone) - b.created_at).total_seconds() for b in completed
        )
        return round(total_seconds / len(completed) / 86400, 1)

    def session_counts(
        self,
        trainer_id: str,
        bookings: Iterable[Booking],
        today: date,
    ) -> SessionCounts:
        """
        Counts over the whole history by status and type, plus the sessions
        dated today, in the current Monday-based week and in the current month.
        """
        own = [b for b in bookings if b.trainer_id == trainer_id]
        statuses = Counter(b.status for b in own)
        types = Counter(b.type for b in own)
        current = pendulum.date(today.year, today.month, today.day)
        week_start, week_end = current.start_of("week"), current.end_of("week")

        return SessionCounts(
            total=len(own),
            by_status={status: statuses[status] for status in BookingStatus},
            by_type={booking_type: types[booking_type] for booking_type in BookingType},
            today=sum(1 for b in own if b.date == today),
            this_week=sum(1 for b in own if week_start <= b.date <= week_end),
            this_month=sum(1 for b in own if (b.date.year, b.date.month) == (today.year, today.month)),
        )

    def top_clients(
        self,
        trainer_id: str,
        bookings: Iterable[Booking],
        today: date,
        window_days: int = 30,
    ) -> List[ClientActivity]:
        """Clients by completed sessions in the window, most active first."""
        start = today - timedelta(days=window_days)
        counts: Counter = Counter()
        last_seen: Dict[str, date] = {}
        for booking in _in_range(bookings, trainer_id, start, today):
            if booking.status is not BookingStatus.COMPLETED:
                continue
            counts[booking.client_id] += 1
            if booking.client_id not in last_seen or booking.date > last_seen[booking.client_id]:
                last_seen[booking.client_id] = booking.date

        clients = [
            ClientActivity(client_id, count, last_seen[client_id])
            for client_id, count in counts.items()
        ]
        return sorted(clients, key=lambda c: (-c.session_count, c.client_id))

    def average_session_interval_minutes(
        self,
        trainer_id: str,
        bookings: Iterable[Booking],
        timezone: str,
    ) -> float:
        """
        Average gap between the end of one completed session and the start of
        the next, over the trainer's whole history. 0 with fewer than two.
        """
        completed = sorted(
            (b for b in bookings
             if b.trainer_id == trainer_id and b.status is BookingStatus.COMPLETED),
            key=lambda b: (b.date, b.start_time),
        )
        if len(completed) < 2:
            return 0.0
        total_seconds = sum(
            (current.starts_at(timezone) - previous.ends_at(timezone)).total_seconds()
            for previous, current in zip(completed, completed[1:])
        )
        return round(total_seconds / (len(completed) - 1) / 60, 1)

    def optimization_suggestions(
        self,
        trainer: Trainer,
        stats: EfficiencyStats,
        workload: Dict[str, int],
    ) -> List[Suggestion]:
        suggestions: List[Suggestion] = []
        utilization = f"Working time utilization is {stats.utilization_rate:.0%}"

        if stats.utilization_rate < self.LOW_UTILIZATION:
            suggestions.append(Suggestion(
                "warning", "Low utilization", utilization,
                "Consider taking on more clients or reducing working hours",
            ))
        elif stats.utilization_rate > self.HIGH_UTILIZATION:
            suggestions.append(Suggestion(
                "warning", "High utilization", utilization,
                "Consider extending working hours or redistributing the load",
            ))
        else:
            suggestions.append(Suggestion("success", "Optimal utilization", utilization))

        if stats.cancellation_rate > self.HIGH_CANCELLATION:
            suggestions.append(Suggestion(
                "warning", "High cancellation rate",
                f"{stats.cancellation_rate:.0%} of sessions are cancelled",
                "Review cancellation reasons and the cancellation policy",
            ))

        if stats.no_show_rate > self.HIGH_NO_SHOW:
            suggestions.append(Suggestion(
                "warning", "High no-show rate",
                f"{stats.no_show_rate:.0%} of clients do not show up",
                "Introduce reminders or no-show fees",
            ))

        counts = [workload.get(day, 0) for day in WEEKDAYS]
        if max(counts) - min(counts) > self.MAX_WEEKDAY_SPREAD:
            suggestions.append(Suggestion(
                "info", "Uneven weekly load",
                "The number of sessions varies strongly between weekdays",
                "Try spreading sessions more evenly across the week",
            ))

        working_days = trainer.working_hours.working_days_count()
        if working_days < self.MIN_WORKING_DAYS:
            suggestions.append(Suggestion(
                "info", "Few working days",
                f"Working {working_days} days per week",
                "Consider adding working days",
            ))

        for day in WEEKDAYS:
            hours = trainer.working_hours.for_weekday(day)
            if hours is None or not hours.is_working:
                continue
            length = hours.duration_minutes() / 60
            if length > self.MAX_WORKDAY_HOURS:
                suggestions.append(Suggestion(
                    "warning", "Long working day",
                    f"{day}: {length:g} working hours",
                    "Consider shortening the day to avoid fatigue",
                ))

        return suggestions


class WorkloadForecaster:
    """
    Projects utilization for upcoming days.

    The projection is a plain ratio per day: already scheduled sessions over
    scheduled sessions plus still-free slots of the forecast duration. No
    seasonality and no trend extrapolation.
    """

    def __init__(self, slot_generator: SlotGenerator, slot_minutes: int = 60):
        self.slot_generator = slot_generator
        self.slot_minutes = slot_minutes

    def forecast(
        self,
        trainer: Trainer,
        today: date,
        horizon_days: int,
        bookings_for: Callable[[date], Iterable[Booking]],
    ) -> List[ForecastDay]:
        days: List[ForecastDay] = []
        for offset in range(horizon_days):
            day = today + timedelta(days=offset)
            bookings = [b for b in bookings_for(day) if b.trainer_id == trainer.id]
            scheduled = sum(1 for b in bookings if b.status is BookingStatus.SCHEDULED)
            available = len(
                self.slot_generator.available_slots(trainer, day, self.slot_minutes, bookings)
            )
            total = scheduled + available
            days.append(ForecastDay(
                date=day,
                scheduled_count=scheduled,
                available_slot_count=available,
                utilization_forecast_pct=round(100 * scheduled / total) if total else 0,
            ))
        return days
