"""Daily goal, streak and completion-calendar computations."""
from __future__ import annotations
import calendar
import math
import datetime as dt
from typing import Iterable, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, computed_field

from .errors import ValidationError

MIN_GOAL_MINUTES = 1
MAX_GOAL_MINUTES = 180

DateLike = Union[dt.date, str]


def _as_date(value: DateLike) -> dt.date:
	return value if isinstance(value, dt.date) else dt.date.fromisoformat(value)


class DailyProgress(BaseModel):
	date: dt.date
	seconds_active: int = 0
	goal_seconds: int

	@computed_field  # type: ignore[misc]
	@property
	def completed(self) -> bool:
		return is_completed(self.seconds_active, self.goal_seconds)


class CalendarDay(BaseModel):
	date: dt.date
	day: int
	completed: bool
	is_today: bool


def is_completed(seconds_active: int, goal_seconds: int) -> bool:
	return seconds_active >= goal_seconds


def normalize_history(history: Iterable[DateLike]) -> Set[dt.date]:
	return {_as_date(d) for d in history}


def current_streak(history: Iterable[DateLike], today: DateLike) -> int:
	"""Count consecutive completed days ending today, or yesterday if today is still open."""
	days = normalize_history(history)
	cursor = _as_date(today)
	if cursor not in days:
		cursor -= dt.timedelta(days=1)
	streak = 0
	while cursor in days:
		streak += 1
		cursor -= dt.timedelta(days=1)
	return streak


def total_completed_days(history: Iterable[DateLike]) -> int:
	return len(normalize_history(history))


def remaining_minutes(progress: DailyProgress) -> int:
	if progress.completed:
		return 0
	return max(0, math.ceil((progress.goal_seconds - progress.seconds_active) / 60))


def validate_goal_minutes(minutes: object) -> int:
	# bool is an int subclass; True must not pass as one minute
	if isinstance(minutes, bool) or not isinstance(minutes, int):
		raise ValidationError("daily goal must be a whole number of minutes")
	if not MIN_GOAL_MINUTES <= minutes <= MAX_GOAL_MINUTES:
		raise ValidationError(f"daily goal must be between {MIN_GOAL_MINUTES} and {MAX_GOAL_MINUTES} minutes")
	return minutes


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
	index = year * 12 + (month - 1) + delta
	return index // 12, index % 12 + 1


def month_calendar(
	year: int,
	month: int,
	history: Iterable[DateLike],
	today: Optional[DateLike] = None,
) -> List[List[Optional[CalendarDay]]]:
	"""Weeks of the month, Sunday first; cells outside the month are None."""
	days = normalize_history(history)
	today_date = _as_date(today) if today is not None else None
	weeks: List[List[Optional[CalendarDay]]] = []
	for week in calendar.Calendar(firstweekday=calendar.SUNDAY).monthdayscalendar(year, month):
		row: List[Optional[CalendarDay]] = []
		for day in week:
			if day == 0:
				row.append(None)
				continue
			d = dt.date(year, month, day)
			row.append(CalendarDay(date=d, day=day, completed=d in days, is_today=d == today_date))
		weeks.append(row)
	return weeks
