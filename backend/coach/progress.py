"""
Daily practice time and streak history, backed by SQLAlchemy.

This is the store the writing workflow never touches directly: the hosting
app reports active seconds here, and a day is appended to the streak history
the first time its accumulated time reaches the goal.
"""
from __future__ import annotations
import datetime as dt
import logging
from typing import Any, Dict, Optional, Set

from sqlalchemy.orm import Session

from .errors import ValidationError
from .models import DailyProgressRow, StreakDay, UserSetting
from .settings import settings
from .streak import (
	DailyProgress,
	current_streak,
	remaining_minutes,
	total_completed_days,
	validate_goal_minutes,
)

logger = logging.getLogger(__name__)

GOAL_SETTING_KEY = "daily_goal_minutes"


class ProgressStore:
	def __init__(self, db: Session) -> None:
		self.db = db

	def get_goal_minutes(self) -> int:
		row = self.db.get(UserSetting, GOAL_SETTING_KEY)
		if row is None or row.value is None:
			return settings.default_goal_minutes
		return int(row.value)

	def set_goal_minutes(self, minutes: Any, today: Optional[dt.date] = None) -> int:
		minutes = validate_goal_minutes(minutes)
		row = self.db.get(UserSetting, GOAL_SETTING_KEY)
		if row is None:
			row = UserSetting(key=GOAL_SETTING_KEY)
		row.value = str(minutes)
		self.db.add(row)
		# Today's target follows the new goal unless today is already complete; past days keep theirs
		today_row = self.db.get(DailyProgressRow, today or dt.date.today())
		if today_row is not None and self.db.get(StreakDay, today_row.date) is None:
			today_row.goal_seconds = minutes * 60
			self.db.add(today_row)
			self._mark_if_completed(today_row)
		self.db.commit()
		logger.info("Daily goal set to %d minutes", minutes)
		return minutes

	def get_daily_progress(self, day: dt.date) -> DailyProgress:
		row = self.db.get(DailyProgressRow, day)
		if row is None:
			return DailyProgress(date=day, seconds_active=0, goal_seconds=self.get_goal_minutes() * 60)
		return DailyProgress(date=row.date, seconds_active=row.seconds_active, goal_seconds=row.goal_seconds)

	def record_activity(self, day: dt.date, seconds: int) -> DailyProgress:
		if seconds <= 0:
			raise ValidationError("active seconds must be positive")
		row = self.db.get(DailyProgressRow, day)
		if row is None:
			row = DailyProgressRow(date=day, seconds_active=0, goal_seconds=self.get_goal_minutes() * 60)
		row.seconds_active = (row.seconds_active or 0) + seconds
		self.db.add(row)
		self._mark_if_completed(row)
		self.db.commit()
		return DailyProgress(date=row.date, seconds_active=row.seconds_active, goal_seconds=row.goal_seconds)

	def _mark_if_completed(self, row: DailyProgressRow) -> None:
		progress = DailyProgress(date=row.date, seconds_active=row.seconds_active or 0, goal_seconds=row.goal_seconds)
		if progress.completed and self.db.get(StreakDay, row.date) is None:
			self.db.add(StreakDay(date=row.date))
			logger.info("Daily goal reached for %s", row.date.isoformat())

	def streak_history(self) -> Set[dt.date]:
		return {d for (d,) in self.db.query(StreakDay.date).all()}

	def summary(self, today: Optional[dt.date] = None) -> Dict[str, Any]:
		today = today or dt.date.today()
		progress = self.get_daily_progress(today)
		history = self.streak_history()
		return {
			"today": progress.model_dump(),
			"goal_minutes": self.get_goal_minutes(),
			"current_streak": current_streak(history, today),
			"total_completed_days": total_completed_days(history),
			"remaining_minutes": remaining_minutes(progress),
		}
