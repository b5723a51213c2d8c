from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, Date, DateTime, Integer, String, Text
from .db import Base


class DailyProgressRow(Base):
	__tablename__ = "daily_progress"
	# One row per calendar day; completion is derived from the two counters
	date = Column(Date, primary_key=True)
	seconds_active = Column(Integer, default=0, nullable=False)
	goal_seconds = Column(Integer, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class StreakDay(Base):
	__tablename__ = "streak_days"
	date = Column(Date, primary_key=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserSetting(Base):
	__tablename__ = "user_settings"
	key = Column(String(64), primary_key=True)
	value = Column(Text, nullable=True)
