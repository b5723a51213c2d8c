from __future__ import annotations
import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import ValidationError
from ..progress import ProgressStore
from ..streak import month_calendar, shift_month


router = APIRouter(prefix="/progress", tags=["progress"])


class ActivityRequest(BaseModel):
	seconds: int = Field(gt=0)
	date: Optional[dt.date] = None


class GoalRequest(BaseModel):
	minutes: int


@router.get("")
async def get_progress(db: Session = Depends(get_db)):
	return ProgressStore(db).summary()


@router.post("/activity")
async def record_activity(req: ActivityRequest, db: Session = Depends(get_db)):
	store = ProgressStore(db)
	day = req.date or dt.date.today()
	try:
		store.record_activity(day, req.seconds)
	except ValidationError as e:
		raise HTTPException(status_code=400, detail=str(e))
	return store.summary(day)


@router.put("/goal")
async def set_goal(req: GoalRequest, db: Session = Depends(get_db)):
	store = ProgressStore(db)
	try:
		store.set_goal_minutes(req.minutes)
	except ValidationError as e:
		raise HTTPException(status_code=400, detail=str(e))
	return store.summary()


@router.get("/calendar")
async def get_calendar(
	year: Optional[int] = None,
	month: Optional[int] = None,
	offset: int = 0,
	db: Session = Depends(get_db),
):
	today = dt.date.today()
	year = today.year if year is None else year
	month = today.month if month is None else month
	if not 1 <= month <= 12:
		raise HTTPException(status_code=400, detail="month must be 1-12")
	year, month = shift_month(year, month, offset)
	if not dt.MINYEAR <= year <= dt.MAXYEAR:
		raise HTTPException(status_code=400, detail="year out of range")
	weeks = month_calendar(year, month, ProgressStore(db).streak_history(), today)
	return {
		"year": year,
		"month": month,
		"weeks": [[cell.model_dump() if cell else None for cell in week] for week in weeks],
	}
