from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..coach_service import CoachService, GenerativeService
from ..errors import StageError
from ..vocab import count_manual_words
from ..workflow import SessionWorkflow


router = APIRouter(prefix="/sessions", tags=["sessions"])


_sessions: Dict[str, SessionWorkflow] = {}


def get_service() -> GenerativeService:
	return CoachService()


class CreateSessionRequest(BaseModel):
	level: Optional[Literal["B2", "C1", "C2"]] = None
	topic: str = ""


class CreateSessionResponse(BaseModel):
	session_id: str
	state: Dict[str, Any]


class TextRequest(BaseModel):
	text: str


class TopicRequest(BaseModel):
	topic: Optional[str] = None


class SuggestRequest(BaseModel):
	interest: Optional[str] = None


class LevelRequest(BaseModel):
	level: Literal["B2", "C1", "C2"]


class ManualSubmitRequest(BaseModel):
	text: Optional[str] = None


def _get(session_id: str) -> SessionWorkflow:
	workflow = _sessions.get(session_id)
	if workflow is None:
		raise HTTPException(status_code=404, detail="Session not found or expired")
	return workflow


@contextmanager
def _stage_guard():
	try:
		yield
	except StageError as e:
		raise HTTPException(status_code=409, detail=str(e))


def _state(workflow: SessionWorkflow, **extra: Any) -> Dict[str, Any]:
	state = workflow.snapshot()
	state.update(extra)
	return state


@router.post("", response_model=CreateSessionResponse, status_code=201)
async def create_session(req: CreateSessionRequest, service: GenerativeService = Depends(get_service)):
	import uuid
	session_id = uuid.uuid4().hex
	workflow = SessionWorkflow(service, level=req.level, topic=req.topic)
	_sessions[session_id] = workflow
	return CreateSessionResponse(session_id=session_id, state=workflow.snapshot())


@router.get("/{session_id}")
async def get_session(session_id: str):
	return _state(_get(session_id))


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str):
	_get(session_id)
	del _sessions[session_id]


@router.post("/{session_id}/topic/draft")
async def update_draft_topic(session_id: str, req: TextRequest):
	workflow = _get(session_id)
	with _stage_guard():
		workflow.update_draft_topic(req.text)
	return _state(workflow)


@router.post("/{session_id}/topics/suggest")
async def suggest_topics(session_id: str, req: SuggestRequest):
	workflow = _get(session_id)
	with _stage_guard():
		await workflow.suggest_topics(req.interest)
	return _state(workflow)


@router.post("/{session_id}/topic")
async def confirm_topic(session_id: str, req: TopicRequest):
	workflow = _get(session_id)
	with _stage_guard():
		ok = workflow.confirm_topic(req.topic)
	return _state(workflow, ok=ok)


@router.post("/{session_id}/level")
async def set_level(session_id: str, req: LevelRequest):
	workflow = _get(session_id)
	workflow.set_level(req.level)
	return _state(workflow)


@router.post("/{session_id}/vocabulary/ai")
async def choose_ai_vocabulary(session_id: str):
	workflow = _get(session_id)
	with _stage_guard():
		ok = await workflow.choose_ai_vocabulary()
	return _state(workflow, ok=ok)


@router.post("/{session_id}/vocabulary/manual")
async def choose_manual_vocabulary(session_id: str):
	workflow = _get(session_id)
	with _stage_guard():
		workflow.choose_manual_vocabulary()
	return _state(workflow)


@router.post("/{session_id}/vocabulary/manual/text")
async def update_manual_text(session_id: str, req: TextRequest):
	workflow = _get(session_id)
	with _stage_guard():
		workflow.update_manual_text(req.text)
	return _state(workflow, word_count=count_manual_words(req.text))


@router.post("/{session_id}/vocabulary/manual/submit")
async def submit_manual_vocabulary(session_id: str, req: ManualSubmitRequest):
	workflow = _get(session_id)
	with _stage_guard():
		ok = await workflow.submit_manual_vocabulary(req.text)
	return _state(workflow, ok=ok)


@router.post("/{session_id}/writing/start")
async def start_writing(session_id: str):
	workflow = _get(session_id)
	with _stage_guard():
		workflow.start_writing()
	return _state(workflow)


@router.post("/{session_id}/writing/text")
async def update_submission(session_id: str, req: TextRequest):
	workflow = _get(session_id)
	with _stage_guard():
		workflow.update_submission(req.text)
	return {"vocabulary_usage": workflow.vocabulary_usage()}


@router.get("/{session_id}/usage")
async def vocabulary_usage(session_id: str):
	return {"vocabulary_usage": _get(session_id).vocabulary_usage()}


@router.post("/{session_id}/writing/submit")
async def submit_writing(session_id: str):
	workflow = _get(session_id)
	with _stage_guard():
		ok = await workflow.submit_writing()
	return _state(workflow, ok=ok)


@router.post("/{session_id}/back")
async def go_back(session_id: str):
	workflow = _get(session_id)
	with _stage_guard():
		workflow.go_back()
	return _state(workflow)


@router.post("/{session_id}/reset")
async def reset(session_id: str):
	workflow = _get(session_id)
	workflow.reset()
	return _state(workflow)


@router.post("/{session_id}/error/dismiss")
async def dismiss_error(session_id: str):
	workflow = _get(session_id)
	workflow.dismiss_error()
	return _state(workflow)
