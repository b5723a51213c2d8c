"""
Decode boundary between loosely-typed model output and the strict schemas.

Every decoder returns a ``DecodeResult`` instead of raising, so callers can
tell a malformed payload (``DecodeError``) apart from a transport failure and
decide for themselves whether to raise, fall back or log.
"""
from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Sequence, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import DecodeError
from .schemas import AssessmentResult, VocabularyItem

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_BLOCK_RE = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
	value: Optional[T] = None
	error: Optional[DecodeError] = None

	@property
	def ok(self) -> bool:
		return self.error is None

	def unwrap(self) -> T:
		if self.error is not None:
			raise self.error
		return self.value  # type: ignore[return-value]


def _success(value: T) -> DecodeResult[T]:
	return DecodeResult(value=value)


def _failure(field: str, message: str) -> DecodeResult[Any]:
	return DecodeResult(error=DecodeError(field, message))


def _field_path(loc: Sequence[Any]) -> str:
	return ".".join(str(part) for part in loc) or "<root>"


def _from_validation_error(exc: PydanticValidationError) -> DecodeResult[Any]:
	first = exc.errors()[0]
	return _failure(_field_path(first["loc"]), first["msg"])


def parse_json_block(text: Optional[str]) -> DecodeResult[Any]:
	"""Parse model output as JSON, tolerating markdown fences and prose around it."""
	if text is None or not text.strip():
		return _failure("<root>", "empty response")
	candidates = [text]
	fenced = _FENCE_RE.search(text)
	if fenced:
		candidates.append(fenced.group(1))
	block = _BLOCK_RE.search(text)
	if block:
		candidates.append(block.group(0))
	for candidate in candidates:
		try:
			return _success(json.loads(candidate))
		except ValueError:
			continue
	return _failure("<root>", "response is not valid JSON")


def decode_assessment(payload: Any) -> DecodeResult[AssessmentResult]:
	try:
		return _success(AssessmentResult.model_validate(payload))
	except PydanticValidationError as exc:
		return _from_validation_error(exc)


_vocabulary_adapter = TypeAdapter(List[VocabularyItem])


def decode_vocabulary(payload: Any) -> DecodeResult[List[VocabularyItem]]:
	# Some responses wrap the list, e.g. {"vocabulary": [...]}
	if isinstance(payload, dict) and len(payload) == 1:
		payload = next(iter(payload.values()))
	try:
		items = _vocabulary_adapter.validate_python(payload)
	except PydanticValidationError as exc:
		return _from_validation_error(exc)
	if not items:
		return _failure("<root>", "vocabulary list is empty")
	return _success(items)


def decode_topics(payload: Any) -> DecodeResult[List[str]]:
	if isinstance(payload, dict) and len(payload) == 1:
		payload = next(iter(payload.values()))
	if not isinstance(payload, list):
		return _failure("<root>", "expected a list of topics")
	topics: List[str] = []
	for idx, item in enumerate(payload):
		if not isinstance(item, str):
			return _failure(str(idx), "topic must be a string")
		if item.strip():
			topics.append(item.strip())
	if not topics:
		return _failure("<root>", "topic list is empty")
	return _success(topics)


def decode_text(text: Optional[str], decoder) -> DecodeResult[Any]:
	"""Parse raw model text and run ``decoder`` over it, logging contract mismatches."""
	parsed = parse_json_block(text)
	result = decoder(parsed.value) if parsed.ok else parsed
	if not result.ok:
		logger.warning("Model output rejected at %s: %s", result.error.field, result.error.message)
	return result
