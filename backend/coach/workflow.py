"""
Stage machine for one writing exercise.

A session moves Topic -> PrepMode -> (ManualInput ->) VocabReview -> Writing
-> Feedback. Each stage is a frozen dataclass holding only what is valid in
that stage; the workflow swaps whole stage values, so a failed action never
leaves partial updates behind.

Network-backed actions (topic suggestions, vocabulary generation, evaluation)
take a request token for their operation kind. A second call of the same kind
while a token is outstanding is ignored. Leaving the owning stage or resetting
the session revokes the token, and a result that comes back with a revoked
token is dropped instead of being applied to whatever the session looks like
by then.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type, Union

from .coach_service import FALLBACK_TOPICS, GenerativeService
from .errors import CoachError, ServiceError, StageError, ValidationError
from .matcher import usage_map
from .schemas import LEVELS, AssessmentResult, VocabularyItem
from .settings import settings
from .vocab import GeneratedVocabulary, ManualVocabulary

logger = logging.getLogger(__name__)

Vocabulary = Tuple[VocabularyItem, ...]


class Operation(str, Enum):
	TOPICS = "topics"
	VOCABULARY = "vocabulary"
	EVALUATION = "evaluation"


@dataclass(frozen=True)
class TopicStage:
	name: ClassVar[str] = "TOPIC"
	draft: str = ""
	suggestions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PrepModeStage:
	name: ClassVar[str] = "PREP_MODE"
	topic: str
	vocabulary: Vocabulary = ()
	submission: str = ""


@dataclass(frozen=True)
class ManualInputStage:
	name: ClassVar[str] = "MANUAL_INPUT"
	topic: str
	text: str = ""
	vocabulary: Vocabulary = ()
	submission: str = ""


@dataclass(frozen=True)
class VocabReviewStage:
	name: ClassVar[str] = "VOCAB_REVIEW"
	topic: str
	vocabulary: Vocabulary
	submission: str = ""


@dataclass(frozen=True)
class WritingStage:
	name: ClassVar[str] = "WRITING"
	topic: str
	vocabulary: Vocabulary
	submission: str = ""


@dataclass(frozen=True)
class FeedbackStage:
	name: ClassVar[str] = "FEEDBACK"
	topic: str
	vocabulary: Vocabulary
	submission: str
	result: AssessmentResult


Stage = Union[TopicStage, PrepModeStage, ManualInputStage, VocabReviewStage, WritingStage, FeedbackStage]

# Stage an operation belongs to; leaving it revokes the operation's token.
_OWNER: Dict[Operation, Type[Any]] = {
	Operation.TOPICS: TopicStage,
	Operation.VOCABULARY: PrepModeStage,
	Operation.EVALUATION: WritingStage,
}


class SessionWorkflow:
	def __init__(self, service: GenerativeService, *, level: Optional[str] = None, topic: str = "") -> None:
		self.service = service
		self.level = level or settings.default_level
		if self.level not in LEVELS:
			raise ValueError(f"unknown level {self.level!r}")
		self.error: Optional[str] = None
		self.generation = 0
		self._stage: Stage = TopicStage(draft=topic)
		self._tokens: Dict[Operation, object] = {}

	# --- state -------------------------------------------------------------

	@property
	def stage(self) -> Stage:
		return self._stage

	@property
	def topic(self) -> Optional[str]:
		return getattr(self._stage, "topic", None)

	@property
	def vocabulary(self) -> Vocabulary:
		return getattr(self._stage, "vocabulary", ())

	@property
	def submission(self) -> str:
		return getattr(self._stage, "submission", "")

	@property
	def result(self) -> Optional[AssessmentResult]:
		return getattr(self._stage, "result", None)

	def is_busy(self, op: Operation) -> bool:
		return op in self._tokens

	def vocabulary_usage(self) -> Dict[str, bool]:
		return usage_map((item.word for item in self.vocabulary), self.submission)

	def _require(self, *kinds: Type[Any]) -> Any:
		if not isinstance(self._stage, kinds):
			allowed = ", ".join(k.name for k in kinds)
			raise StageError(f"action requires stage {allowed}, current stage is {self._stage.name}")
		return self._stage

	def _move(self, stage: Stage) -> None:
		if type(stage) is not type(self._stage):
			logger.debug("Session stage %s -> %s", self._stage.name, stage.name)
		self._stage = stage
		for op, owner in _OWNER.items():
			if op in self._tokens and not isinstance(stage, owner):
				logger.info("Revoking in-flight %s request", op.value)
				del self._tokens[op]

	def _fail(self, err: CoachError) -> None:
		if isinstance(err, ServiceError):
			logger.warning("Session action failed: %s", err)
		self.error = str(err)

	def dismiss_error(self) -> None:
		self.error = None

	# --- request tokens ----------------------------------------------------

	def _begin(self, op: Operation) -> Optional[object]:
		if op in self._tokens:
			logger.info("Ignoring %s request while one is in flight", op.value)
			return None
		token = object()
		self._tokens[op] = token
		return token

	def _owns(self, op: Operation, token: object) -> bool:
		return self._tokens.get(op) is token

	def _release(self, op: Operation, token: object) -> None:
		if self._owns(op, token):
			del self._tokens[op]

	# --- Topic ---------------------------------------------------------------

	def update_draft_topic(self, text: str) -> None:
		stage: TopicStage = self._require(TopicStage)
		self._move(replace(stage, draft=text))

	async def suggest_topics(self, seed_interest: Optional[str] = None) -> List[str]:
		"""Fetch topic ideas; any failure falls back to the built-in list."""
		stage: TopicStage = self._require(TopicStage)
		token = self._begin(Operation.TOPICS)
		if token is None:
			return list(stage.suggestions)
		seed = stage.draft if seed_interest is None else seed_interest
		try:
			try:
				topics = await self.service.suggest_topics(seed)
			except CoachError as e:
				logger.warning("Topic suggestions unavailable, using fallback list: %s", e)
				topics = list(FALLBACK_TOPICS)
			if not self._owns(Operation.TOPICS, token):
				return topics
			current: TopicStage = self._stage  # type: ignore[assignment]
			self._move(replace(current, suggestions=tuple(topics)))
			return topics
		finally:
			self._release(Operation.TOPICS, token)

	def confirm_topic(self, topic: Optional[str] = None) -> bool:
		stage: TopicStage = self._require(TopicStage)
		chosen = (stage.draft if topic is None else topic).strip()
		if not chosen:
			self._fail(ValidationError("Please enter a topic"))
			return False
		logger.info("Topic confirmed: %r", chosen)
		self.error = None
		self._move(PrepModeStage(topic=chosen))
		return True

	# --- Vocabulary ----------------------------------------------------------

	def set_level(self, level: str) -> None:
		if level not in LEVELS:
			raise ValueError(f"unknown level {level!r}")
		self.level = level

	async def choose_ai_vocabulary(self) -> bool:
		stage: PrepModeStage = self._require(PrepModeStage)
		token = self._begin(Operation.VOCABULARY)
		if token is None:
			return False
		self.error = None
		try:
			items = await GeneratedVocabulary(self.service).acquire(stage.topic, self.level)
		except CoachError as e:
			if self._owns(Operation.VOCABULARY, token):
				self._fail(e)
			return False
		else:
			if not self._owns(Operation.VOCABULARY, token):
				logger.info("Discarding vocabulary for a session that moved on")
				return False
			current: PrepModeStage = self._stage  # type: ignore[assignment]
			self._move(VocabReviewStage(topic=current.topic, vocabulary=tuple(items), submission=current.submission))
			return True
		finally:
			self._release(Operation.VOCABULARY, token)

	def choose_manual_vocabulary(self) -> None:
		stage: PrepModeStage = self._require(PrepModeStage)
		text = ""
		if stage.vocabulary and all(item.is_custom for item in stage.vocabulary):
			text = "\n".join(item.word for item in stage.vocabulary)
		self._move(ManualInputStage(topic=stage.topic, text=text, vocabulary=stage.vocabulary, submission=stage.submission))

	def update_manual_text(self, text: str) -> None:
		stage: ManualInputStage = self._require(ManualInputStage)
		self._move(replace(stage, text=text))

	async def submit_manual_vocabulary(self, text: Optional[str] = None) -> bool:
		stage: ManualInputStage = self._require(ManualInputStage)
		if text is not None:
			stage = replace(stage, text=text)
			self._move(stage)
		try:
			items = await ManualVocabulary(stage.text).acquire(stage.topic, self.level)
		except ValidationError as e:
			self._fail(e)
			return False
		self.error = None
		self._move(VocabReviewStage(topic=stage.topic, vocabulary=tuple(items), submission=stage.submission))
		return True

	# --- Writing -------------------------------------------------------------

	def start_writing(self) -> None:
		stage: VocabReviewStage = self._require(VocabReviewStage)
		if not stage.vocabulary:
			raise StageError("cannot start writing without vocabulary")
		self._move(WritingStage(topic=stage.topic, vocabulary=stage.vocabulary, submission=stage.submission))

	def update_submission(self, text: str) -> None:
		stage: WritingStage = self._require(WritingStage)
		self._move(replace(stage, submission=text))

	async def submit_writing(self) -> bool:
		stage: WritingStage = self._require(WritingStage)
		if not stage.submission.strip():
			self._fail(ValidationError("Please write something before submitting"))
			return False
		token = self._begin(Operation.EVALUATION)
		if token is None:
			return False
		self.error = None
		words = [item.word for item in stage.vocabulary]
		try:
			result = await self.service.evaluate_writing(stage.topic, words, stage.submission)
		except CoachError as e:
			if self._owns(Operation.EVALUATION, token):
				self._fail(e)
			return False
		else:
			if not self._owns(Operation.EVALUATION, token):
				logger.info("Discarding assessment for a session that moved on")
				return False
			self._move(FeedbackStage(
				topic=stage.topic,
				vocabulary=stage.vocabulary,
				submission=stage.submission,
				result=result,
			))
			logger.info("Submission assessed, overall score %s", result.overall_score)
			return True
		finally:
			self._release(Operation.EVALUATION, token)

	# --- Navigation ----------------------------------------------------------

	def go_back(self) -> None:
		stage = self._stage
		if isinstance(stage, PrepModeStage):
			self.reset()
		elif isinstance(stage, (ManualInputStage, VocabReviewStage)):
			self._move(PrepModeStage(topic=stage.topic, vocabulary=stage.vocabulary, submission=stage.submission))
		elif isinstance(stage, WritingStage):
			self._move(VocabReviewStage(topic=stage.topic, vocabulary=stage.vocabulary, submission=stage.submission))
		elif isinstance(stage, (TopicStage, FeedbackStage)):
			raise StageError(f"cannot go back from {stage.name}; reset the session instead")
		else:
			raise StageError(f"unknown stage {stage!r}")

	def reset(self) -> None:
		topic = self.topic if self.topic is not None else getattr(self._stage, "draft", "")
		self.generation += 1
		self._tokens.clear()
		self.error = None
		self._move(TopicStage(draft=topic))

	# --- Presentation --------------------------------------------------------

	def snapshot(self) -> Dict[str, Any]:
		stage = self._stage
		result = self.result
		return {
			"stage": stage.name,
			"generation": self.generation,
			"level": self.level,
			"topic": self.topic,
			"draft_topic": getattr(stage, "draft", None),
			"suggested_topics": list(getattr(stage, "suggestions", ())),
			"manual_text": getattr(stage, "text", None),
			"vocabulary": [item.model_dump() for item in self.vocabulary],
			"submission": self.submission,
			"vocabulary_usage": self.vocabulary_usage(),
			"result": result.model_dump(by_alias=True) if result is not None else None,
			"error": self.error,
			"busy": sorted(op.value for op in self._tokens),
		}
