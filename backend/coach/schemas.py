"""
Data models shared by the workflow, the generative service and the routers.

Field aliases follow the camelCase keys used on the wire; Python code uses the
snake_case attribute names.
"""
from __future__ import annotations
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictBool, field_validator


Level = Literal["B2", "C1", "C2"]
LEVELS: List[str] = ["B2", "C1", "C2"]

CUSTOM_PART_OF_SPEECH = "Custom"
NO_DEFINITION = "User defined vocabulary"


def _number_only(v: Any) -> Any:
	# bool is an int subclass and numeric strings coerce in lax mode; neither is a score
	if isinstance(v, bool) or not isinstance(v, (int, float)):
		raise ValueError("score must be a number")
	return v


Score = Annotated[float, BeforeValidator(_number_only)]


class _WireModel(BaseModel):
	model_config = ConfigDict(frozen=True, populate_by_name=True)


class VocabularyItem(_WireModel):
	word: str = Field(min_length=1)
	part_of_speech: str = Field(default="", alias="pos")
	definition: str = ""

	@field_validator("word")
	@classmethod
	def _strip_word(cls, v: str) -> str:
		v = v.strip()
		if not v:
			raise ValueError("word must not be blank")
		return v

	@property
	def is_custom(self) -> bool:
		return self.part_of_speech == CUSTOM_PART_OF_SPEECH


class EvaluationRequest(_WireModel):
	topic: str
	target_vocabulary: List[str] = Field(alias="targetVocabulary")
	submission: str


class SyntaxFeedback(_WireModel):
	score: Score
	comment: str
	examples: List[str]


class VocabUsage(_WireModel):
	word: str
	used_correctly: StrictBool = Field(alias="usedCorrectly")
	comment: Optional[str] = None


class CollocationCorrection(_WireModel):
	original: str
	better_alternative: str = Field(alias="betterAlternative")
	reason: str


class LexiconFeedback(_WireModel):
	score: Score
	comment: str
	vocab_usage_check: List[VocabUsage] = Field(alias="vocabUsageCheck")
	collocation_corrections: List[CollocationCorrection] = Field(default_factory=list, alias="collocationCorrections")

	@field_validator("collocation_corrections", mode="before")
	@classmethod
	def _null_as_empty(cls, v):
		return [] if v is None else v


class GrammarCorrection(_WireModel):
	original: str
	correction: str
	reason: str


class GrammarFeedback(_WireModel):
	score: Score
	comment: str
	corrections: List[GrammarCorrection]


class AssessmentResult(_WireModel):
	overall_score: Score = Field(alias="overallScore")
	general_advice: str = Field(alias="generalAdvice")
	syntax: SyntaxFeedback
	lexicon: LexiconFeedback
	grammar: GrammarFeedback
