import re
from abc import ABC, abstractmethod
from typing import List

from .coach_service import GenerativeService
from .errors import ServiceError, ValidationError
from .schemas import CUSTOM_PART_OF_SPEECH, NO_DEFINITION, VocabularyItem

# Newlines, ASCII commas and fullwidth commas all separate manual entries.
_SEPARATORS = re.compile(r"[\n,，]+")


def parse_manual_words(text: str) -> List[str]:
	return [w.strip() for w in _SEPARATORS.split(text or "") if w.strip()]


def count_manual_words(text: str) -> int:
	return len(parse_manual_words(text))


# --- Strategy Pattern: vocabulary sources ---
class VocabularySource(ABC):
	"""Produces the target vocabulary list for a session."""

	@abstractmethod
	async def acquire(self, topic: str, level: str) -> List[VocabularyItem]:
		pass


class ManualVocabulary(VocabularySource):
	"""Words typed by the learner, one per line or comma separated."""

	def __init__(self, text: str):
		self.text = text

	def items(self) -> List[VocabularyItem]:
		words = parse_manual_words(self.text)
		if not words:
			raise ValidationError("Please enter at least one word")
		return [
			VocabularyItem(word=w, part_of_speech=CUSTOM_PART_OF_SPEECH, definition=NO_DEFINITION)
			for w in words
		]

	async def acquire(self, topic: str, level: str) -> List[VocabularyItem]:
		return self.items()


class GeneratedVocabulary(VocabularySource):
	"""Topic vocabulary suggested by the generative service."""

	def __init__(self, service: GenerativeService):
		self.service = service

	async def acquire(self, topic: str, level: str) -> List[VocabularyItem]:
		items = await self.service.generate_vocabulary(topic, level)
		if not items:
			raise ServiceError("Vocabulary generation returned no words")
		return list(items)
