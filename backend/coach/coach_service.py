from __future__ import annotations
import json
import logging
from typing import Callable, List, Optional, Protocol, Sequence

import httpx

from .assessment import decode_assessment, decode_text, decode_topics, decode_vocabulary
from .errors import ServiceError
from .gemini_client import GeminiClient
from .schemas import AssessmentResult, EvaluationRequest, VocabularyItem

logger = logging.getLogger(__name__)


FALLBACK_TOPICS: List[str] = [
	"The Impact of AI on Creativity",
	"Urbanization and Mental Health",
	"The Ethics of Genetic Engineering",
	"Minimalism in Modern Art",
	"Globalization vs. Local Identity",
]

COACH_SYSTEM_INSTRUCTION = (
	"You are an elite English Writing Coach. Your mission is to help students achieve native-like fluency "
	"by focusing on 3 pillars: Syntax Logic (Hypotaxis vs Parataxis), Lexical Precision (Collocations/Nuance), "
	"and Fossilized Grammar Errors (Articles/Prepositions). Provide sharp, specific, and constructive feedback."
)


class GenerativeService(Protocol):
	async def suggest_topics(self, seed_interest: str) -> List[str]: ...

	async def generate_vocabulary(self, topic: str, level: str) -> List[VocabularyItem]: ...

	async def evaluate_writing(self, topic: str, target_words: Sequence[str], submission: str) -> AssessmentResult: ...


def _build_topics_prompt(seed_interest: str) -> str:
	interest = seed_interest.strip() or "General"
	return (
		f"Based on the user's general interest: \"{interest}\", suggest 5 specific, thought-provoking topics "
		"suitable for an advanced English essay. The topics should be sophisticated "
		"(e.g., Philosophy, Tech Ethics, Art History).\n\n"
		"Return ONLY a JSON array of 5 strings."
	)


def _build_vocabulary_prompt(topic: str, level: str) -> str:
	return (
		f"Topic: {topic}. Target Level: {level}.\n"
		"Generate 12-15 high-quality, precise English content words (Nouns, Verbs, Adjectives, Adverbs only) "
		"that would be useful for writing a sophisticated paragraph about this topic.\n"
		f"Avoid generic words. Focus on {level} level vocabulary.\n"
		"Provide a short definition in Simplified Chinese.\n\n"
		"Return ONLY a JSON array of objects with keys: word (string), pos (part of speech: n., v., adj., adv.), "
		"definition (string)."
	)


def _build_evaluation_prompt(request: EvaluationRequest) -> str:
	return f"""
Topic: "{request.topic}"
Target Vocabulary to use: {json.dumps(request.target_vocabulary, ensure_ascii=False)}
User Submission: "{request.submission}"

Evaluate this writing sample strictly based on these three advanced learning objectives.
Your feedback must be specific to the User Submission. Quote the user's actual sentences when giving critiques.

1. Syntax: identify sentences that suffer from Parataxis (loose connections, comma splices) or lack logical
   hierarchy, and show how to rewrite THESE sentences using Hypotaxis (subordination, participial phrases).
2. Lexical precision:
   - Task A: check whether each Target Vocabulary word was used correctly in context.
   - Task B: find imprecise, vague or awkward collocations; give the exact original phrase, a better
     C1/C2 alternative and the reason.
3. Fossilized errors: list article and preposition errors with the correction and a brief reason.

Output Language: Simplified Chinese (English for linguistic terms like Hypotaxis/Parataxis).
Tone: professional, rigorous, yet encouraging.

Return ONLY a JSON object with exactly this shape:
{{
  "overallScore": number (0-100),
  "generalAdvice": string,
  "syntax": {{"score": number, "comment": string, "examples": [string]}},
  "lexicon": {{
    "score": number,
    "comment": string,
    "vocabUsageCheck": [{{"word": string, "usedCorrectly": boolean, "comment": string (optional)}}],
    "collocationCorrections": [{{"original": string, "betterAlternative": string, "reason": string}}]
  }},
  "grammar": {{
    "score": number,
    "comment": string,
    "corrections": [{{"original": string, "correction": string, "reason": string}}]
  }}
}}
""".strip()


class CoachService:
	"""The three generative operations, each a single Gemini round trip."""

	def __init__(self, client_factory: Optional[Callable[[], GeminiClient]] = None) -> None:
		self._client_factory = client_factory or GeminiClient

	async def _ask(self, prompt: str, *, system_instruction: Optional[str] = None) -> str:
		try:
			client = self._client_factory()
		except ValueError as e:
			raise ServiceError(str(e)) from e
		try:
			return await client.generate(prompt, system_instruction=system_instruction, json_output=True)
		except (httpx.HTTPError, RuntimeError) as e:
			raise ServiceError(f"Gemini call failed: {e}") from e
		finally:
			await client.aclose()

	async def suggest_topics(self, seed_interest: str) -> List[str]:
		raw = await self._ask(_build_topics_prompt(seed_interest))
		return decode_text(raw, decode_topics).unwrap()[:5]

	async def generate_vocabulary(self, topic: str, level: str) -> List[VocabularyItem]:
		raw = await self._ask(_build_vocabulary_prompt(topic, level))
		items = decode_text(raw, decode_vocabulary).unwrap()
		logger.info("Generated %d vocabulary items for %r (%s)", len(items), topic, level)
		return items

	async def evaluate_writing(self, topic: str, target_words: Sequence[str], submission: str) -> AssessmentResult:
		request = EvaluationRequest(topic=topic, target_vocabulary=list(target_words), submission=submission)
		raw = await self._ask(_build_evaluation_prompt(request), system_instruction=COACH_SYSTEM_INSTRUCTION)
		return decode_text(raw, decode_assessment).unwrap()
