"""Live detection of target vocabulary in the learner's draft."""
from __future__ import annotations
import re
from typing import Dict, Iterable


def _pattern(word: str) -> re.Pattern[str]:
	# No word character in front, so ".NET" matches where \b would not.
	# Any alphanumeric tail, so "analyse" also counts "analysed".
	return re.compile(rf"(?<!\w){re.escape(word)}\w*", re.IGNORECASE)


def is_word_used(word: str, text: str) -> bool:
	word = word.strip()
	if not word:
		return False
	return _pattern(word).search(text) is not None


def usage_map(words: Iterable[str], text: str) -> Dict[str, bool]:
	return {w: is_word_used(w, text) for w in words}
