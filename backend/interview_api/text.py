"""Pure text helpers used by the orchestrator.

Question numbering is owned here: generators may echo prefixes such as
``"Q3:"`` or ``"Question 3 -"`` and those are always stripped before the
canonical ``"Q<n>: "`` prefix is applied.
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import Any, Dict, Iterable, List

REPEAT_PHRASES: List[str] = [
	"repeat",
	"say again",
	"say that again",
	"come again",
	"didn't understand",
	"didnt understand",
	"did not understand",
	"didn't get",
	"didnt get",
	"did not get",
	"didn't catch",
	"didnt catch",
	"did not catch",
]

DONT_KNOW_PHRASES: List[str] = [
	"don't know",
	"dont know",
	"do not know",
	"no idea",
	"not sure",
]

_REPEAT_RE = re.compile(r"\b(?:" + "|".join(re.escape(p) for p in REPEAT_PHRASES) + r")\b")
# "Pardon?" only counts when it is the whole answer
_PARDON_RE = re.compile(r"^\W*(?:pardon(?: me)?|i beg your pardon)\W*$")
_DONT_KNOW_RE = re.compile(r"\b(?:" + "|".join(re.escape(p) for p in DONT_KNOW_PHRASES) + r")\b")

# "Q3:", "Q3.", "Question 3 of 5:", "Q3/5 -", "3)", "**Q3:**" ...
_NUMBER_PREFIX_RE = re.compile(
	r"^\s*(?:[*_#>]+\s*)?(?:q(?:uestion)?\s*#?\s*\d+(?:\s*(?:of|/)\s*\d+)?\s*[:.)\-–—]*|\d+\s*[:.)\-–—]+(?=\s))\s*(?:[*_]+\s*)?",
	re.IGNORECASE,
)

DUPLICATE_RATIO = 0.9


def _fold(text: str) -> str:
	# Typographic apostrophes are common in chat clients
	return (text or "").casefold().replace("’", "'")


def is_repeat_request(answer: str) -> bool:
	folded = _fold(answer)
	return bool(_REPEAT_RE.search(folded) or _PARDON_RE.match(folded))


def is_dont_know(answer: str) -> bool:
	return bool(_DONT_KNOW_RE.search(_fold(answer)))


def looks_like_answer(answer: str) -> bool:
	"""Cheap relevance heuristic for the opening question."""
	text = answer or ""
	return len(text.split()) >= 2 and any(ch.isalpha() for ch in text)


def strip_question_number(text: str) -> str:
	cleaned = (text or "").strip().strip('"').strip()
	previous = None
	# Models occasionally stack prefixes ("Q2: Question 2: ...")
	while previous != cleaned:
		previous = cleaned
		cleaned = _NUMBER_PREFIX_RE.sub("", cleaned, count=1).strip()
	return cleaned


def number_question(ordinal: int, text: str, fallback: str) -> str:
	body = strip_question_number(text)
	if not body:
		body = strip_question_number(fallback)
	return f"Q{ordinal}: {body}"


def _normalise(text: str) -> str:
	return re.sub(r"[^a-z0-9 ]", "", " ".join(_fold(strip_question_number(text)).split()))


def is_duplicate(candidate: str, previous: Iterable[str], *, ratio: float = DUPLICATE_RATIO) -> bool:
	target = _normalise(candidate)
	if not target:
		return False
	for prior in previous:
		other = _normalise(prior)
		if not other:
			continue
		if target == other or SequenceMatcher(None, target, other).ratio() >= ratio:
			return True
	return False


def build_transcript(answers: Iterable[Dict[str, Any]]) -> str:
	return "\n".join(f"Q{a['questionNumber']}: {a['answer']}" for a in answers)
