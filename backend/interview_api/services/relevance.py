from __future__ import annotations
import asyncio
import logging
import re
from typing import Optional

import httpx

from ..errors import UpstreamUnavailable
from ..llm_client import LLMClient
from ..settings import settings

logger = logging.getLogger(__name__)

RELEVANT = "relevant"
IRRELEVANT = "irrelevant"

_SYSTEM = "Classify relevance. Output one word only: relevant / irrelevant / dont_know"


def _build_relevance_prompt(context: str, answer: str) -> str:
	return (
		"You are an AI relevance evaluator.\n"
		"Check if the user's answer addresses the question appropriately.\n"
		"Be lenient: consider answers relevant if they relate to the topic, describe processes, tools, "
		"experiences, or approaches, even if not perfectly worded.\n\n"
		"Return ONLY one word from:\n"
		"- relevant\n"
		"- irrelevant\n"
		"- dont_know\n\n"
		f"### Question:\n{context}\n\n"
		f"### Answer:\n{answer}\n\n"
		"Respond with ONE WORD ONLY. No explanations."
	)


def normalise_verdict(raw: Optional[str]) -> str:
	"""Map a raw model reply onto relevant/irrelevant, leaning towards relevant."""
	verdict = re.sub(r"[^a-z]", "", (raw or "").strip().lower())
	if verdict == IRRELEVANT:
		return IRRELEVANT
	if verdict not in (RELEVANT, "dontknow"):
		logger.warning("Unexpected relevance result %r, defaulting to relevant", raw)
	return RELEVANT


class RelevanceClassifier:
	def __init__(self, client: LLMClient, *, model: Optional[str] = None, timeout: Optional[float] = None) -> None:
		self.client = client
		self.model = model or settings.groq_relevance_model
		self.timeout = timeout or settings.llm_timeout_seconds

	async def classify(self, context: str, answer: str) -> str:
		try:
			raw = await asyncio.wait_for(
				self.client.generate(
					_build_relevance_prompt(context, answer),
					system=_SYSTEM,
					model=self.model,
					temperature=0.3,
					max_tokens=5,
				),
				timeout=self.timeout,
			)
		except asyncio.TimeoutError:
			logger.warning("Relevance check timed out, defaulting to relevant")
			return RELEVANT
		except (UpstreamUnavailable, httpx.HTTPError) as exc:
			logger.warning("Relevance check failed (%s), defaulting to relevant", exc)
			return RELEVANT
		return normalise_verdict(raw)
