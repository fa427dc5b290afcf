from __future__ import annotations
import asyncio
import logging
from typing import List, Optional, Sequence

import httpx

from ..errors import UpstreamUnavailable
from ..llm_client import LLMClient
from ..settings import settings
from ..text import strip_question_number

logger = logging.getLogger(__name__)


def _build_greeting_prompt(role: str, total_questions: int) -> str:
	return (
		"You are a friendly, professional AI interviewer starting a mock interview.\n"
		f"Role: {role}. The interview has {total_questions} question(s).\n"
		"Greet the candidate in one short sentence, then ask the FIRST interview question.\n"
		"Ask only one question. Do not number the question and do not add a label such as 'Q1'.\n"
		"Output ONLY the greeting and the question."
	)


def _build_question_prompt(role: str, ordinal: int, total_questions: int, previous: Sequence[str]) -> str:
	asked = "\n".join(f"- {strip_question_number(q)}" for q in previous if q) or "- (none)"
	return (
		"You are an AI interviewer.\n"
		f"Ask Question {ordinal} of {total_questions} for the role {role}.\n"
		"Ask ONLY 1 question. Do not number it and do not greet the candidate again.\n"
		"It must be different from every question already asked:\n"
		f"{asked}\n"
		"Output ONLY the question text."
	)


class QuestionGenerator:
	def __init__(self, client: LLMClient, *, timeout: Optional[float] = None) -> None:
		self.client = client
		self.timeout = timeout or settings.llm_timeout_seconds

	async def generate(self, role: str, ordinal: int, total_questions: int, previous: Optional[List[str]] = None) -> str:
		"""Draft the question for ``ordinal``; empty string when the model is unavailable."""
		if ordinal <= 1:
			prompt = _build_greeting_prompt(role, total_questions)
		else:
			prompt = _build_question_prompt(role, ordinal, total_questions, previous or [])
		try:
			text = await asyncio.wait_for(self.client.generate(prompt, temperature=0.7), timeout=self.timeout)
		except asyncio.TimeoutError:
			logger.warning("Question %s generation timed out after %ss", ordinal, self.timeout)
			return ""
		except (UpstreamUnavailable, httpx.HTTPError) as exc:
			logger.warning("Question %s generation failed: %s", ordinal, exc)
			return ""
		return (text or "").strip()
