"""LLM-backed collaborators of the interview orchestrator."""

from __future__ import annotations
from dataclasses import dataclass
from typing import AsyncIterator

from ..llm_client import LLMClient
from .feedback import FeedbackGenerator
from .questions import QuestionGenerator
from .relevance import RelevanceClassifier


@dataclass
class AIServices:
	classifier: RelevanceClassifier
	questions: QuestionGenerator
	feedback: FeedbackGenerator


async def get_ai_services() -> AsyncIterator[AIServices]:
	client = LLMClient()
	try:
		yield AIServices(
			classifier=RelevanceClassifier(client),
			questions=QuestionGenerator(client),
			feedback=FeedbackGenerator(client),
		)
	finally:
		await client.aclose()


__all__ = ["AIServices", "get_ai_services", "FeedbackGenerator", "QuestionGenerator", "RelevanceClassifier"]
