from __future__ import annotations
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError as SchemaError

from ..errors import MalformedFeedbackError, UpstreamUnavailable
from ..llm_client import LLMClient
from ..settings import settings

logger = logging.getLogger(__name__)


FALLBACK_SUMMARY = "We could not generate detailed feedback for this interview. Your answers have been saved."
FALLBACK_RATING = 5


class Feedback(BaseModel):
	model_config = ConfigDict(populate_by_name=True, extra="ignore")

	rating: float = Field(ge=0, le=10)
	plus_points: List[str] = Field(alias="plusPoints")
	improvements: List[str]
	summary: str

	def to_json(self) -> Dict[str, Any]:
		return self.model_dump(by_alias=True)


def _build_feedback_prompt(role: str, transcript: str) -> str:
	return (
		"You are an experienced interviewer writing final feedback for a mock interview.\n"
		f"Role: {role}\n"
		"Candidate's answers, in order:\n"
		f"{transcript}\n\n"
		"Score the candidate from 0 to 10. Answers such as \"I don't know\" should lower the score.\n"
		"Return ONLY a JSON object with exactly these keys:\n"
		"{\n"
		'  "rating": number (0-10),\n'
		'  "plusPoints": [string, ...],\n'
		'  "improvements": [string, ...],\n'
		'  "summary": string (4-5 lines)\n'
		"}\n"
		"No markdown, no commentary."
	)


def _extract_json_object(text: str) -> Dict[str, Any]:
	try:
		data = json.loads(text)
		if isinstance(data, dict):
			return data
	except ValueError:
		pass
	code_block = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
	if code_block:
		try:
			data = json.loads(code_block.group(1))
			if isinstance(data, dict):
				return data
		except ValueError:
			pass
	first = text.find("{")
	last = text.rfind("}")
	if first != -1 and last != -1 and last > first:
		try:
			data = json.loads(text[first : last + 1])
			if isinstance(data, dict):
				return data
		except ValueError:
			pass
	raise MalformedFeedbackError("Feedback response is not a JSON object")


def parse_feedback(raw: str) -> Feedback:
	"""Parse the generator output against the fixed feedback schema.

	Raises MalformedFeedbackError when the text holds no JSON object or the
	object does not match ``{rating, plusPoints, improvements, summary}``.
	"""
	if not raw or not raw.strip():
		raise MalformedFeedbackError("Feedback response was empty")
	data = _extract_json_object(raw)
	try:
		return Feedback.model_validate(data)
	except SchemaError as exc:
		raise MalformedFeedbackError(f"Feedback response failed validation: {exc.error_count()} error(s)") from exc


def fallback_feedback(raw: Optional[str]) -> Feedback:
	summary = (raw or "").strip() or FALLBACK_SUMMARY
	return Feedback(rating=FALLBACK_RATING, plus_points=[], improvements=[], summary=summary)


class FeedbackGenerator:
	def __init__(self, client: LLMClient, *, timeout: Optional[float] = None) -> None:
		self.client = client
		self.timeout = timeout or settings.llm_timeout_seconds

	async def generate(self, role: str, transcript: str) -> str:
		"""Return the raw JSON text, or an empty string if the call failed."""
		prompt = _build_feedback_prompt(role, transcript)
		try:
			return await asyncio.wait_for(
				self.client.generate(prompt, temperature=0.3, json_mode=True),
				timeout=self.timeout,
			)
		except asyncio.TimeoutError:
			logger.warning("Feedback generation timed out after %ss", self.timeout)
		except (UpstreamUnavailable, httpx.HTTPError) as exc:
			logger.warning("Feedback generation failed: %s", exc)
		return ""
