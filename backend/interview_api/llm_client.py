from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, List, Optional
from .errors import UpstreamUnavailable
from .settings import settings

logger = logging.getLogger(__name__)


class LLMClient:
	"""Async client for an OpenAI-compatible chat completions endpoint (Groq by default)."""

	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		timeout: Optional[float] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.groq_api_key
		self.model = model or settings.groq_model
		self.base_url = base_url or settings.groq_base_url
		self.timeout = timeout or settings.llm_timeout_seconds
		self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)
		self._fallback_client: Optional[httpx.AsyncClient] = None
		self._fallback_enabled = bool(settings.openrouter_api_key)
		self._openrouter_api_key = settings.openrouter_api_key
		self._openrouter_model = settings.openrouter_model
		self._openrouter_base_url = settings.openrouter_base_url
		self._openrouter_headers = {
			"Authorization": f"Bearer {self._openrouter_api_key}" if self._openrouter_api_key else "",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		if self._fallback_enabled:
			self._fallback_client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

	@property
	def configured(self) -> bool:
		return bool(self.api_key) or self._fallback_enabled

	async def generate(
		self,
		prompt: str,
		*,
		system: Optional[str] = None,
		model: Optional[str] = None,
		temperature: Optional[float] = None,
		max_tokens: Optional[int] = None,
		json_mode: bool = False,
	) -> str:
		messages: List[Dict[str, str]] = []
		if system:
			messages.append({"role": "system", "content": system})
		messages.append({"role": "user", "content": prompt})
		payload: Dict[str, Any] = {"model": model or self.model, "messages": messages}
		if temperature is not None:
			payload["temperature"] = temperature
		if max_tokens is not None:
			payload["max_tokens"] = max_tokens
		if json_mode:
			payload["response_format"] = {"type": "json_object"}
		return await self._post_payload(payload, fallback_messages=messages)

	async def _post_payload(self, payload: Dict[str, Any], *, fallback_messages: List[Dict[str, str]]) -> str:
		last_error: Optional[Exception] = None
		if not self.api_key:
			last_error = UpstreamUnavailable("GROQ_API_KEY is not configured")
		else:
			headers = {"Authorization": f"Bearer {self.api_key}"}
			try:
				r = await self._client.post(self.base_url, headers=headers, json=payload)
				r.raise_for_status()
			except httpx.HTTPStatusError as http_err:
				if "response_format" in payload and http_err.response.status_code == 400:
					# Some models reject JSON mode; retry once as plain text
					fallback_payload = dict(payload)
					fallback_payload.pop("response_format", None)
					try:
						r = await self._client.post(self.base_url, headers=headers, json=fallback_payload)
						r.raise_for_status()
					except httpx.HTTPError as err:
						last_error = err
				else:
					last_error = http_err
			except httpx.RequestError as net_err:
				last_error = net_err
			if last_error is None:
				try:
					data = r.json()
					return data["choices"][0]["message"]["content"] or ""
				except (ValueError, KeyError, IndexError, TypeError):
					last_error = UpstreamUnavailable(f"Unexpected LLM response: {r.text[:200]}")
		if not self._fallback_enabled:
			raise self._as_upstream(last_error)
		logger.warning("Primary LLM call failed (%s); trying OpenRouter", last_error)
		return await self._fallback_generate(fallback_messages, last_error)

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()

	async def _fallback_generate(self, messages: List[Dict[str, str]], primary_error: Optional[Exception]) -> str:
		if not self._fallback_client or not self._openrouter_api_key:
			raise self._as_upstream(primary_error)
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		payload: Dict[str, Any] = {
			"model": self._openrouter_model,
			"messages": messages,
		}
		try:
			r = await self._fallback_client.post(
				self._openrouter_base_url,
				headers=headers,
				json=payload,
			)
			r.raise_for_status()
			data = r.json()
			return data["choices"][0]["message"]["content"] or ""
		except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as fallback_err:
			raise UpstreamUnavailable(
				f"Primary LLM call failed ({primary_error}); fallback via OpenRouter also failed"
			) from fallback_err

	@staticmethod
	def _as_upstream(error: Optional[Exception]) -> UpstreamUnavailable:
		if isinstance(error, UpstreamUnavailable):
			return error
		return UpstreamUnavailable(f"LLM call failed: {error}" if error else "LLM call failed")
