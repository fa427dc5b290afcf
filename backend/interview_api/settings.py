from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Groq exposes an OpenAI-compatible chat completions endpoint
	groq_api_key: str | None = Field(default=None, validation_alias="GROQ_API_KEY")
	groq_base_url: str = Field(default="https://api.groq.com/openai/v1/chat/completions", validation_alias="GROQ_BASE_URL")
	# Model used for greetings, questions and feedback
	groq_model: str = Field(default="openai/gpt-oss-20b", validation_alias="GROQ_MODEL")
	# Small, fast model for the one-word relevance verdict
	groq_relevance_model: str = Field(default="llama-3.1-8b-instant", validation_alias="GROQ_RELEVANCE_MODEL")

	# OpenRouter fallback configuration (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="x-ai/grok-4-fast:free", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="AI Mock Interview", validation_alias="OPENROUTER_TITLE")

	# Upper bound for a single LLM round trip; expiry is handled like any upstream failure
	llm_timeout_seconds: float = Field(default=20.0, validation_alias="LLM_TIMEOUT_SECONDS")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=7 * 24 * 60, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Interview limits
	max_total_questions: int = Field(default=20, validation_alias="MAX_TOTAL_QUESTIONS")
	# Only enable behind a reverse proxy that overwrites X-Forwarded-For
	trust_proxy_headers: bool = Field(default=False, validation_alias="TRUST_PROXY_HEADERS")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
