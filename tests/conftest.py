import asyncio
import json
import os

# Keep the suite hermetic: no real LLM keys, no on-disk database
os.environ["DATABASE_URL"] = "sqlite://"
for _key in ("GROQ_API_KEY", "OPENROUTER_API_KEY"):
	os.environ.pop(_key, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from interview_api.db import Base, get_db
from interview_api.main import app
from interview_api.orchestrator import SessionLocks, SessionOrchestrator
from interview_api.repository import SessionRepository
from interview_api.services import AIServices, get_ai_services
from interview_api.services.relevance import RELEVANT


QUESTION_BANK = {
	1: "Welcome! Please introduce yourself and your testing background.",
	2: "Which test automation frameworks have you used most?",
	3: "How do you decide which features deserve end-to-end coverage?",
	4: "Describe how you would report a critical bug found just before release.",
	5: "What signals tell you a release is ready to ship?",
}

GOOD_FEEDBACK = {
	"rating": 7,
	"plusPoints": ["Clear communication"],
	"improvements": ["Give more concrete examples"],
	"summary": "Solid interview overall.",
}


class FakeClassifier:
	def __init__(self, verdict=RELEVANT):
		self.verdict = verdict
		self.calls = []

	async def classify(self, context, answer):
		self.calls.append((context, answer))
		await asyncio.sleep(0)
		return self.verdict


class FakeQuestionGenerator:
	"""Echoes a numbered question from QUESTION_BANK unless replies are queued."""

	def __init__(self, replies=None, delay=0.0):
		self.replies = list(replies or [])
		self.delay = delay
		self.calls = []

	async def generate(self, role, ordinal, total_questions, previous=None):
		self.calls.append({"role": role, "ordinal": ordinal, "total": total_questions, "previous": list(previous or [])})
		await asyncio.sleep(self.delay)
		if self.replies:
			return self.replies.pop(0)
		# Generators often number questions themselves; the orchestrator must not trust it
		return f"Q{ordinal + 10}: {QUESTION_BANK.get(ordinal, f'Tell me about project number {ordinal}.')}"


class StubClient:
	"""Stands in for LLMClient in adapter tests."""

	def __init__(self, reply=None, error=None, delay=0.0):
		self.reply = reply
		self.error = error
		self.delay = delay
		self.kwargs = None

	async def generate(self, prompt, **kwargs):
		self.kwargs = kwargs
		await asyncio.sleep(self.delay)
		if self.error:
			raise self.error
		return self.reply


class FakeFeedbackGenerator:
	def __init__(self, raw=None):
		self.raw = json.dumps(GOOD_FEEDBACK) if raw is None else raw
		self.calls = []

	async def generate(self, role, transcript):
		self.calls.append((role, transcript))
		return self.raw


@pytest.fixture()
def engine():
	eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool, future=True)
	Base.metadata.create_all(bind=eng)
	yield eng
	eng.dispose()


@pytest.fixture()
def session_factory(engine):
	return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


@pytest.fixture()
def db(session_factory):
	session = session_factory()
	try:
		yield session
	finally:
		session.close()


@pytest.fixture()
def fakes():
	return AIServices(
		classifier=FakeClassifier(),
		questions=FakeQuestionGenerator(),
		feedback=FakeFeedbackGenerator(),
	)


@pytest.fixture()
def orchestrator(db, fakes):
	return SessionOrchestrator(
		SessionRepository(db),
		fakes.classifier,
		fakes.questions,
		fakes.feedback,
		locks=SessionLocks(),
	)


@pytest.fixture()
def client(session_factory, fakes):
	def _get_db():
		session = session_factory()
		try:
			yield session
		finally:
			session.close()

	app.dependency_overrides[get_db] = _get_db
	app.dependency_overrides[get_ai_services] = lambda: fakes
	try:
		yield TestClient(app)
	finally:
		app.dependency_overrides.clear()


def run(coro):
	return asyncio.run(coro)
