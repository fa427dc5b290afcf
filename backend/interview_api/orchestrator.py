"""
Interview session orchestrator
==============================

Owns the interview state machine:

- ``start``: create a session and pose the greeting / first question
- ``submit_answer``: gate the answer through the relevance check while the
  next question is drafted concurrently, then either record the answer and
  advance, or leave the session untouched
- ``resume``: read-only snapshot

Question numbering is always assigned here. ``questions_asked`` is both the
number of questions posed and the ordinal of the one awaiting an answer, so
``len(answers) == questions_asked - 1`` while the interview is in progress.

Writes for one session are serialised with an in-process lock and guarded
across processes by the row's version column (see ``SessionRepository.save``).
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from .errors import ConflictError, MalformedFeedbackError, NotFoundError, QuotaExceededError, ValidationError
from .models import InterviewSession, SessionStatus
from .repository import SessionRepository
from .services.feedback import FeedbackGenerator, fallback_feedback, parse_feedback
from .services.questions import QuestionGenerator
from .services.relevance import IRRELEVANT, RELEVANT, RelevanceClassifier
from .settings import settings
from .text import (
	build_transcript,
	is_dont_know,
	is_duplicate,
	is_repeat_request,
	looks_like_answer,
	number_question,
	strip_question_number,
)

logger = logging.getLogger(__name__)


FALLBACK_GREETING = (
	"Welcome to your mock interview! To get started, please introduce yourself "
	"and tell me a little about your background."
)
FALLBACK_QUESTIONS: List[str] = [
	"Can you describe a recent project you worked on and the part you played in it?",
	"Tell me about a difficult problem you solved at work and how you approached it.",
	"How do you keep your skills up to date in this field?",
	"Describe a time you disagreed with a teammate. How did you resolve it?",
	"What would you focus on during your first three months in this role?",
]
ASK_AGAIN_MESSAGE = "Your answer doesn't seem related to the question. Please try answering it again."
ALREADY_COMPLETED_MESSAGE = "Interview already completed"


class SessionLocks:
	"""Per-session asyncio locks, dropped once nobody holds or waits on them."""

	def __init__(self) -> None:
		self._locks: Dict[str, asyncio.Lock] = {}
		self._users: Dict[str, int] = {}

	@asynccontextmanager
	async def hold(self, session_id: str) -> AsyncIterator[None]:
		lock = self._locks.setdefault(session_id, asyncio.Lock())
		self._users[session_id] = self._users.get(session_id, 0) + 1
		try:
			async with lock:
				yield
		finally:
			self._users[session_id] -= 1
			if self._users[session_id] == 0:
				del self._users[session_id]
				self._locks.pop(session_id, None)

	def __len__(self) -> int:
		return len(self._locks)


session_locks = SessionLocks()


def snapshot(session: InterviewSession) -> Dict[str, Any]:
	return {
		"sessionId": session.id,
		"role": session.role,
		"userId": session.user_id,
		"isAnonymous": session.is_anonymous,
		"totalQuestions": session.total_questions,
		"questionsAsked": session.questions_asked,
		"answers": list(session.answers or []),
		"lastQuestion": session.last_question,
		"feedback": session.feedback,
		"status": session.status.value,
		"isCompleted": session.is_completed,
		"createdAt": session.created_at.isoformat() if session.created_at else None,
		"updatedAt": session.updated_at.isoformat() if session.updated_at else None,
	}


class SessionOrchestrator:
	def __init__(
		self,
		repo: SessionRepository,
		classifier: RelevanceClassifier,
		questions: QuestionGenerator,
		feedback: FeedbackGenerator,
		*,
		locks: Optional[SessionLocks] = None,
		max_total_questions: Optional[int] = None,
	) -> None:
		self.repo = repo
		self.classifier = classifier
		self.questions = questions
		self.feedback = feedback
		self.locks = locks if locks is not None else session_locks
		self.max_total_questions = max_total_questions or settings.max_total_questions

	# ------------------------------------------------------------------
	# start
	# ------------------------------------------------------------------

	async def start(
		self,
		role: Optional[str],
		total_questions: Optional[int],
		user_id: Optional[str] = None,
		ip: Optional[str] = None,
	) -> Dict[str, Any]:
		role = (role or "").strip()
		if not role:
			raise ValidationError("role is required")
		if total_questions is None:
			raise ValidationError("totalQuestions is required")
		if total_questions < 1 or total_questions > self.max_total_questions:
			raise ValidationError(f"totalQuestions must be between 1 and {self.max_total_questions}")

		anonymous = user_id is None
		if anonymous and not ip:
			# The quota is keyed on the address; without one it cannot be enforced
			raise ValidationError("Client address is required for anonymous interviews")
		if anonymous and self.repo.find_one(user_id=None, ip=ip) is not None:
			logger.info("Anonymous quota already used for %s", ip)
			raise QuotaExceededError()

		greeting = await self.questions.generate(role, 1, total_questions, [])
		if not greeting.strip():
			logger.warning("Empty greeting from generator, using fallback")
		question = number_question(1, greeting, FALLBACK_GREETING)

		try:
			session = self.repo.create(
				role=role,
				user_id=user_id,
				ip=ip,
				total_questions=total_questions,
				questions_asked=1,
				answers=[],
				last_question=question,
				status=SessionStatus.IN_PROGRESS,
			)
		except ConflictError:
			if anonymous:
				# Lost the race against a concurrent anonymous start from the same address
				raise QuotaExceededError()
			raise
		logger.info("Session %s started (role=%s, questions=%s, anonymous=%s)", session.id, role, total_questions, anonymous)
		return {"sessionId": session.id, "questionNumber": 1, "question": question}

	# ------------------------------------------------------------------
	# submit_answer
	# ------------------------------------------------------------------

	async def submit_answer(self, session_id: str, answer: Optional[str]) -> Dict[str, Any]:
		if not session_id:
			raise ValidationError("sessionId is required")
		if not answer or not answer.strip():
			raise ValidationError("answer is required")

		async with self.locks.hold(session_id):
			session = self.repo.find_by_id(session_id)
			if session is None:
				raise NotFoundError()
			if session.is_completed:
				return {"completed": True, "feedback": session.feedback, "message": ALREADY_COMPLETED_MESSAGE}

			n = session.questions_asked
			if is_repeat_request(answer):
				return {"repeat": True, "questionNumber": n, "question": session.last_question}

			relevance, draft = await asyncio.gather(
				self._check_relevance(session, n, answer),
				self._draft_next_question(session, n),
			)
			if relevance == IRRELEVANT:
				logger.info("Session %s: answer to Q%s rejected as irrelevant", session.id, n)
				return {"askAgain": True, "questionNumber": n, "message": ASK_AGAIN_MESSAGE}

			session.answers = [
				*(session.answers or []),
				{"questionNumber": n, "question": session.last_question, "answer": answer},
			]
			session.questions_asked = n + 1

			if session.questions_asked > session.total_questions:
				feedback = await self._final_feedback(session)
				session.feedback = feedback
				session.status = SessionStatus.COMPLETED
				self.repo.save(session)
				logger.info("Session %s completed (rating=%s)", session.id, feedback["rating"])
				return {"completed": True, "feedback": feedback}

			question = await self._accept_draft(session, n + 1, draft)
			session.last_question = question
			self.repo.save(session)
			logger.info("Session %s advanced to Q%s", session.id, n + 1)
			return {"questionNumber": n + 1, "question": question}

	async def _check_relevance(self, session: InterviewSession, n: int, answer: str) -> str:
		if is_dont_know(answer):
			return RELEVANT
		if n == 1:
			return RELEVANT if looks_like_answer(answer) else IRRELEVANT
		return await self.classifier.classify(f"Question Q{n} for role {session.role}", answer)

	async def _draft_next_question(self, session: InterviewSession, n: int) -> Optional[str]:
		if n >= session.total_questions:
			return None
		previous = [a["question"] for a in (session.answers or [])]
		previous.append(session.last_question)
		return await self.questions.generate(session.role, n + 1, session.total_questions, previous)

	async def _accept_draft(self, session: InterviewSession, ordinal: int, draft: Optional[str]) -> str:
		previous = [a["question"] for a in session.answers]
		text = strip_question_number(draft or "")
		if text and is_duplicate(text, previous):
			logger.warning("Session %s: drafted Q%s repeats an earlier question, regenerating", session.id, ordinal)
			text = strip_question_number(
				await self.questions.generate(session.role, ordinal, session.total_questions, previous)
			)
		if not text or is_duplicate(text, previous):
			logger.warning("Session %s: using fallback text for Q%s", session.id, ordinal)
			text = next((q for q in FALLBACK_QUESTIONS if not is_duplicate(q, previous)), FALLBACK_QUESTIONS[-1])
		return number_question(ordinal, text, FALLBACK_QUESTIONS[0])

	async def _final_feedback(self, session: InterviewSession) -> Dict[str, Any]:
		raw = await self.feedback.generate(session.role, build_transcript(session.answers))
		try:
			return parse_feedback(raw).to_json()
		except MalformedFeedbackError as exc:
			logger.warning("Session %s: %s; storing fallback feedback", session.id, exc.message)
			return fallback_feedback(raw).to_json()

	# ------------------------------------------------------------------
	# resume / session management
	# ------------------------------------------------------------------

	def resume(self, session_id: str) -> Dict[str, Any]:
		session = self.repo.find_by_id(session_id)
		if session is None:
			raise NotFoundError()
		return snapshot(session)

	def list_user_sessions(self, user_id: str) -> List[Dict[str, Any]]:
		return [snapshot(s) for s in self.repo.list_for_user(user_id)]

	def delete_session(self, session_id: str, user_id: str) -> None:
		session = self.repo.find_by_id(session_id)
		if session is None or session.user_id is None or session.user_id != user_id:
			raise NotFoundError()
		self.repo.delete(session_id)
		logger.info("Session %s deleted by owner", session_id)
