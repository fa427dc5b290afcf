from __future__ import annotations
import enum
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text, JSON, Enum, Index, text
from sqlalchemy.orm import validates
from .db import Base


class SessionStatus(str, enum.Enum):
	IN_PROGRESS = "in_progress"
	COMPLETED = "completed"


class AuthUser(Base):
	__tablename__ = "users"
	id = Column(String(32), primary_key=True)
	name = Column(String(128), nullable=False)
	email = Column(String(256), unique=True, index=True, nullable=False)
	password_hash = Column(String(256), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class InterviewSession(Base):
	__tablename__ = "interview_sessions"
	__table_args__ = (
		# One free anonymous interview per address, enforced by the store itself
		Index(
			"uq_interview_sessions_anonymous_ip",
			"ip",
			unique=True,
			sqlite_where=text("user_id IS NULL"),
			postgresql_where=text("user_id IS NULL"),
		),
	)

	id = Column(String(32), primary_key=True)
	role = Column(String(256), nullable=False)
	user_id = Column(String(64), nullable=True, index=True)
	ip = Column(String(64), nullable=True)
	total_questions = Column(Integer, nullable=False)
	# Questions posed so far, which is also the ordinal awaiting an answer
	questions_asked = Column(Integer, default=1, nullable=False)
	# [{questionNumber, question, answer}], append-only
	answers = Column(JSON, default=list, nullable=False)
	last_question = Column(Text, nullable=True)
	# {rating, plusPoints, improvements, summary}
	feedback = Column(JSON, nullable=True)
	status = Column(
		Enum(SessionStatus, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
		default=SessionStatus.IN_PROGRESS,
		nullable=False,
	)
	version = Column(Integer, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	__mapper_args__ = {"version_id_col": version}

	@property
	def is_completed(self) -> bool:
		return self.status == SessionStatus.COMPLETED

	@property
	def is_anonymous(self) -> bool:
		return self.user_id is None

	@validates("feedback")
	def _feedback_is_write_once(self, key, value):
		if self.feedback is not None and value != self.feedback:
			raise ValueError("feedback is immutable once set")
		return value

	@validates("role", "total_questions")
	def _immutable_after_create(self, key, value):
		current = getattr(self, key)
		if current is not None and value != current:
			raise ValueError(f"{key} is immutable once set")
		return value
