from __future__ import annotations
import logging
import uuid
from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .errors import ConflictError
from .models import InterviewSession

logger = logging.getLogger(__name__)


class SessionRepository:
	"""Durable store for interview sessions, backed by a SQLAlchemy session."""

	def __init__(self, db: Session) -> None:
		self.db = db

	def create(self, **fields: Any) -> InterviewSession:
		row = InterviewSession(id=uuid.uuid4().hex, **fields)
		self.db.add(row)
		try:
			self.db.commit()
		except IntegrityError as exc:
			self.db.rollback()
			raise ConflictError("Session violates a uniqueness constraint") from exc
		self.db.refresh(row)
		return row

	def find_by_id(self, session_id: str) -> Optional[InterviewSession]:
		if not session_id:
			return None
		return self.db.get(InterviewSession, session_id, populate_existing=True)

	def find_one(self, **criteria: Any) -> Optional[InterviewSession]:
		return self.db.query(InterviewSession).filter_by(**criteria).first()

	def list_for_user(self, user_id: str) -> List[InterviewSession]:
		return (
			self.db.query(InterviewSession)
			.filter(InterviewSession.user_id == user_id)
			.order_by(InterviewSession.created_at.desc())
			.all()
		)

	def save(self, row: InterviewSession) -> InterviewSession:
		"""Commit pending changes; a stale version raises ConflictError and discards them."""
		try:
			self.db.commit()
		except StaleDataError as exc:
			self.db.rollback()
			logger.warning("Stale write rejected for session %s", row.id)
			raise ConflictError() from exc
		self.db.refresh(row)
		return row

	def delete(self, session_id: str) -> bool:
		row = self.db.get(InterviewSession, session_id)
		if row is None:
			return False
		self.db.delete(row)
		self.db.commit()
		return True
