import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from interview_api.db import Base, ensure_schema
from interview_api.errors import ConflictError
from interview_api.models import InterviewSession, SessionStatus
from interview_api.repository import SessionRepository


def _fields(**overrides):
	fields = {
		"role": "Tester",
		"user_id": None,
		"ip": "1.2.3.4",
		"total_questions": 3,
		"questions_asked": 1,
		"answers": [],
		"last_question": "Q1: Hello?",
		"status": SessionStatus.IN_PROGRESS,
	}
	fields.update(overrides)
	return fields


def test_create_find_delete(db):
	repo = SessionRepository(db)
	row = repo.create(**_fields())
	assert row.id and row.version == 1
	assert repo.find_by_id(row.id) is row
	assert repo.find_one(user_id=None, ip="1.2.3.4").id == row.id
	assert repo.find_one(user_id=None, ip="9.9.9.9") is None
	assert repo.find_by_id("") is None
	assert repo.delete(row.id) is True
	assert repo.delete(row.id) is False
	assert repo.find_by_id(row.id) is None


def test_save_bumps_version(db):
	repo = SessionRepository(db)
	row = repo.create(**_fields())
	row.questions_asked = 2
	repo.save(row)
	assert row.version == 2


def test_store_enforces_one_anonymous_session_per_ip(db):
	repo = SessionRepository(db)
	repo.create(**_fields())
	with pytest.raises(ConflictError):
		repo.create(**_fields())
	# signed-in users are not bound by the anonymous index
	repo.create(**_fields(user_id="u1"))
	repo.create(**_fields(user_id="u1"))


def test_list_for_user(db):
	repo = SessionRepository(db)
	a = repo.create(**_fields(user_id="u1"))
	b = repo.create(**_fields(user_id="u1", ip="5.5.5.5"))
	repo.create(**_fields(user_id="u2"))
	assert {s.id for s in repo.list_for_user("u1")} == {a.id, b.id}


def test_stale_write_is_rejected(tmp_path):
	engine = create_engine(f"sqlite:///{tmp_path / 'stale.db'}", future=True)
	Base.metadata.create_all(bind=engine)
	Session = sessionmaker(bind=engine, autoflush=False, future=True)
	first, second = Session(), Session()
	try:
		session_id = SessionRepository(first).create(**_fields()).id
		first.expire_all()

		mine = SessionRepository(first).find_by_id(session_id)
		theirs = SessionRepository(second).find_by_id(session_id)
		assert mine.version == theirs.version == 1

		theirs.questions_asked = 2
		SessionRepository(second).save(theirs)

		mine.questions_asked = 2
		with pytest.raises(ConflictError):
			SessionRepository(first).save(mine)

		fresh = SessionRepository(first).find_by_id(session_id)
		assert fresh.version == 2
	finally:
		first.close()
		second.close()
		engine.dispose()


def test_feedback_is_write_once(db):
	repo = SessionRepository(db)
	row = repo.create(**_fields())
	row.feedback = {"rating": 5, "plusPoints": [], "improvements": [], "summary": "ok"}
	repo.save(row)
	with pytest.raises(ValueError):
		row.feedback = {"rating": 9, "plusPoints": [], "improvements": [], "summary": "changed"}


def test_role_and_total_are_immutable(db):
	row = SessionRepository(db).create(**_fields())
	with pytest.raises(ValueError):
		row.role = "Developer"
	with pytest.raises(ValueError):
		row.total_questions = 10


def test_ensure_schema_adds_new_columns(tmp_path):
	engine = create_engine(f"sqlite:///{tmp_path / 'old.db'}", future=True)
	with engine.begin() as conn:
		conn.exec_driver_sql("CREATE TABLE interview_sessions (id VARCHAR(32) PRIMARY KEY, role VARCHAR(256))")
	ensure_schema(engine)
	with engine.connect() as conn:
		cols = {row[1] for row in conn.exec_driver_sql("PRAGMA table_info(interview_sessions)")}
	assert {"last_question", "version"} <= cols
	engine.dispose()


def test_status_is_the_single_completion_flag(db):
	row = SessionRepository(db).create(**_fields())
	assert row.is_completed is False
	row.status = SessionStatus.COMPLETED
	assert row.is_completed is True
	assert isinstance(row, InterviewSession)
