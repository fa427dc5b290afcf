from __future__ import annotations
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


DATABASE_URL = settings.database_url or "sqlite:///./interviews.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


# Best-effort lightweight migrations for development (SQLite-friendly)
def ensure_schema(bind=None) -> None:
	bind = bind or engine
	try:
		inspector = inspect(bind)
		tables = set(inspector.get_table_names())
	except Exception:
		return
	if "interview_sessions" in tables:
		cols = {c["name"] for c in inspector.get_columns("interview_sessions")}
		with bind.begin() as conn:
			if "last_question" not in cols:
				conn.exec_driver_sql("ALTER TABLE interview_sessions ADD COLUMN last_question TEXT")
			if "version" not in cols:
				conn.exec_driver_sql("ALTER TABLE interview_sessions ADD COLUMN version INTEGER DEFAULT 1 NOT NULL")
