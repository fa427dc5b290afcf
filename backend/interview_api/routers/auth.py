from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from ..settings import settings
from sqlalchemy.orm import Session
from ..db import get_db
from ..models import AuthUser

router = APIRouter(prefix="/auth", tags=["auth"])

logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


class User(BaseModel):
	id: str
	name: str
	email: str


class RegisterRequest(BaseModel):
	name: Optional[str] = None
	email: Optional[str] = None
	password: Optional[str] = None


class LoginRequest(BaseModel):
	email: Optional[str] = None
	password: Optional[str] = None


def _bcrypt_safe(password: str) -> str:
	# Truncate password to 72 bytes for bcrypt compatibility
	password_bytes = password.encode('utf-8')
	if len(password_bytes) > 72:
		password_bytes = password_bytes[:72]
	return password_bytes.decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
	return pwd_context.hash(_bcrypt_safe(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(_bcrypt_safe(plain_password), hashed_password)


def _to_user(row: AuthUser) -> User:
	return User(id=row.id, name=row.name, email=row.email)


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	"""Return a safe JWT expiry timestamp.

	Respects the configured token lifetime when provided, and falls back to a
	generous but finite default.
	"""
	delta = expires_delta
	if delta is None:
		minutes = getattr(settings, "access_token_expire_minutes", None)
		if isinstance(minutes, int) and minutes > 0:
			delta = timedelta(minutes=minutes)
		else:
			delta = timedelta(days=7)
	now = datetime.now(timezone.utc)
	try:
		return now + delta
	except OverflowError:
		# Cap at far future but within datetime bounds
		return datetime.max.replace(tzinfo=timezone.utc)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	expire = _resolve_expiry(expires_delta)
	to_encode.update({"exp": expire})
	encoded_jwt = jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
	return encoded_jwt


def _token_for(row: AuthUser) -> str:
	return create_access_token({"sub": row.id, "email": row.email, "name": row.name})


def _user_from_token(token: str, db: Session) -> Optional[User]:
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
	except JWTError:
		return None
	user_id: str | None = payload.get("sub")
	if user_id is None:
		return None
	row = db.get(AuthUser, user_id)
	return _to_user(row) if row else None


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
	user = _user_from_token(token, db)
	if user is None:
		raise HTTPException(status_code=401, detail="Invalid token")
	return user


def get_optional_user(token: Optional[str] = Depends(optional_oauth2_scheme), db: Session = Depends(get_db)) -> Optional[User]:
	if not token:
		return None
	return _user_from_token(token, db)


@router.post("/register")
async def register(req: RegisterRequest, db: Session = Depends(get_db)):
	name = (req.name or "").strip()
	email = (req.email or "").strip().lower()
	password = req.password or ""
	if not name or not email or not password:
		raise HTTPException(status_code=400, detail="All fields required")
	existing = db.query(AuthUser).filter(AuthUser.email == email).first()
	if existing:
		raise HTTPException(status_code=400, detail="Email already registered")
	row = AuthUser(id=uuid.uuid4().hex, name=name, email=email, password_hash=hash_password(password))
	db.add(row)
	db.commit()
	db.refresh(row)
	return {
		"success": True,
		"message": "Registration successful",
		"user": _to_user(row).model_dump(),
		"token": _token_for(row),
	}


@router.post("/login")
async def login(req: LoginRequest, db: Session = Depends(get_db)):
	email = (req.email or "").strip().lower()
	row = db.query(AuthUser).filter(AuthUser.email == email).first() if email else None
	if not row or not verify_password(req.password or "", row.password_hash):
		raise HTTPException(status_code=400, detail="Invalid credentials")
	return {
		"success": True,
		"message": "Login successful",
		"user": _to_user(row).model_dump(),
		"token": _token_for(row),
	}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
	return {"success": True, "user": user.model_dump()}
