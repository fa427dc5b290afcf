from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..db import get_db
from ..orchestrator import SessionOrchestrator
from ..repository import SessionRepository
from ..services import AIServices, get_ai_services
from ..settings import settings
from .auth import User, get_optional_user


router = APIRouter(prefix="/interview", tags=["interview"])


class StartRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	role: Optional[str] = None
	user_id: Optional[str] = Field(default=None, alias="userId")
	is_anonymous: Optional[bool] = Field(default=None, alias="isAnonymous")
	# Optional here so a missing value is reported by the orchestrator as a 400
	total_questions: Optional[int] = Field(default=None, alias="totalQuestions")


class AnswerRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	session_id: str = Field(alias="sessionId")
	answer: Optional[str] = None


class ResumeRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	session_id: str = Field(alias="sessionId")


def get_orchestrator(db: Session = Depends(get_db), services: AIServices = Depends(get_ai_services)) -> SessionOrchestrator:
	return SessionOrchestrator(
		SessionRepository(db),
		services.classifier,
		services.questions,
		services.feedback,
	)


def client_ip(request: Request) -> Optional[str]:
	if settings.trust_proxy_headers:
		forwarded = request.headers.get("x-forwarded-for", "")
		first = forwarded.split(",")[0].strip()
		if first:
			return first
	return request.client.host if request.client else None


@router.post("/start")
async def start_interview(
	req: StartRequest,
	request: Request,
	user: Optional[User] = Depends(get_optional_user),
	orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
	if req.is_anonymous:
		user_id = None
	elif user is not None:
		user_id = user.id
	else:
		user_id = req.user_id or None
	result = await orchestrator.start(req.role, req.total_questions, user_id=user_id, ip=client_ip(request))
	return {"success": True, **result}


@router.post("/next")
async def next_question(req: AnswerRequest, orchestrator: SessionOrchestrator = Depends(get_orchestrator)):
	result = await orchestrator.submit_answer(req.session_id, req.answer)
	# A rejected answer is a normal outcome, reported without an error status
	return {"success": not result.get("askAgain", False), **result}


@router.post("/resume")
async def resume_interview(req: ResumeRequest, orchestrator: SessionOrchestrator = Depends(get_orchestrator)):
	return {"success": True, "session": orchestrator.resume(req.session_id)}
