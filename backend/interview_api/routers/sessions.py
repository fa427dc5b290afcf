from fastapi import APIRouter, Depends, HTTPException

from ..orchestrator import SessionOrchestrator
from .auth import User, get_current_user
from .interview import get_orchestrator

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("/user/{user_id}")
async def get_user_sessions(
	user_id: str,
	user: User = Depends(get_current_user),
	orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
	if user.id != user_id:
		raise HTTPException(status_code=403, detail="Not allowed to view these sessions")
	return {"success": True, "sessions": orchestrator.list_user_sessions(user_id)}


@router.delete("/{session_id}")
async def delete_session(
	session_id: str,
	user: User = Depends(get_current_user),
	orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
	orchestrator.delete_session(session_id, user.id)
	return {"success": True, "message": "Session deleted"}
