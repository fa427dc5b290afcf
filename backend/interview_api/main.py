import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import Base, engine, ensure_schema
from .errors import InterviewError
from .settings import settings
from .routers import health, auth, interview, sessions

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="AI Mock Interview API")

# Mobile and web clients call the API directly
app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_methods=["*"],
	allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(interview.router)
app.include_router(sessions.router)


@app.exception_handler(InterviewError)
async def interview_error_handler(request: Request, exc: InterviewError):
	return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
	return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
	first = exc.errors()[0] if exc.errors() else {}
	field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "request"
	return JSONResponse(status_code=400, content={"success": False, "message": f"{field}: {first.get('msg', 'invalid')}"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
	logger.exception("Unhandled error on %s %s", request.method, request.url.path)
	return JSONResponse(status_code=500, content={"success": False, "message": "Server error"})


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight dev migrations
	try:
		ensure_schema()
	except Exception:
		logger.warning("Schema migration skipped", exc_info=True)
