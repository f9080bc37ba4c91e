"""
Journal server.

Thin JSON API over the entry store, account sessions and the AI provider.
"""

import logging
from typing import List, Optional, Union

from fastapi import FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictInt

from screendiary import __version__
from screendiary.core.config import Config
from screendiary.core.db import init_db
from screendiary.core.errors import ValidationError
from screendiary.core.guidance import PROVIDER_FALLBACK
from screendiary.core.utils import ids_match, normalize_user_id
from screendiary.server.ai import AnalysisProvider, ProviderError
from screendiary.server.auth import (
    MIN_PASSWORD_LENGTH,
    SessionRegistry,
    hash_password,
    verify_password,
)
from screendiary.store import entries as store

logger = logging.getLogger(__name__)


# --------------------------------------------------
# Request models
# --------------------------------------------------

class EntryCreate(BaseModel):
    apps: List[str]
    screenTimeMinutes: StrictInt
    reflection: str
    tags: List[str]
    userId: Optional[Union[int, str]] = None


class AnalysisRequest(BaseModel):
    apps: List[str] = []
    screenTimeMinutes: int = 0
    reflection: str = ""
    tags: List[str] = []


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _auth_payload(user: dict, token: Optional[str] = None) -> dict:
    payload = {
        "success": True,
        "userId": user["id"],
        "userEmail": user["email"],
        "userName": user["name"],
    }
    if token:
        payload["token"] = token
    return payload


def _entry_record(entry: dict) -> dict:
    """Wire shape of a stored entry. apps/tags stay as stored JSON text."""
    created_at = entry["created_at"]
    return {
        "id": entry["id"],
        "user_id": entry["user_id"],
        "apps": entry["apps"],
        "screen_time": entry["screen_time"],
        "reflection": entry["reflection"],
        "tags": entry["tags"],
        "created_at": created_at.isoformat() + "Z" if created_at else None,
    }


def create_app(config: Config, provider: Optional[AnalysisProvider] = None) -> FastAPI:
    """Build the API application for config."""
    init_db(config)

    app = FastAPI(
        title="ScreenDiary API",
        description="Personal digital wellness journal",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    sessions = SessionRegistry(config.session_ttl_hours)
    provider = provider or AnalysisProvider(config)
    app.state.config = config
    app.state.sessions = sessions
    app.state.provider = provider

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid {field}: {first.get('msg', 'bad value')}" if field else "Invalid request body"
        logger.warning(f"{request.method} {request.url.path} rejected: {message}")
        return _error(400, message)

    @app.get("/")
    def health_check():
        return {"status": "ScreenDiary API running", "version": __version__}

    # --------------------------------------------------
    # Accounts
    # --------------------------------------------------

    @app.post("/api/register", status_code=201)
    def register(data: RegisterRequest):
        if not data.name.strip() or "@" not in data.email:
            return _error(400, "Name and a valid email are required")
        if len(data.password) < MIN_PASSWORD_LENGTH:
            return _error(400, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        try:
            user = store.create_user(config, data.name, data.email, hash_password(data.password))
        except ValidationError as e:
            return _error(400, e.message)

        return _auth_payload(user, sessions.issue(user["id"]))

    @app.post("/api/login")
    def login(data: LoginRequest):
        user = store.get_user_by_email(config, data.email)
        if user is None or not verify_password(data.password, user["password"]):
            logger.warning(f"Login failed for {data.email}")
            return _error(401, "Invalid email or password")

        logger.info(f"User logged in: {user['id']}")
        return _auth_payload(user, sessions.issue(user["id"]))

    @app.get("/api/session/refresh")
    def refresh_session(authorization: Optional[str] = Header(None)):
        token = _bearer_token(authorization)
        user_id = sessions.resolve(token)
        user = store.get_user(config, user_id) if user_id is not None else None

        if user is None:
            return {"success": False}

        sessions.touch(token)
        return _auth_payload(user)

    @app.post("/api/logout")
    def logout(authorization: Optional[str] = Header(None)):
        revoked = sessions.revoke(_bearer_token(authorization))
        return {"success": True, "revoked": revoked}

    # --------------------------------------------------
    # Entries
    # --------------------------------------------------

    @app.get("/api/entries")
    def get_entries(authorization: Optional[str] = Header(None)):
        token = _bearer_token(authorization)
        user_id = sessions.resolve(token)

        if token and user_id is None:
            return _error(401, "Session expired")

        entries = store.list_entries(config, user_id=user_id)
        return {"entries": [_entry_record(entry) for entry in entries]}

    @app.post("/api/entries", status_code=201)
    def post_entry(data: EntryCreate, authorization: Optional[str] = Header(None)):
        token = _bearer_token(authorization)
        session_user = sessions.resolve(token)

        if token and session_user is None:
            return _error(401, "Session expired")

        if session_user is not None:
            if data.userId is not None and not ids_match(session_user, data.userId):
                return _error(403, "userId does not match the signed-in user")
            user_id = session_user
        else:
            normalized = normalize_user_id(data.userId)
            if normalized is None or not normalized.isdigit():
                return _error(400, "userId is required")
            user_id = int(normalized)

        try:
            entry = store.create_entry(
                config,
                user_id=user_id,
                apps=data.apps,
                screen_time_minutes=data.screenTimeMinutes,
                reflection=data.reflection,
                tags=data.tags,
            )
        except ValidationError as e:
            logger.warning(f"Entry rejected for user {user_id}: {e.message}")
            return _error(400, e.message)

        return {"success": True, "id": entry["id"]}

    # --------------------------------------------------
    # AI analysis
    # --------------------------------------------------

    @app.post("/api/ai-analysis")
    def ai_analysis(data: AnalysisRequest):
        try:
            result = provider.analyze(data.model_dump())
        except ProviderError as e:
            logger.warning(f"AI analysis unavailable: {e}")
            return JSONResponse(
                status_code=503,
                content={"error": str(e), "fallback": PROVIDER_FALLBACK.to_payload()},
            )

        return result.to_payload()

    return app
