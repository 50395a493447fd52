# app/routers/auth_twitter.py
import secrets
import httpx
from typing import Dict, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse, JSONResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.db import crud, crud_accounts
from app.deps import get_db
from app.errors import AuthRefreshError
from app.logging_config import get_logger
import app.services.twitter_api as twitter_api

logger = get_logger(__name__)

router = APIRouter(prefix="/auth/twitter", tags=["twitter-auth"])
# state -> (user_id, code_verifier); single process only
STATE_STORE: Dict[str, Tuple[int, str]] = {}

@router.get("/me")
def me():
    return {
        "status": "ok",
        "has_client_id": bool(settings.twitter_client_id),
        "has_secret": bool(settings.twitter_client_secret),
        "has_fernet": bool(settings.fernet_key),
        "redirect_uri": settings.twitter_redirect_uri,
    }

@router.get("/login")
def login(user_id: int = Query(...), db: Session = Depends(get_db)) -> RedirectResponse:
    if not settings.twitter_client_id or not settings.twitter_client_secret or not settings.fernet_key:
        raise HTTPException(500, "Missing Twitter or FERNET config in .env")
    if not crud.get_user(db, user_id):
        raise HTTPException(404, "User not found")
    state = secrets.token_urlsafe(24)
    verifier, challenge = twitter_api.make_pkce_pair()
    STATE_STORE[state] = (user_id, verifier)
    return RedirectResponse(twitter_api.auth_url(state, challenge))

@router.get("/callback")
def callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    db: Session = Depends(get_db),
):
    if error:
        if state:
            STATE_STORE.pop(state, None)
        logger.warning("Twitter OAuth error: %s", error)
        return JSONResponse(
            status_code=400,
            content={"status": "error", "error": error, "error_description": error_description},
        )

    if not code or not state:
        return JSONResponse(
            status_code=400,
            content={"status": "error", "message": "Missing ?code or ?state in callback"},
        )

    pending = STATE_STORE.pop(state, None)
    if not pending:
        raise HTTPException(400, "Invalid state")
    user_id, verifier = pending

    try:
        token_resp = twitter_api.exchange_code_for_token(code, verifier)
        profile = twitter_api.get_user_profile(token_resp["access_token"])
    except (AuthRefreshError, RuntimeError, KeyError, httpx.RequestError) as e:
        logger.warning("Twitter connect failed for user %s: %s", user_id, e)
        raise HTTPException(400, f"Twitter connection failed: {e}")

    try:
        acct = crud_accounts.upsert_account(
            db,
            user_id=user_id,
            profile=profile,
            access_token=token_resp["access_token"],
            refresh_token=token_resp.get("refresh_token"),
            expires_in=token_resp.get("expires_in"),  # typically 7200
        )
    except ValueError as e:
        raise HTTPException(400, str(e))

    logger.info("Connected Twitter account @%s for user %s", acct.username, user_id)
    return {
        "status": "ok",
        "user_id": user_id,
        "account_id": acct.id,
        "username": acct.username,
        "has_refresh_token": bool(acct.refresh_token_encrypted),
    }
