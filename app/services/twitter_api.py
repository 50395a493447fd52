# app/services/twitter_api.py
import base64
import hashlib
import secrets
import time
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode, quote

import httpx
from app.config import settings
from app.errors import AuthRefreshError, PostError
from app.logging_config import get_logger

logger = get_logger(__name__)

AUTH_URL  = "https://twitter.com/i/oauth2/authorize"
TOKEN_URL = "https://api.twitter.com/2/oauth2/token"
API_BASE  = "https://api.twitter.com/2"
TWEETS_URL = f"{API_BASE}/tweets"
ME_URL     = f"{API_BASE}/users/me"

TIMEOUT = httpx.Timeout(30, connect=5)


def _request(method: str, url: str, client: Optional[httpx.Client] = None, **kwargs) -> httpx.Response:
    if client is not None:
        return client.request(method, url, **kwargs)
    with httpx.Client(timeout=TIMEOUT) as c:
        return c.request(method, url, **kwargs)


def _error_detail(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:500]
    if isinstance(data, dict):
        detail = data.get("errors") or data.get("detail") or data.get("error_description") or data.get("error")
        if detail:
            return str(detail)
    return str(data)[:500]


def log_rate_limit(resp: httpx.Response) -> None:
    remaining = resp.headers.get("x-rate-limit-remaining")
    if remaining is not None:
        logger.debug("X rate limit remaining: %s (reset %s)", remaining, resp.headers.get("x-rate-limit-reset"))


def twitter_request_with_retry(method: str, url: str, **kwargs) -> httpx.Response:
    """Retry transient failures; only used for the interactive OAuth/profile calls."""
    max_attempts = 3
    backoff = 2
    for attempt in range(1, max_attempts + 1):
        try:
            resp = _request(method, url, **kwargs)
            log_rate_limit(resp)
            if resp.status_code in (429, 500, 502, 503, 504) and attempt < max_attempts:
                logger.warning("X %s attempt %d got %d, retrying...", url, attempt, resp.status_code)
                time.sleep(backoff * attempt)
                continue
            return resp
        except httpx.RequestError as e:
            logger.warning("X request error on %s: %s", url, e)
            if attempt < max_attempts:
                time.sleep(backoff * attempt)
                continue
            raise
    raise RuntimeError(f"X API failed after {max_attempts} attempts")


def _client_auth() -> Tuple[str, str]:
    if not settings.twitter_client_id or not settings.twitter_client_secret:
        raise AuthRefreshError("Twitter OAuth credentials not configured")
    return settings.twitter_client_id, settings.twitter_client_secret


# --- OAuth 2.0 authorization code + PKCE ---

def make_pkce_pair() -> Tuple[str, str]:
    """Return (code_verifier, S256 code_challenge)."""
    verifier = secrets.token_urlsafe(64)[:96]
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


def auth_url(state: str, code_challenge: str, scopes: Optional[str] = None) -> str:
    params = {
        "response_type": "code",
        "client_id": settings.twitter_client_id,
        "redirect_uri": settings.twitter_redirect_uri,
        "scope": scopes or settings.twitter_scopes,
        "state": state,
        "code_challenge": code_challenge,
        "code_challenge_method": "S256",
    }
    qs = urlencode(params, quote_via=quote, safe=":/")
    return f"{AUTH_URL}?{qs}"


def exchange_code_for_token(code: str, code_verifier: str) -> Dict[str, Any]:
    data = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": settings.twitter_redirect_uri,
        "code_verifier": code_verifier,
        "client_id": settings.twitter_client_id,
    }
    resp = twitter_request_with_retry(
        "POST", TOKEN_URL,
        data=data,
        auth=_client_auth(),
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    if resp.status_code != 200:
        raise AuthRefreshError(f"Twitter OAuth error ({resp.status_code}): {_error_detail(resp)}")
    return resp.json()


def get_user_profile(access_token: str) -> Dict[str, Any]:
    resp = twitter_request_with_retry(
        "GET", ME_URL,
        params={"user.fields": "public_metrics,profile_image_url"},
        headers={"Authorization": f"Bearer {access_token}"},
    )
    if resp.status_code != 200:
        raise RuntimeError(f"Could not fetch user profile from X ({resp.status_code}): {_error_detail(resp)}")
    return resp.json().get("data") or {}


# --- token refresh + posting (no retries here; the scheduler's next cycle is the retry) ---

def refresh_access_token(refresh_token: str, client: Optional[httpx.Client] = None) -> Dict[str, Any]:
    """Exchange a refresh token. Raises AuthRefreshError on any rejection.

    The returned refresh_token may be None when X does not rotate it.
    """
    auth = _client_auth()
    try:
        resp = _request(
            "POST", TOKEN_URL, client=client,
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            auth=auth,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
    except httpx.RequestError as e:
        raise AuthRefreshError(f"Token refresh request failed: {e}") from e
    if resp.status_code != 200:
        raise AuthRefreshError(f"Twitter OAuth error ({resp.status_code}): {_error_detail(resp)}")
    data = resp.json()
    if not data.get("access_token"):
        raise AuthRefreshError("No access_token in refresh response")
    return {
        "access_token": data["access_token"],
        "refresh_token": data.get("refresh_token"),
        "expires_in": data.get("expires_in"),
    }


def post_tweet(access_token: str, text: str, client: Optional[httpx.Client] = None) -> Optional[str]:
    """Create a tweet and return its id (None if X answered without one)."""
    try:
        resp = _request(
            "POST", TWEETS_URL, client=client,
            headers={"Authorization": f"Bearer {access_token}", "Content-Type": "application/json"},
            json={"text": text},
        )
    except httpx.RequestError as e:
        raise PostError(f"Failed to post tweet: {e}") from e
    log_rate_limit(resp)
    if not resp.is_success:
        raise PostError(f"Twitter API error ({resp.status_code}): {_error_detail(resp)}", status_code=resp.status_code)
    try:
        data = resp.json()
    except ValueError:
        return None
    return (data.get("data") or {}).get("id")


class TwitterTokenProvider:
    def __init__(self, client: Optional[httpx.Client] = None):
        self.client = client

    def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        return refresh_access_token(refresh_token, client=self.client)


class TwitterPoster:
    def __init__(self, client: Optional[httpx.Client] = None):
        self.client = client

    def post(self, access_token: str, text: str) -> Optional[str]:
        return post_tweet(access_token, text, client=self.client)
