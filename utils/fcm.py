from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import requests

from config import (
    FCM_PROJECT_ID,
    FCM_SERVICE_ACCOUNT_JSON,
    FCM_SERVICE_ACCOUNT_PATH,
    FCM_TIMEOUT_SECONDS,
    PUSH_MODE,
)
from schemas.push import DispatchResult, MulticastResult, SendOptions, SendResponse

logger = logging.getLogger(__name__)

FCM_SCOPES = ["https://www.googleapis.com/auth/firebase.messaging"]

TOKEN_NOT_REGISTERED = "messaging/registration-token-not-registered"
TOKEN_INVALID = "messaging/invalid-registration-token"
INVALID_TOKEN_CODES = frozenset({TOKEN_NOT_REGISTERED, TOKEN_INVALID})


class PushTransportError(RuntimeError):
    """The whole batch could not be handed to the push provider."""


class PushTransport:
    def send_multicast(
        self,
        tokens: Sequence[str],
        title: str,
        body: str,
        data: Dict[str, str],
        options: Optional[SendOptions] = None,
    ) -> MulticastResult:
        raise NotImplementedError


class StubTransport(PushTransport):
    def send_multicast(self, tokens, title, body, data, options=None) -> MulticastResult:
        logger.info("[push][stub] %s", {"tokens": len(tokens), "title": title, "body": body, **data})
        return MulticastResult(
            success_count=len(tokens),
            failure_count=0,
            responses=[SendResponse(success=True) for _ in tokens],
        )


def load_fcm_service_account() -> Optional[dict]:
    if FCM_SERVICE_ACCOUNT_JSON:
        try:
            return json.loads(FCM_SERVICE_ACCOUNT_JSON)
        except ValueError:
            logger.warning("FCM_SERVICE_ACCOUNT_JSON is not valid JSON")
            return None
    if FCM_SERVICE_ACCOUNT_PATH and os.path.exists(FCM_SERVICE_ACCOUNT_PATH):
        try:
            with open(FCM_SERVICE_ACCOUNT_PATH, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Cannot read FCM service account %s: %s", FCM_SERVICE_ACCOUNT_PATH, exc)
            return None
    return None


def fcm_access_token(sa: dict) -> str:
    from google.auth.exceptions import GoogleAuthError
    from google.auth.transport.requests import Request
    from google.oauth2 import service_account

    try:
        creds = service_account.Credentials.from_service_account_info(sa, scopes=FCM_SCOPES)
        creds.refresh(Request())
    except (GoogleAuthError, ValueError) as exc:
        raise PushTransportError(f"FCM auth failed: {exc}") from exc
    return creds.token


def error_code_from_response(r: requests.Response) -> str:
    """Map an FCM v1 error body onto the firebase-admin style error code."""
    try:
        data = r.json()
    except ValueError:
        data = None
    err = data.get("error") if isinstance(data, dict) else None
    if not isinstance(err, dict):
        err = {}

    status = str(err.get("status") or "")
    message = str(err.get("message") or "")
    for detail in err.get("details") or []:
        if isinstance(detail, dict) and detail.get("errorCode"):
            status = str(detail["errorCode"])
            break

    if status in ("UNREGISTERED", "NOT_FOUND") or r.status_code == 404:
        return TOKEN_NOT_REGISTERED
    if status == "INVALID_ARGUMENT":
        if "registration token" in message.lower():
            return TOKEN_INVALID
        return "messaging/invalid-argument"
    if status:
        return "messaging/" + status.lower().replace("_", "-")
    return f"messaging/http-{r.status_code}"


class FcmTransport(PushTransport):
    """FCM HTTP v1. The API has no multicast, so each token gets its own request."""

    def __init__(self, project_id: str, service_account: dict, timeout: int = FCM_TIMEOUT_SECONDS) -> None:
        self.project_id = project_id
        self.service_account = service_account
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"https://fcm.googleapis.com/v1/projects/{self.project_id}/messages:send"

    def build_message(
        self,
        token: str,
        title: str,
        body: str,
        data: Dict[str, str],
        options: Optional[SendOptions] = None,
    ) -> Dict[str, Any]:
        options = options or SendOptions()
        link = (data or {}).get("url") or "/"

        headers = {"Urgency": options.urgency}
        if options.ttl_seconds and options.ttl_seconds > 0:
            headers["TTL"] = str(int(options.ttl_seconds))

        notification: Dict[str, Any] = {
            "title": title,
            "body": body,
            "icon": "/pwa-192.png",
            "badge": "/pwa-192.png",
            "renotify": options.renotify,
            "requireInteraction": options.require_interaction,
            "actions": [{"action": "open", "title": "Open"}],
        }
        if options.tag:
            notification["tag"] = options.tag

        return {
            "message": {
                "token": token,
                "notification": {"title": title, "body": body},
                "data": {k: str(v) for k, v in (data or {}).items()},
                "webpush": {
                    "headers": headers,
                    "fcm_options": {"link": link},
                    "notification": notification,
                },
            }
        }

    def send_multicast(self, tokens, title, body, data, options=None) -> MulticastResult:
        options = options or SendOptions()
        access_token = fcm_access_token(self.service_account)
        headers = {"Authorization": f"Bearer {access_token}"}

        responses: List[SendResponse] = []
        with requests.Session() as session:
            for token in tokens:
                payload = self.build_message(token, title, body, data, options)
                try:
                    r = session.post(self.url, headers=headers, json=payload, timeout=self.timeout)
                except requests.RequestException as exc:
                    logger.warning("[fcm][send-error] %s", exc)
                    responses.append(SendResponse(success=False, error_code="messaging/unavailable"))
                    continue

                if 200 <= r.status_code < 300:
                    try:
                        sent = r.json()
                    except ValueError:
                        sent = None
                    name = sent.get("name") if isinstance(sent, dict) else None
                    responses.append(SendResponse(success=True, message_id=name))
                else:
                    responses.append(SendResponse(success=False, error_code=error_code_from_response(r)))

        ok = sum(1 for x in responses if x.success)
        return MulticastResult(success_count=ok, failure_count=len(responses) - ok, responses=responses)


def build_transport() -> PushTransport:
    if PUSH_MODE == "stub":
        return StubTransport()
    if PUSH_MODE != "fcm":
        raise PushTransportError(f"Unknown PUSH_MODE: {PUSH_MODE}")

    sa = load_fcm_service_account()
    if not sa or not FCM_PROJECT_ID:
        raise PushTransportError("FCM not configured")
    return FcmTransport(FCM_PROJECT_ID, sa)


async def dispatch(
    transport: PushTransport,
    tokens: Sequence[str],
    title: str,
    body: str,
    url: str = "/",
    options: Optional[SendOptions] = None,
) -> DispatchResult:
    """Send one notification to every token and classify the outcomes.

    Tokens the provider reports as unregistered or malformed are returned in
    ``invalid_tokens``; deleting them is left to the caller. Other per-token
    failures are only counted. Errors from the transport itself propagate.
    """
    tokens = list(tokens)
    if not tokens:
        return DispatchResult(success_count=0, failure_count=0, invalid_tokens=[])

    res = await asyncio.to_thread(transport.send_multicast, tokens, title, body, {"url": url}, options)

    invalid: List[str] = []
    for token, r in zip(tokens, res.responses):
        if r.success:
            continue
        if r.error_code in INVALID_TOKEN_CODES and token not in invalid:
            invalid.append(token)

    return DispatchResult(
        success_count=res.success_count,
        failure_count=res.failure_count,
        invalid_tokens=invalid,
    )
