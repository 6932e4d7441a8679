# app/client/http.py

from typing import Any, Dict, Optional
import httpx
from config.settings import settings
from client.identity import IdentityProvider
from client.results import ErrorKind, LobbyError, Failure, Success, Result, failure
import logging

logger = logging.getLogger(__name__)


# Server "code" field -> client kind
ERROR_CODES: Dict[str, ErrorKind] = {
    "LOBBY_NOT_FOUND": ErrorKind.NOT_FOUND,
    "NOT_FOUND": ErrorKind.NOT_FOUND,
    "LOBBY_FULL": ErrorKind.LOBBY_FULL,
    "ALREADY_JOINED": ErrorKind.ALREADY_JOINED,
    "NOT_A_PARTICIPANT": ErrorKind.NOT_A_PARTICIPANT,
    "INVALID_ARGUMENT": ErrorKind.INVALID_ARGUMENT,
    "UNAUTHENTICATED": ErrorKind.UNAUTHENTICATED,
}

GENERIC_ERROR_MESSAGE = "Unexpected error"


def create_http_client(
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Build the shared AsyncClient for the configured API

    Pass ``transport`` to talk to an in-process app (e.g. httpx.ASGITransport).
    """
    return httpx.AsyncClient(
        base_url=base_url or settings.API_BASE_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        transport=transport,
        headers={"Accept": "application/json"},
    )


def _kind_for_status(status_code: int) -> ErrorKind:
    if status_code in (401, 403):
        return ErrorKind.UNAUTHENTICATED
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code in (400, 422):
        return ErrorKind.INVALID_ARGUMENT
    if status_code in (408, 429) or status_code >= 500:
        return ErrorKind.TRANSIENT
    return ErrorKind.UNKNOWN


def error_from_response(response: httpx.Response) -> LobbyError:
    """
    Translate a non-2xx response into a LobbyError

    The structured ``code`` wins; the status code is only a fallback for
    bodies that carry none (framework errors, proxies).
    """
    body: Any = None
    try:
        body = response.json()
    except ValueError:
        pass

    code = None
    message = None
    details: Dict[str, Any] = {}
    if isinstance(body, dict):
        code = body.get("code")
        message = body.get("message")
        detail = body.get("detail")
        if message is None and isinstance(detail, str):
            message = detail
        elif message is None and isinstance(detail, dict):
            # fastapi-users: {"code": ..., "reason": ...}
            message = detail.get("reason") or detail.get("code")
        if isinstance(body.get("details"), dict):
            details = body["details"]

    kind = ERROR_CODES.get(code) if code else None
    if kind is None:
        kind = _kind_for_status(response.status_code)

    details.setdefault("status_code", response.status_code)
    return LobbyError(kind=kind, message=message or GENERIC_ERROR_MESSAGE, details=details)


async def send(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    identity: Optional[IdentityProvider] = None,
    authenticated: bool = False,
    **kwargs: Any,
) -> Result[httpx.Response]:
    """
    Issue one request and fold every outcome into a Result

    Protected calls without a credential fail with UNAUTHENTICATED before
    anything is sent.
    """
    headers = dict(kwargs.pop("headers", None) or {})
    if authenticated:
        credential = await identity.get_credential() if identity else None
        if not credential:
            return failure(ErrorKind.UNAUTHENTICATED, "Sign in to continue")
        headers["Authorization"] = f"Bearer {credential}"

    try:
        response = await client.request(method, path, headers=headers, **kwargs)
    except httpx.TransportError as e:
        logger.warning(f"{method} {path} failed: {e!r}")
        return failure(ErrorKind.TRANSIENT, str(e) or "Network unavailable")
    except httpx.HTTPError as e:
        logger.error(f"{method} {path} failed: {e!r}")
        return failure(ErrorKind.UNKNOWN, str(e) or GENERIC_ERROR_MESSAGE)

    if response.is_success:
        return Success(response)

    error = error_from_response(response)
    logger.info(f"{method} {path} -> {response.status_code} {error.kind.value}")
    return Failure(error)
