"""Event trigger bridge — storage finalize event → authenticated ``POST /embed``.

The bridge never retries and never raises: the storage event is durable
and the infrastructure can replay it, so every outcome is logged and
returned as a :class:`TriggerResult`.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import requests

from pdf_rag.errors import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageObjectEvent:
    """The parts of a storage ``object.finalize`` notification we use."""

    bucket: str | None = None
    name: str | None = None
    updated: str | None = None
    event_id: str | None = None
    event_type: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any] | None, **attributes: Any) -> StorageObjectEvent:
        data = data or {}
        return cls(
            bucket=data.get("bucket"),
            name=data.get("name"),
            updated=data.get("updated"),
            event_id=attributes.get("id"),
            event_type=attributes.get("type"),
        )


class TriggerOutcome(str, enum.Enum):
    SKIPPED = "skipped"
    DELIVERED = "delivered"
    AUTH_FAILED = "auth_failed"
    DELIVERY_FAILED = "delivery_failed"


@dataclass(frozen=True)
class TriggerResult:
    outcome: TriggerOutcome
    status_code: int | None = None
    detail: str = ""


# ---------------------------------------------------------------------------
# Capability interfaces
# ---------------------------------------------------------------------------


class TokenProvider(ABC):
    """Issues short-lived identity tokens for an audience."""

    @abstractmethod
    def fetch_token(self, audience: str) -> str:
        """Return a bearer token; raise :class:`AuthError` on failure."""
        ...


class AuthenticatedHttpClient(ABC):
    """Sends JSON POST requests carrying a bearer token."""

    @abstractmethod
    def post_json(self, url: str, payload: dict[str, Any], *, token: str) -> int:
        """POST *payload* and return the HTTP status code.

        Transport failures raise :class:`requests.RequestException`.
        """
        ...


class GoogleIdTokenProvider(TokenProvider):
    """Fetches Google-signed ID tokens (metadata server or ADC service account)."""

    def fetch_token(self, audience: str) -> str:
        import google.auth.exceptions
        import google.auth.transport.requests
        import google.oauth2.id_token

        try:
            return google.oauth2.id_token.fetch_id_token(google.auth.transport.requests.Request(), audience)
        except (google.auth.exceptions.GoogleAuthError, ValueError) as exc:
            raise AuthError(f"Could not fetch an ID token for {audience}: {exc}") from exc


class RequestsWebhookClient(AuthenticatedHttpClient):
    """``requests``-based client with a per-request timeout."""

    def __init__(self, timeout: float = 30.0, session: requests.Session | None = None) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()

    def post_json(self, url: str, payload: dict[str, Any], *, token: str) -> int:
        resp = self._session.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout,
        )
        return resp.status_code

    def close(self) -> None:
        self._session.close()


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------


class EventTriggerBridge:
    """Calls the ingestion webhook for every uploaded object.

    Parameters
    ----------
    target_url:
        Full URL of the ingestion endpoint, e.g. ``https://svc/embed``.
    audience:
        Audience the identity token is scoped to, usually the service root URL.
    token_provider / http_client:
        Injected capabilities.
    """

    def __init__(
        self,
        target_url: str,
        audience: str,
        *,
        token_provider: TokenProvider,
        http_client: AuthenticatedHttpClient,
    ) -> None:
        self.target_url = target_url
        self.audience = audience
        self._tokens = token_provider
        self._http = http_client

    def handle(self, event: StorageObjectEvent) -> TriggerResult:
        logger.info(
            "Event %s (%s): bucket=%s file=%s updated=%s",
            event.event_id,
            event.event_type,
            event.bucket,
            event.name,
            event.updated,
        )
        if not event.name:
            logger.info("Skipping event: file name is missing.")
            return TriggerResult(TriggerOutcome.SKIPPED, detail="missing object name")

        try:
            token = self._tokens.fetch_token(self.audience)
        except AuthError as exc:
            logger.error("Could not authenticate against %s: %s", self.audience, exc)
            return TriggerResult(TriggerOutcome.AUTH_FAILED, detail=str(exc))

        logger.info("Calling ingestion service at: %s", self.target_url)
        try:
            status = self._http.post_json(self.target_url, {"fileName": event.name}, token=token)
        except requests.RequestException as exc:
            logger.error("Error calling ingestion service: %s", exc)
            return TriggerResult(TriggerOutcome.DELIVERY_FAILED, detail=str(exc))

        if not 200 <= status < 300:
            logger.error("Ingestion service responded with status %d", status)
            return TriggerResult(TriggerOutcome.DELIVERY_FAILED, status_code=status)

        logger.info("Successfully called ingestion service (status %d).", status)
        return TriggerResult(TriggerOutcome.DELIVERED, status_code=status)
