"""Cloud Functions entry point for storage ``object.finalize`` events.

Deploy with ``--entry-point embed_from_gcs`` and a Cloud Storage trigger;
``INGESTION_SERVICE_URL`` must point at the ``/embed`` endpoint.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import functions_framework

from pdf_rag.config import settings
from pdf_rag.trigger.bridge import (
    EventTriggerBridge,
    GoogleIdTokenProvider,
    RequestsWebhookClient,
    StorageObjectEvent,
    TriggerResult,
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_bridge() -> EventTriggerBridge:
    """Build the bridge once per function instance."""
    return EventTriggerBridge(
        settings.ingestion_service_url,
        settings.resolved_audience,
        token_provider=GoogleIdTokenProvider(),
        http_client=RequestsWebhookClient(timeout=settings.webhook_timeout),
    )


@functions_framework.cloud_event
def embed_from_gcs(cloud_event) -> TriggerResult:  # noqa: ANN001
    """Forward the uploaded object's name to the ingestion webhook."""
    event = StorageObjectEvent.from_payload(
        cloud_event.data,
        id=cloud_event["id"],
        type=cloud_event["type"],
    )
    return get_bridge().handle(event)
