"""
Trigger — forwards storage-upload events to the ingestion webhook.

The bridge depends only on the :class:`TokenProvider` and
:class:`AuthenticatedHttpClient` interfaces, so it runs against fakes in
tests and against Google identity tokens in a Cloud Function.
"""

from pdf_rag.trigger.bridge import (
    AuthenticatedHttpClient,
    EventTriggerBridge,
    StorageObjectEvent,
    TokenProvider,
    TriggerOutcome,
    TriggerResult,
)

__all__ = [
    "AuthenticatedHttpClient",
    "EventTriggerBridge",
    "StorageObjectEvent",
    "TokenProvider",
    "TriggerOutcome",
    "TriggerResult",
]
