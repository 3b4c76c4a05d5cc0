"""
Serving — FastAPI application for chat, ingestion and uploads.

:func:`create_app` builds the app; the service container it runs on is
constructed at startup and closed at shutdown.
"""
