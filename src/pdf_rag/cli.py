"""Command-line entry point: ingest a local PDF directory or run the API server."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pdf_rag.config import settings
from pdf_rag.errors import ConfigError, IngestionError

logger = logging.getLogger(__name__)


def _ingest(args: argparse.Namespace) -> int:
    from pdf_rag.ingestion.embedder import EmbeddingGateway
    from pdf_rag.ingestion.pipeline import IngestionPipeline
    from pdf_rag.retrieval.chroma_store import ChromaVectorStore

    store = ChromaVectorStore(args.index)
    try:
        pipeline = IngestionPipeline(
            args.source,
            args.chunk_size,
            args.chunk_overlap,
            args.index,
            embedder=EmbeddingGateway(),
            store=store,
            allow_partial=args.allow_partial,
        )
        report = asyncio.run(pipeline.run())
    except (ConfigError, IngestionError) as exc:
        logger.error("An error occurred during the ingestion pipeline: %s", exc)
        return 1
    finally:
        store.close()

    print(f"Success: {report.summary()}")
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("pdf_rag.serving.app:app", host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pdf-rag", description="PDF retrieval-augmented chat service")
    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Load, chunk, embed and store a local PDF directory")
    ingest.add_argument("--source", default=settings.pdf_directory, help="Directory containing PDFs")
    ingest.add_argument("--chunk-size", type=int, default=settings.chunk_size)
    ingest.add_argument("--chunk-overlap", type=int, default=settings.chunk_overlap)
    ingest.add_argument("--index", default=settings.vector_index_name, help="Vector index name")
    ingest.add_argument(
        "--allow-partial",
        action="store_true",
        default=settings.ingest_allow_partial,
        help="Keep going when individual documents fail",
    )
    ingest.set_defaults(func=_ingest)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.server_host)
    serve.add_argument("--port", type=int, default=settings.server_port)
    serve.set_defaults(func=_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=settings.log_level)
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
