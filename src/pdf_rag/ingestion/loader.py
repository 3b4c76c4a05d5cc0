"""Document loaders — thin wrappers around LangChain document loaders."""

from __future__ import annotations

import logging
from pathlib import Path

from langchain_community.document_loaders import PyPDFLoader

from pdf_rag.errors import LoadError
from pdf_rag.ingestion.models import Document, utc_now_iso

logger = logging.getLogger(__name__)


def load_pdf(path: str | Path, *, document_id: str | None = None) -> Document:
    """Load a single PDF file as one :class:`Document`.

    Pages are joined with a newline so chunk windows may span page
    boundaries.
    """
    path = Path(path)
    pages = PyPDFLoader(str(path)).load()
    return Document(
        document_id=document_id or path.name,
        text="\n".join(page.page_content for page in pages),
        metadata={
            "source": str(path),
            "ingested_at": utc_now_iso(),
            "page_count": len(pages),
        },
    )


def load_pdf_directory(path: str | Path, glob: str = "**/*") -> list[Document]:
    """Recursively load every PDF below *path*.

    Parameters
    ----------
    path:
        Root directory containing source documents.
    glob:
        File-matching pattern; only matches with a ``.pdf`` suffix (any
        case) are loaded.

    Returns
    -------
    list[Document]
        One document per file, sorted by relative path. The relative path
        is the document identifier.

    Raises
    ------
    LoadError
        When the directory does not exist or a file cannot be parsed.
    """
    root = Path(path)
    if not root.is_dir():
        raise LoadError(f"Directory not found: {root}")

    files = sorted(p for p in root.glob(glob) if p.is_file() and p.suffix.lower() == ".pdf")
    documents: list[Document] = []
    for fpath in files:
        rel = fpath.relative_to(root).as_posix()
        try:
            documents.append(load_pdf(fpath, document_id=rel))
        except Exception as exc:
            raise LoadError(f"Could not read {fpath}: {exc}") from exc
    logger.info("Loaded %d PDFs from '%s'", len(documents), root)
    return documents
