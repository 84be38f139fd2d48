# =============================================================================
# Documents API — Knowledge Base Ingestion and Management
# =============================================================================
#
# ENDPOINTS:
#   POST   /documents/upload  — upload one or more files (multipart)
#   POST   /documents/text    — save typed or dictated text as a document
#   GET    /documents         — list documents (metadata only)
#   GET    /documents/search  — raw similarity search results
#   DELETE /documents/{id}    — delete a document and its stored file
#
# UPLOAD PIPELINE (per file, in order):
#   1. Validate: non-empty, within max_upload_bytes, supported type
#   2. Store the bytes under documents/<epoch-ms>-<random>.<ext>
#   3. Extract text (Docling in a worker thread, or UTF-8 decode)
#   4. Embed the text and insert the document row (the stored file is
#      removed again if this fails)
#   5. Commit, so earlier files survive a failure on a later one
#
# DESIGN DECISION: Synchronous ingestion, stop at the first failure.
# Personal documents are small, so the request waits for parsing instead
# of going through a task queue. Files that were already stored stay
# stored; the failing file and everything after it are not.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import uuid

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.config import settings
from lifedesk.db.engine import get_async_session
from lifedesk.models.requests import TextDocumentCreate
from lifedesk.models.responses import DocumentResponse, Source, UploadResponse
from lifedesk.services import retrieval, storage
from lifedesk.services.parser import UnsupportedFileTypeError, extract_text, is_docling_type, is_text_type

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])

DEFAULT_CONTENT_TYPE = "application/octet-stream"


async def _ingest_upload(session: AsyncSession, file: UploadFile) -> DocumentResponse:
    filename = file.filename or "upload"
    content_type = file.content_type or DEFAULT_CONTENT_TYPE

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail=f"'{filename}' is empty.")
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=(
                f"'{filename}' is {len(data)} bytes; the limit is "
                f"{settings.max_upload_bytes} bytes."
            ),
        )
    if not (is_docling_type(content_type, filename) or is_text_type(content_type, filename)):
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported file type '{content_type}' for '{filename}'.",
        )

    key = storage.save_upload(data, filename)
    try:
        text = await asyncio.to_thread(extract_text, data, filename, content_type)
    except (UnsupportedFileTypeError, RuntimeError) as e:
        storage.delete_file(key)
        status = 415 if isinstance(e, UnsupportedFileTypeError) else 422
        raise HTTPException(status_code=status, detail=str(e)) from e

    if not text.strip():
        storage.delete_file(key)
        raise HTTPException(
            status_code=422, detail=f"No text could be extracted from '{filename}'.",
        )

    try:
        document = await retrieval.store_document(
            session, title=filename, content=text, file_type=content_type, file_path=key,
        )
        await session.commit()
    except Exception:
        storage.delete_file(key)
        raise
    return DocumentResponse.model_validate(document)


@router.post(
    "/documents/upload",
    response_model=UploadResponse,
    status_code=201,
    summary="Upload documents to the knowledge base",
    description=(
        "Accepts PDF, DOCX and plain-text files (.txt, .md, .csv, .json). "
        "Files are processed in order; processing stops at the first file "
        "that fails, and files before it remain stored."
    ),
)
async def upload_documents(
    files: list[UploadFile] = File(..., description="One or more files to add"),
    session: AsyncSession = Depends(get_async_session),
) -> UploadResponse:
    stored: list[DocumentResponse] = []
    for file in files:
        try:
            stored.append(await _ingest_upload(session, file))
        except HTTPException:
            raise
        except ValueError as e:
            logger.error("Configuration error while ingesting %s: %s", file.filename, e)
            raise HTTPException(
                status_code=503, detail=f"Service configuration error: {e}",
            ) from e
        except Exception as e:
            logger.exception("Ingestion failed for %s: %s", file.filename, e)
            raise HTTPException(
                status_code=502, detail=f"Failed to ingest '{file.filename}': {e}",
            ) from e

    logger.info("Uploaded %d documents", len(stored))
    return UploadResponse(documents=stored)


@router.post(
    "/documents/text",
    response_model=DocumentResponse,
    status_code=201,
    summary="Save text as a document",
)
async def create_text_document(
    request: TextDocumentCreate,
    session: AsyncSession = Depends(get_async_session),
) -> DocumentResponse:
    try:
        document = await retrieval.store_document(
            session, title=request.title, content=request.content, file_type="text/plain",
        )
    except ValueError as e:
        raise HTTPException(
            status_code=503, detail=f"Service configuration error: {e}",
        ) from e
    except Exception as e:
        logger.exception("Failed to store text document %r: %s", request.title, e)
        raise HTTPException(
            status_code=502, detail=f"Failed to store document: {e}",
        ) from e
    return DocumentResponse.model_validate(document)


@router.get(
    "/documents",
    response_model=list[DocumentResponse],
    summary="List documents, newest first",
)
async def list_documents(
    session: AsyncSession = Depends(get_async_session),
) -> list[DocumentResponse]:
    documents = await retrieval.list_documents(session)
    return [DocumentResponse.model_validate(d) for d in documents]


@router.get(
    "/documents/search",
    response_model=list[Source],
    summary="Search documents by similarity",
    description="Returns the top-K documents scored against the query, best first.",
)
async def search_documents(
    q: str = Query(..., min_length=1, description="Search text"),
    top_k: int | None = Query(default=None, ge=1, le=50),
    session: AsyncSession = Depends(get_async_session),
) -> list[Source]:
    try:
        results = await retrieval.search_documents(session, q, top_k)
    except ValueError as e:
        raise HTTPException(
            status_code=503, detail=f"Service configuration error: {e}",
        ) from e
    except Exception as e:
        logger.exception("Document search failed for %r: %s", q, e)
        raise HTTPException(status_code=502, detail=f"Search failed: {e}") from e
    return [Source(**r.to_dict()) for r in results]


@router.delete(
    "/documents/{document_id}",
    status_code=204,
    summary="Delete a document",
)
async def delete_document(
    document_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
) -> None:
    document = await retrieval.delete_document(session, document_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found.")
    await session.commit()

    if document.file_path:
        try:
            storage.delete_file(document.file_path)
        except (OSError, ValueError) as e:
            logger.warning("Could not remove stored file %s: %s", document.file_path, e)
