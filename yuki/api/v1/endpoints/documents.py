from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session
from typing import List
import logging

from yuki.core.deps import get_db, get_model_gateway, get_storage
from yuki.core.exceptions import BaseAppException, NotFoundError
from yuki.schemas.document import DocumentResponse, ProcessingResult
from yuki.services.document_service import DocumentStorage
from yuki.services.ingestion_service import DOCUMENT_TYPES, IngestionService
from yuki.services.ledger_service import LedgerService
from yuki.services.providers import ModelGateway

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=List[ProcessingResult], response_model_exclude_none=True)
async def upload_documents(
    files: List[UploadFile] = File(...),
    document_type: str = Form(...),
    db: Session = Depends(get_db),
    gateway: ModelGateway = Depends(get_model_gateway),
    storage: DocumentStorage = Depends(get_storage),
):
    """Upload one or more statements or receipts.

    Files are processed one after another; each gets its own result and a
    failed file does not stop the rest of the batch.
    """
    if document_type not in DOCUMENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"document_type must be one of: {', '.join(DOCUMENT_TYPES)}"
        )

    batch = []
    for upload in files:
        batch.append((upload.filename or "upload", await upload.read()))
    logger.info(f"Upload batch of {len(batch)} files as {document_type}")

    service = IngestionService(db, gateway, storage=storage)
    return service.process_batch(batch, document_type)


@router.get("/", response_model=List[DocumentResponse])
def list_documents(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return LedgerService.list_documents(db, limit=limit, offset=offset)


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(document_id: str, db: Session = Depends(get_db)):
    try:
        return LedgerService.get_document(db, document_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{document_id}")
def delete_document(
    document_id: str,
    db: Session = Depends(get_db),
    storage: DocumentStorage = Depends(get_storage),
):
    """Delete a document together with everything extracted from it"""
    try:
        filepath = LedgerService.delete_document(db, document_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BaseAppException as e:
        raise HTTPException(status_code=500, detail=str(e))

    # Rows are gone; the file goes last so a failed delete never orphans data
    storage.delete(filepath)
    return {"message": "Document deleted successfully"}
