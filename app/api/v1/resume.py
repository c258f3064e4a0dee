import json
import logging

from fastapi import APIRouter, Depends, File, Header, HTTPException, Request, UploadFile, status
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.security import check_api_key
from app.parsing.parse import DocumentExtractionError, extract_text
from app.parsing.upload import (
    DocumentTooLargeError,
    UnsupportedDocumentError,
    resolve_extension,
    validate_upload,
)
from app.sanitize import sanitize_scalar, sanitize_structured
from app.schemas.resume import (
    DocumentSummary,
    ImproveResumeResponse,
    JobFitRequest,
    JobFitResponse,
    ParseResumeRequest,
    ParseResumeResponse,
    UploadResumeResponse,
)
from app.services.resume_service import analyze_job_fit, improve_resume, parse_resume

router = APIRouter()
logger = logging.getLogger(__name__)

_READ_CHUNK_BYTES = 1024 * 64


def _auth(x_api_key: str | None = Header(default=None, alias="X-API-Key")):
    check_api_key(x_api_key)


async def _read_upload(file: UploadFile, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(_READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=str(DocumentTooLargeError(max_bytes)),
            )
        chunks.append(chunk)
    return b"".join(chunks)


@router.post(
    "/resume/upload",
    response_model=UploadResumeResponse,
    response_model_by_alias=False,
)
@rate_limit()
async def upload_resume(
    request: Request,
    file: UploadFile = File(...),
    _: None = Depends(_auth),
):
    filename = file.filename or "uploaded-resume"
    max_bytes = settings.max_upload_bytes
    content = await _read_upload(file, max_bytes)

    try:
        ext = validate_upload(
            filename=filename,
            content=content,
            max_bytes=max_bytes,
            ext=resolve_extension(filename, file.content_type),
        )
    except DocumentTooLargeError as exc:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc)) from exc
    except UnsupportedDocumentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        document = await run_in_threadpool(extract_text, filename=filename, content=content, ext=ext)
    except DocumentExtractionError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    if not document.text.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="No extractable text found in this document.",
        )

    logger.info(
        json.dumps(
            {
                "event": "resume_upload",
                "doc_id": document.doc_id,
                "source_type": document.source_type,
                "bytes": len(content),
                "chars": document.char_count,
                "warnings": len(document.warnings),
            }
        )
    )

    parsed = await run_in_threadpool(parse_resume, sanitize_scalar(document.text))
    return UploadResumeResponse(
        document=DocumentSummary(
            doc_id=document.doc_id,
            filename=document.filename,
            source_type=document.source_type,
            pages=document.pages,
            warnings=document.warnings,
            char_count=document.char_count,
        ),
        parsed_data=parsed,
    )


@router.post(
    "/resume/parse",
    response_model=ParseResumeResponse,
    response_model_by_alias=False,
)
@rate_limit()
def parse_resume_text(request: Request, payload: ParseResumeRequest, _: None = Depends(_auth)):
    _ = request
    parsed = parse_resume(sanitize_scalar(payload.resume_text))
    return ParseResumeResponse(parsed_data=parsed)


@router.post(
    "/job-fit/analyze",
    response_model=JobFitResponse,
    response_model_by_alias=False,
)
@rate_limit()
def analyze_fit(request: Request, payload: JobFitRequest, _: None = Depends(_auth)):
    _ = request
    analysis = analyze_job_fit(
        sanitize_structured(payload.parsed_resume),
        sanitize_scalar(payload.job_title),
        sanitize_scalar(payload.job_description),
    )
    return JobFitResponse(analysis=analysis)


@router.post(
    "/resume/improve",
    response_model=ImproveResumeResponse,
    response_model_by_alias=False,
)
@rate_limit()
def improve(request: Request, payload: JobFitRequest, _: None = Depends(_auth)):
    _ = request
    improvement = improve_resume(
        sanitize_structured(payload.parsed_resume),
        sanitize_scalar(payload.job_title),
        sanitize_scalar(payload.job_description),
    )
    return ImproveResumeResponse(improvement=improvement)
