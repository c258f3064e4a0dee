"""Resume parsing, job-fit analysis and improvement through the AI gateway.

Every function here expects inputs that were already sanitized once at the
request boundary (see ``app.sanitize``). They never sanitize again.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from app.ai.errors import GatewayResponseError
from app.ai.gateway import json_completion
from app.core.config import settings
from app.schemas.resume import JobFitAnalysis, ParsedResume, ResumeImprovement
from app.services.prompts import (
    build_improve_messages,
    build_job_fit_messages,
    build_parse_messages,
)

logger = logging.getLogger("app.resume")

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _short_hash(value: str | None) -> str:
    normalized = (value or "").strip()
    if not normalized:
        return ""
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:12]


def _text_preview(value: str) -> str | None:
    limit = settings.log_text_preview_chars
    if limit <= 0:
        return None
    return value[:limit]


def _validate(model: type[_ModelT], payload: dict[str, Any], operation: str) -> _ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning(
            json.dumps({"event": "ai_schema_invalid", "operation": operation, "errors": exc.error_count()})
        )
        raise GatewayResponseError("AI gateway returned data in an unexpected shape.") from exc


def parse_resume(resume_text: str) -> ParsedResume:
    logger.info(
        json.dumps(
            {
                "event": "parse_resume",
                "text_len": len(resume_text),
                "text_hash": _short_hash(resume_text),
                "text_preview": _text_preview(resume_text),
            }
        )
    )
    payload = json_completion(build_parse_messages(resume_text), operation="parse_resume")
    return _validate(ParsedResume, payload, "parse_resume")


def analyze_job_fit(parsed_resume: dict[str, Any], job_title: str, job_description: str) -> JobFitAnalysis:
    logger.info(
        json.dumps(
            {
                "event": "analyze_job_fit",
                "job_title_hash": _short_hash(job_title),
                "job_description_len": len(job_description),
                "resume_keys": sorted(parsed_resume.keys()),
            }
        )
    )
    payload = json_completion(
        build_job_fit_messages(parsed_resume, job_title, job_description),
        operation="analyze_job_fit",
    )
    return _validate(JobFitAnalysis, payload, "analyze_job_fit")


def improve_resume(parsed_resume: dict[str, Any], job_title: str, job_description: str) -> ResumeImprovement:
    logger.info(
        json.dumps(
            {
                "event": "improve_resume",
                "job_title_hash": _short_hash(job_title),
                "job_description_len": len(job_description),
                "resume_keys": sorted(parsed_resume.keys()),
            }
        )
    )
    payload = json_completion(
        build_improve_messages(parsed_resume, job_title, job_description),
        operation="improve_resume",
        max_output_tokens=2000,
    )
    return _validate(ResumeImprovement, payload, "improve_resume")
