from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI, UploadFile, File, Form, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

from errors import (
    ResumeAnalyzerError,
    MissingInputError,
    InvalidRequestError,
    ExtractionError,
    PayloadTooLargeError,
)
from models import (
    AnalyzeResponse,
    EmailReportRequest,
    MessageResponse,
    StatusResponse,
    Settings,
)
from utils import (
    extract_text_from_pdf_bytes,
    highlight_matches,
    make_request_id,
    redact_long_text,
)
from email_service import EmailService
from matching import match_resume_to_job, KeywordTaxonomy, load_taxonomy, get_default_taxonomy


# Load environment from the working directory .env and the one beside this file
load_dotenv()
load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env", override=False)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"
GENERIC_ERROR_MESSAGE = "Server error. Please try again."

# Multipart boundaries, part headers and the email field on top of two files
MULTIPART_OVERHEAD_BYTES = 64 * 1024
UPLOAD_FIELDS = {"resume", "jd", "jobDescription"}


def get_settings() -> Settings:
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    return Settings(
        max_upload_bytes=int(float(os.getenv("MAX_UPLOAD_MB", "10")) * 1024 * 1024),
        extraction_timeout_seconds=float(os.getenv("EXTRACTION_TIMEOUT_SECONDS", "30")),
        report_preview_chars=int(os.getenv("REPORT_PREVIEW_CHARS", "6000")),
        scoring_mode=os.getenv("SCORING_MODE", "taxonomy"),
        taxonomy_path=os.getenv("TAXONOMY_PATH") or None,
        smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
        smtp_port=int(os.getenv("SMTP_PORT", "587")),
        smtp_timeout_seconds=float(os.getenv("SMTP_TIMEOUT_SECONDS", "30")),
        email_user=os.getenv("EMAIL_USER"),
        email_pass=os.getenv("EMAIL_PASS"),
        email_from=os.getenv("EMAIL_FROM"),
        cors_origins=origins or ["*"],
    )


def build_taxonomy(settings: Settings) -> KeywordTaxonomy:
    """
    Resolve the configured taxonomy.

    Raises:
        TaxonomyError: If TAXONOMY_PATH points at a missing or malformed file
    """
    if settings.taxonomy_path:
        return load_taxonomy(settings.taxonomy_path)
    return get_default_taxonomy()


STARTUP_SETTINGS = get_settings()

# Loaded once at import so a bad TAXONOMY_PATH stops the server from starting
TAXONOMY = build_taxonomy(STARTUP_SETTINGS)


def get_taxonomy() -> KeywordTaxonomy:
    return TAXONOMY


def get_email_service(settings: Settings = Depends(get_settings)) -> EmailService:
    return EmailService(settings)


app = FastAPI(title="AI Resume Analyzer API", version=VERSION)


def error_response(request: Request, exc: ResumeAnalyzerError) -> JSONResponse:
    if exc.detail:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message} ({exc.detail})")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


def translate_validation_error(path: str, errors: List[Dict[str, Any]]) -> ResumeAnalyzerError:
    """Map FastAPI validation errors onto the boundary error types."""
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        field = loc[1] if len(loc) > 1 and loc[0] == "body" else None
        if path == "/email-report" and (loc == ["body"] or field == "email"):
            return MissingInputError("Recipient email is required.")
        if path == "/analyze" and field in UPLOAD_FIELDS:
            return MissingInputError("Both resume and job description PDFs are required.")

    if not errors:
        return InvalidRequestError()
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"] or ["body"]
    return InvalidRequestError(
        f"Invalid request: {'.'.join(loc)}: {first.get('msg', 'invalid value')}.",
        detail=str(errors),
    )


@app.middleware("http")
async def limit_upload_size(request: Request, call_next):
    """Refuse oversized uploads from Content-Length before the body is read."""
    if request.method == "POST" and request.url.path == "/analyze":
        length = request.headers.get("content-length")
        if length is not None:
            provider = request.app.dependency_overrides.get(get_settings, get_settings)
            max_bytes = provider().max_upload_bytes
            try:
                size = int(length)
            except ValueError:
                return error_response(request, InvalidRequestError("Invalid Content-Length header."))
            if size > 2 * max_bytes + MULTIPART_OVERHEAD_BYTES:
                return error_response(
                    request,
                    PayloadTooLargeError(max_bytes, detail=f"Content-Length {size}"),
                )
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=STARTUP_SETTINGS.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ResumeAnalyzerError)
async def resume_analyzer_error_handler(request: Request, exc: ResumeAnalyzerError):
    return error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(request, translate_validation_error(request.url.path, exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": GENERIC_ERROR_MESSAGE})


async def read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    """
    Read an uploaded file, refusing anything above ``max_bytes``.

    Covers chunked requests that carry no Content-Length.
    """
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise PayloadTooLargeError(max_bytes, detail=f"{upload.filename} exceeds {max_bytes} bytes")
    return data


async def extract_documents(
    resume_bytes: bytes,
    jd_bytes: bytes,
    timeout: float,
) -> Tuple[str, str]:
    """
    Extract both documents concurrently.

    Both extractions must succeed; the first failure fails the request.
    The joined work is bounded by ``timeout`` seconds.
    """
    try:
        resume_text, jd_text = await asyncio.wait_for(
            asyncio.gather(
                asyncio.to_thread(extract_text_from_pdf_bytes, resume_bytes, "resume PDF"),
                asyncio.to_thread(extract_text_from_pdf_bytes, jd_bytes, "job description PDF"),
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        raise ExtractionError(
            "Timed out reading the uploaded PDFs.",
            detail=f"extraction exceeded {timeout}s",
        )
    return resume_text, jd_text


@app.get("/", response_model=StatusResponse)
async def root():
    return {"status": "ok", "version": VERSION}


@app.get("/health")
async def health():
    return {"ok": True}


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze(
    resume: Optional[UploadFile] = File(default=None),
    jd: Optional[UploadFile] = File(default=None),
    job_description: Optional[UploadFile] = File(default=None, alias="jobDescription"),
    email: Optional[str] = Form(default=None),
    settings: Settings = Depends(get_settings),
    taxonomy: KeywordTaxonomy = Depends(get_taxonomy),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Score a resume PDF against a job description PDF.

    Form fields:
        resume: Resume PDF
        jd (or jobDescription): Job description PDF
        email: Optional recipient; when given the report is emailed as well

    Returns:
        Extracted resume text, highlighted text, match percentage and
        matched/missing keywords
    """
    request_id = make_request_id()
    if jd is None:
        jd = job_description

    if resume is None or jd is None:
        raise MissingInputError("Both resume and job description PDFs are required.")

    resume_bytes = await read_upload(resume, settings.max_upload_bytes)
    jd_bytes = await read_upload(jd, settings.max_upload_bytes)
    logger.info(
        f"[{request_id}] Analyze: resume={resume.filename} ({len(resume_bytes)} bytes), "
        f"jd={jd.filename} ({len(jd_bytes)} bytes)"
    )

    resume_text, jd_text = await extract_documents(
        resume_bytes, jd_bytes, settings.extraction_timeout_seconds
    )

    if not resume_text.strip():
        raise ExtractionError("Could not read text from the resume PDF.")

    logger.debug(f"[{request_id}] Resume preview: {redact_long_text(resume_text, 120)}")

    result = match_resume_to_job(
        resume_text,
        jd_text,
        taxonomy=taxonomy,
        scoring_mode=settings.scoring_mode,
    )

    message = "Resume analyzed successfully!"
    emailed = False
    recipient = (email or "").strip()
    if recipient:
        report = EmailReportRequest(
            email=recipient,
            extracted_text=resume_text,
            match_percentage=result.match_percentage,
            matched_words=list(result.matched_words),
            missing_words=list(result.missing_words),
        )
        await asyncio.to_thread(email_service.send_report, recipient, report)
        emailed = True
        message = f"{message} Report emailed to {recipient}."

    logger.info(f"[{request_id}] Analysis complete: {result.match_percentage}%")

    return AnalyzeResponse(
        message=message,
        extracted_text=resume_text,
        highlighted_text=highlight_matches(resume_text, result.matched_words, escape_html=True),
        match_percentage=result.match_percentage,
        matched_words=list(result.matched_words),
        missing_words=list(result.missing_words),
        emailed=emailed,
    )


@app.post("/email-report", response_model=MessageResponse)
async def email_report(
    report: EmailReportRequest,
    email_service: EmailService = Depends(get_email_service),
):
    """
    Email a previously computed analysis.

    Request Body:
        email: Recipient address
        extractedText, matchPercentage, matchedWords, missingWords
    """
    if not report.email:
        raise MissingInputError("Recipient email is required.")

    await asyncio.to_thread(email_service.send_report, report.email, report)
    return MessageResponse(message="Email sent successfully")
