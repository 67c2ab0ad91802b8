from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


class AnalyzeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    extracted_text: str = Field(alias="extractedText")
    highlighted_text: str = Field(default="", alias="highlightedText")
    match_percentage: int = Field(ge=0, le=100, alias="matchPercentage")
    matched_words: List[str] = Field(default_factory=list, alias="matchedWords")
    missing_words: List[str] = Field(default_factory=list, alias="missingWords")
    emailed: bool = False


class EmailReportRequest(BaseModel):
    """Payload for emailing a previously computed analysis."""
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    extracted_text: str = Field(default="", alias="extractedText")
    match_percentage: int = Field(default=0, ge=0, le=100, alias="matchPercentage")
    matched_words: List[str] = Field(default_factory=list, alias="matchedWords")
    missing_words: List[str] = Field(default_factory=list, alias="missingWords")

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("extracted_text", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v


class MessageResponse(BaseModel):
    message: str


class StatusResponse(BaseModel):
    status: str
    version: str


class Settings(BaseModel):
    max_upload_bytes: int = 10 * 1024 * 1024
    extraction_timeout_seconds: float = 30.0
    report_preview_chars: int = 6000
    scoring_mode: str = "taxonomy"
    taxonomy_path: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_timeout_seconds: float = 30.0
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    email_from: Optional[str] = None
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
