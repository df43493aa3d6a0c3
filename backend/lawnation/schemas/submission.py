"""
Law Nation Editorial - Submission Schemas
========================================
"""

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValueError("invalid email address")
    return value


class SubmissionPayload(BaseModel):
    title: str = Field(..., min_length=3, max_length=1024)
    abstract: Optional[str] = Field(default=None, max_length=20000)
    category: Optional[str] = Field(default=None, max_length=120)
    keywords: list[str] = Field(default_factory=list)
    author_name: str = Field(..., min_length=2, max_length=200)
    author_email: str
    second_author_name: Optional[str] = Field(default=None, max_length=200)
    second_author_email: Optional[str] = None
    pdf_url: str = Field(..., min_length=1, max_length=2048)
    docx_url: Optional[str] = Field(default=None, max_length=2048)

    @field_validator("author_email", "second_author_email")
    @classmethod
    def _email(cls, value: Optional[str]) -> Optional[str]:
        return _check_email(value)

    @field_validator("title", "author_name")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class VerifyCodeRequest(BaseModel):
    email: str
    code: str = Field(..., min_length=4, max_length=12)

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return _check_email(value)


class ConfirmTokenRequest(BaseModel):
    token: str = Field(..., min_length=16, max_length=256)


class ResendCodeRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return _check_email(value)
