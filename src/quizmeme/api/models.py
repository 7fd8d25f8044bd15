"""Pydantic request and response models for the Quizmeme API.

Models
------
GenerateRequest
    Input of ``GET /`` - template name, question and answers.  The same
    model is filled from a JSON body, form fields or query parameters.
ErrorResponse
    Envelope returned with every error status.
TemplatesResponse
    Payload of ``GET /templates``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class GenerateRequest(BaseModel):
    """Input of the ``GET /`` endpoint.

    Attributes:
        base: Template name.  Empty means the configured default template.
        question: Text drawn in the question block.
        answers: Texts drawn in the answer blocks, paired by position.
    """

    base: str = Field(
        default="",
        description="Template name; empty selects the default template.",
    )
    question: str = Field(
        default="",
        description="Question text.",
    )
    answers: list[str] = Field(
        default_factory=list,
        description="Answer texts, in block order.",
    )

    @field_validator("base", "question", mode="before")
    @classmethod
    def _null_text(cls, value):
        return "" if value is None else value

    @field_validator("answers", mode="before")
    @classmethod
    def _null_answers(cls, value):
        return [] if value is None else value


class ErrorResponse(BaseModel):
    """Error envelope: ``{"error": "<message>"}``."""

    error: str


class TemplatesResponse(BaseModel):
    """Registered template names and the default one."""

    templates: list[str]
    default: str
