"""Request payload extraction for the generate endpoint.

Clients send the same three fields in one of several encodings.  The
encoding is picked from the ``Content-Type`` header:

- ``application/json`` (or ``*+json``): JSON body
  ``{"base": ..., "question": ..., "answers": [...]}``.
- ``application/x-www-form-urlencoded`` or ``multipart/form-data``: form
  fields ``base``, ``question`` and a repeated ``answers`` field.
- anything else, including no body at all: query parameters with the same
  names as the form fields.

All three produce a :class:`~quizmeme.api.models.GenerateRequest`, so the
rest of the pipeline does not know which one was used.
"""

from __future__ import annotations

from pydantic import ValidationError
from starlette.exceptions import HTTPException
from starlette.requests import Request

from quizmeme.api.models import GenerateRequest
from quizmeme.core.errors import PayloadError

JSON_TYPE = "application/json"
FORM_TYPES = frozenset({"application/x-www-form-urlencoded", "multipart/form-data"})


def _media_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";", 1)[0].strip().lower()


def _describe(exc: ValidationError) -> str:
    """Flatten a validation error into a single line."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "body"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def _from_fields(fields) -> GenerateRequest:
    """Build a request from a multi-valued mapping (form or query string)."""
    data = {
        "base": fields.get("base", ""),
        "question": fields.get("question", ""),
        "answers": fields.getlist("answers"),
    }
    return GenerateRequest.model_validate(data)


async def read_payload(request: Request) -> GenerateRequest:
    """Extract the generate parameters from *request*.

    Args:
        request: The incoming request.

    Returns:
        The validated request parameters.  ``base`` may still be empty; the
        caller substitutes the default template.

    Raises:
        PayloadError: If the body cannot be parsed or a field has the wrong
            type.
    """
    media_type = _media_type(request)
    try:
        if media_type == JSON_TYPE or media_type.endswith("+json"):
            body = await request.body()
            return GenerateRequest.model_validate_json(body)
        if media_type in FORM_TYPES:
            try:
                async with request.form() as form:
                    return _from_fields(form)
            except HTTPException as exc:
                raise PayloadError(f"reading payload: {exc.detail}") from exc
        return _from_fields(request.query_params)
    except ValidationError as exc:
        raise PayloadError(f"reading payload: {_describe(exc)}") from exc
    except ValueError as exc:
        raise PayloadError(f"reading payload: {exc}") from exc
