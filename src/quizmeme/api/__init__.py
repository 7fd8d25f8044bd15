"""Quizmeme - FastAPI REST API layer.

This package contains the FastAPI application factory, the Pydantic request
and response models, and the payload extraction logic.

Modules
-------
main
    Application factory, route handlers and the ``main()`` CLI entry point.
models
    Pydantic models for API requests and responses.
payload
    Extraction of the generate parameters from JSON, form or query input.
"""
