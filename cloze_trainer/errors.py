"""Failure kinds raised by the generation pipeline.

Every error carries a user-facing message; ``generate_cloze_test`` turns
them into ``{"success": False, "error": ...}`` at the outer boundary.
"""
from __future__ import annotations


class GenerationError(Exception):
    kind = "generation"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(GenerationError):
    kind = "configuration"


class GenerationTimeoutError(GenerationError):
    kind = "timeout"


class UpstreamError(GenerationError):
    kind = "upstream"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class EmptyResponseError(GenerationError):
    kind = "empty_response"


class MalformedResponseError(GenerationError):
    kind = "malformed_response"

    def __init__(self, message: str, preview: str = ""):
        super().__init__(message)
        self.preview = preview


class SchemaError(GenerationError):
    kind = "schema"
