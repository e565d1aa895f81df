"""
Talos records — the secret record blob codec and helpers around it.

Public API:
    decode(blob)                                   -> SecretRecord
    encode(record, was_redacted, user_edited)      -> blob for /api/save
    generate_password(length, upper, numbers, symbols)
"""

from __future__ import annotations

from talos.records.codec import (
    HIDDEN,
    KEEP,
    RedactedMarker,
    RedactionError,
    SecretRecord,
    classify_line,
    decode,
    encode,
)
from talos.records.passgen import GeneratorOptions, generate_password

__all__ = [
    "HIDDEN",
    "KEEP",
    "RedactedMarker",
    "RedactionError",
    "SecretRecord",
    "classify_line",
    "decode",
    "encode",
    "GeneratorOptions",
    "generate_password",
]
