"""
Secret record codec — the line-oriented blob format used by the decrypt and
save endpoints.

Layout:
    line 0      password (literal value or a redaction marker token)
    URL: ...    optional url
    User: ...   optional username
    anything    note lines, in order

Line 0 is the password by position only; it is never matched against the
metadata prefixes.

Redaction markers:
    HIDDEN  server -> client, the real secret was withheld (reveal=false)
    KEEP    client -> server, leave the stored secret unchanged
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

HIDDEN_TOKEN = "__TALOS_HIDDEN_SECRET__"
KEEP_TOKEN = "__TALOS_KEEP_SECRET__"

USER_PREFIX = "User: "
URL_PREFIX = "URL: "

PASSWORD_MASK = "•" * 12


class RedactedMarker(enum.Enum):
    """Sentinel standing in for a secret value that is not present."""

    HIDDEN = HIDDEN_TOKEN
    KEEP = KEEP_TOKEN

    def __repr__(self) -> str:
        return f"RedactedMarker.{self.name}"


HIDDEN = RedactedMarker.HIDDEN
KEEP = RedactedMarker.KEEP


class RedactionError(ValueError):
    """Raised when a redacted record would be written out as a real password."""


@dataclass(frozen=True)
class Password:
    value: str


@dataclass(frozen=True)
class Field:
    tag: str  # "user" or "url"
    value: str


@dataclass(frozen=True)
class NoteLine:
    text: str


Line = Password | Field | NoteLine

_TAGS: tuple[tuple[str, str], ...] = (
    (USER_PREFIX, "user"),
    (URL_PREFIX, "url"),
)


def classify_line(index: int, line: str) -> Line:
    """Classify one line of a record blob by its position and prefix."""
    if index == 0:
        return Password(line)
    for prefix, tag in _TAGS:
        if line.startswith(prefix):
            return Field(tag, line[len(prefix):])
    return NoteLine(line)


@dataclass(repr=False)
class SecretRecord:
    """One credential entry. Transient: built per read or per write."""

    password: str | RedactedMarker = ""
    username: str = ""
    url: str = ""
    note: str = ""

    @property
    def is_hidden(self) -> bool:
        return self.password is HIDDEN

    # Never includes the password text.
    def __repr__(self) -> str:
        password = repr(self.password) if isinstance(self.password, RedactedMarker) else "'***'"
        return (
            f"SecretRecord(password={password}, username={self.username!r}, "
            f"url={self.url!r}, note=<{len(self.note)} chars>)"
        )


def decode(blob: str) -> SecretRecord:
    """Decode a record blob. Never raises; absent fields are empty strings.

    Duplicate ``User:``/``URL:`` lines: the last occurrence wins.
    """
    lines = blob.replace("\r\n", "\n").split("\n")
    record = SecretRecord()
    note_lines: list[str] = []

    for index, line in enumerate(lines):
        item = classify_line(index, line)
        if isinstance(item, Password):
            record.password = HIDDEN if item.value == HIDDEN_TOKEN else item.value
        elif isinstance(item, Field):
            if item.tag == "user":
                record.username = item.value
            else:
                record.url = item.value
        else:
            note_lines.append(item.text)

    record.note = "\n".join(note_lines).strip()
    return record


def encode(record: SecretRecord, was_redacted: bool, user_edited_password: bool) -> str:
    """Encode a record for the save endpoint.

    Line 0 is the KEEP token only when the record was loaded redacted and the
    password input was left untouched. An empty literal password is a real
    value ("set to empty") and is emitted as an empty line 0.
    """
    if was_redacted and not user_edited_password:
        first = KEEP_TOKEN
    elif isinstance(record.password, RedactedMarker):
        raise RedactionError(
            "Record password is redacted; it cannot be saved as a literal value"
        )
    else:
        first = record.password

    lines = [first]
    if record.url:
        lines.append(f"{URL_PREFIX}{record.url}")
    if record.username:
        lines.append(f"{USER_PREFIX}{record.username}")
    if record.note:
        lines.append(record.note)
    return "\n".join(lines)


def display_password(revealed: str | None = None) -> str:
    """Text to show in a password field. Never the hidden token."""
    if revealed is not None and revealed != HIDDEN_TOKEN:
        return revealed
    return PASSWORD_MASK
