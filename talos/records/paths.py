"""Record path validation and the tree listing shown by /ls."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from talos.errors import ValidationError

SEPARATOR = "/"


def validate_record_path(path: str) -> str:
    """Return the stripped path, or raise ValidationError before any request."""
    path = path.strip()
    if not path or path.endswith(SEPARATOR):
        raise ValidationError("A name for the secret is required.")
    return path


def validate_category(path: str) -> str:
    path = path.strip().strip(SEPARATOR)
    if not path:
        raise ValidationError("A category name is required.")
    return path


def record_name(path: str) -> str:
    return path.rstrip(SEPARATOR).split(SEPARATOR)[-1]


@dataclass(frozen=True)
class TreeEntry:
    path: str
    name: str
    depth: int
    is_dir: bool


def flatten_tree(nodes: Iterable[dict[str, Any]], query: str = "") -> list[TreeEntry]:
    """Flatten the /api/tree response into display order.

    With a query, only matching entries, their ancestor categories and the
    contents of matching categories are kept (case-insensitive substring
    match on the entry name).
    """
    needle = query.strip().lower()
    entries: list[TreeEntry] = []

    def walk(items: Iterable[dict[str, Any]], depth: int, inherited: bool) -> bool:
        matched_any = False
        for node in items:
            name = str(node.get("name", ""))
            path = str(node.get("path", name))
            is_dir = bool(node.get("is_dir", False))
            mark = len(entries)
            entries.append(TreeEntry(path=path, name=name, depth=depth, is_dir=is_dir))
            self_match = not needle or inherited or needle in name.lower()
            child_match = walk(node.get("children") or [], depth + 1, self_match)
            if needle and not (self_match or child_match):
                del entries[mark:]
                continue
            matched_any = True
        return matched_any

    walk(nodes, 0, False)
    return entries


def render_tree(entries: list[TreeEntry]) -> str:
    lines = []
    for entry in entries:
        icon = "▸" if entry.is_dir else "•"
        lines.append(f"{'  ' * entry.depth}{icon} {entry.name}")
    return "\n".join(lines)
