"""File-name heuristics for saved-aside copies and starter content."""

from __future__ import annotations

import posixpath
import re
from typing import Optional, Pattern, Sequence, Tuple

_MARKER_WORDS = "backup|bak|old|copy|broken|temp|tmp|orig"

# Matched against the whole file name, extension included.
_NAME_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(rf"[._-](?:{_MARKER_WORDS})\.", re.IGNORECASE),
    re.compile(r"\.(?:bak|old|orig|backup|tmp|swp)$", re.IGNORECASE),
    re.compile(r"~$"),
    re.compile(r"^copy of\s", re.IGNORECASE),
)

# Matched against the stem so "Widget (1).tsx" and "notes-old.md" are caught.
_STEM_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(rf"[._-](?:{_MARKER_WORDS})$", re.IGNORECASE),
    re.compile(r"\s+copy(?:\s+\d+)?$", re.IGNORECASE),
    re.compile(r"\s+\(\d+\)$"),
    re.compile(r"\s-\scopy(?:\s\(\d+\))?$", re.IGNORECASE),
)

_TEMPLATE_KEYWORDS: Tuple[str, ...] = ("template", "example", "sample")


class BackupNameMatcher:
    """Recognises backup/copy/temp/broken naming and derives the probable original."""

    def __init__(
        self,
        name_patterns: Sequence[Pattern[str]] = _NAME_PATTERNS,
        stem_patterns: Sequence[Pattern[str]] = _STEM_PATTERNS,
    ) -> None:
        self._name_patterns = tuple(name_patterns)
        self._stem_patterns = tuple(stem_patterns)

    def is_backup_name(self, name: str) -> bool:
        name = posixpath.basename(name)
        if any(pattern.search(name) for pattern in self._name_patterns):
            return True
        stem, _ = posixpath.splitext(name)
        return any(pattern.search(stem) for pattern in self._stem_patterns)

    def derive_original(self, name: str) -> Optional[str]:
        """Strip known backup suffixes; None when nothing was stripped."""
        original = posixpath.basename(name)
        original = re.sub(r"\.(?:bak|old|orig|backup|tmp|swp)$", "", original, flags=re.IGNORECASE)
        original = original.rstrip("~")
        original = re.sub(r"^copy of\s+", "", original, flags=re.IGNORECASE)
        original = re.sub(rf"[._-](?:{_MARKER_WORDS})(?=\.)", "", original, flags=re.IGNORECASE)

        stem, ext = posixpath.splitext(original)
        for pattern in self._stem_patterns:
            stem = pattern.sub("", stem)
        original = f"{stem}{ext}"

        if not stem or original == posixpath.basename(name):
            return None
        return original


def is_template_name(name: str) -> bool:
    lowered = posixpath.basename(name).lower()
    return any(keyword in lowered for keyword in _TEMPLATE_KEYWORDS)


__all__ = ["BackupNameMatcher", "is_template_name"]
