"""Ruleset and document kind from the directory a file lives in."""
from pathlib import PurePosixPath

DEFAULT_RULESET = "default"

SOURCEBOOK = "Sourcebook"
ADVENTURE = "Adventure"
TRANSCRIPT = "Transcript"

_KIND_BY_SEGMENT = {
    "transcript": TRANSCRIPT,
    "transcripts": TRANSCRIPT,
    "adventure": ADVENTURE,
    "adventures": ADVENTURE,
}


def _segments(relative_directory: str | None) -> list[str]:
    if not relative_directory:
        return []
    normalized = relative_directory.replace("\\", "/").strip("/")
    return [p for p in PurePosixPath(normalized).parts if p not in ("", ".")]


def extract_ruleset_id(relative_directory: str | None) -> str:
    """First path segment names the ruleset; files at the root fall back to 'default'."""
    parts = _segments(relative_directory)
    return parts[0] if parts else DEFAULT_RULESET


def determine_document_kind(relative_directory: str | None) -> str:
    for part in _segments(relative_directory):
        kind = _KIND_BY_SEGMENT.get(part.lower())
        if kind is not None:
            return kind
    return SOURCEBOOK
