"""Sentence and paragraph splitting shared by the strategies."""
import re

_PAGE_MARKER = re.compile(r"^--- Page \d+ ---$")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+(?=\S)")


def split_paragraphs(text: str) -> list[str]:
    """Blank-line separated blocks. A page marker line always starts a new block."""
    blocks: list[str] = []
    current: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or _PAGE_MARKER.match(stripped):
            if current:
                blocks.append("\n".join(current))
                current = []
            if stripped:
                current.append(stripped)
            continue
        current.append(stripped)
    if current:
        blocks.append("\n".join(current))
    return blocks


def split_sentences(text: str) -> list[str]:
    """Sentence units: paragraphs further split after . ! or ? followed by whitespace."""
    out: list[str] = []
    for block in split_paragraphs(text):
        out.extend(s.strip() for s in _SENTENCE_BREAK.split(block) if s.strip())
    return out


def cut_at_boundary(text: str, max_len: int) -> tuple[str, str]:
    """Split text at the last sentence end, newline or space before max_len. Returns (head, rest)."""
    if len(text) <= max_len:
        return text, ""
    window = text[:max_len]
    cut = -1
    for m in re.finditer(r"[.!?]\s", window):
        cut = m.end()
    if cut <= 0:
        cut = window.rfind("\n") + 1
    if cut <= 0:
        cut = window.rfind(" ") + 1
    if cut <= 0:
        cut = max_len
    return text[:cut].rstrip(), text[cut:].lstrip()
