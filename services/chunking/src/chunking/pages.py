"""Page numbers for chunks, recovered from the cracker's '--- Page N ---' markers."""
import re

PAGE_MARKER = re.compile(r"--- Page (\d+) ---")


def extract_page_number(chunk_text: str) -> int | None:
    """First page marker inside the chunk, if any."""
    m = PAGE_MARKER.search(chunk_text)
    return int(m.group(1)) if m else None


def resolve_page_numbers(content: str, chunk_texts: list[str]) -> list[int | None]:
    """Page on which each chunk starts.

    A chunk is located in the source content (searching forward from the
    previous chunk) and assigned the last marker at or before that position.
    Chunks that cannot be located fall back to their own first marker, and
    then to the page of the preceding chunk.
    """
    markers = [(m.start(), int(m.group(1))) for m in PAGE_MARKER.finditer(content)]
    pages: list[int | None] = []
    cursor = 0
    previous: int | None = None
    for text in chunk_texts:
        lines = text.strip().splitlines()
        head = lines[0].strip()[:40] if lines else ""
        pos = content.find(head, cursor) if head else -1
        page: int | None = None
        if pos >= 0:
            cursor = pos
            for start, number in markers:
                if start > pos:
                    break
                page = number
        if page is None:
            page = extract_page_number(text)
        if page is None:
            page = previous
        pages.append(page)
        previous = page
    return pages
