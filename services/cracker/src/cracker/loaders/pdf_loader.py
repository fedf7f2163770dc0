"""Load .pdf files page by page with page markers."""
from pathlib import Path

from pypdf import PdfReader

from cracker.loaders.base import BaseLoader, LoadedDocument


def format_page(page_number: int, text: str) -> str:
    return f"--- Page {page_number} ---\n{text}\n\n"


class PDFLoader(BaseLoader):
    @property
    def extensions(self) -> tuple[str, ...]:
        return (".pdf",)

    def load(self, path: Path) -> LoadedDocument:
        reader = PdfReader(str(path))
        parts = []
        for number, page in enumerate(reader.pages, start=1):
            parts.append(format_page(number, page.extract_text() or ""))
        return LoadedDocument(content="".join(parts), page_count=len(reader.pages))
