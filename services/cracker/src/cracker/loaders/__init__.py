from cracker.loaders.base import BaseLoader, LoadedDocument
from cracker.loaders.pdf_loader import PDFLoader, format_page

__all__ = ["BaseLoader", "LoadedDocument", "PDFLoader", "format_page"]
