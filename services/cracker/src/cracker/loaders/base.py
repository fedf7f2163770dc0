"""Base loader interface."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass
class LoadedDocument:
    content: str
    page_count: int


class BaseLoader(ABC):
    @abstractmethod
    def load(self, path: Path) -> LoadedDocument:
        """Extract text from a file, page by page."""
        ...

    @property
    @abstractmethod
    def extensions(self) -> tuple[str, ...]:
        ...

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions
