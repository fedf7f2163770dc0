"""Directory walking and file hashing."""
import hashlib
from collections.abc import Iterable
from pathlib import Path

HASH_BLOCK_SIZE = 1024 * 1024


def compute_file_hash(path: Path) -> str:
    """Lowercase hex SHA-256 of the file's full byte stream."""
    sha = hashlib.sha256()
    with path.open("rb") as f:
        for block in iter(lambda: f.read(HASH_BLOCK_SIZE), b""):
            sha.update(block)
    return sha.hexdigest()


class DirectoryScanner:
    def get_subdirectories(self, root: Path) -> list[Path]:
        """All descendant directories, depth-first, siblings sorted by name."""
        out: list[Path] = []
        for child in sorted((p for p in root.iterdir() if p.is_dir()), key=lambda p: p.name):
            out.append(child)
            out.extend(self.get_subdirectories(child))
        return out

    def get_files(self, directory: Path, extensions: Iterable[str]) -> list[Path]:
        """Files directly inside directory whose suffix is supported (case-insensitive)."""
        allowed = {e.lower() for e in extensions}
        return sorted(
            (p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in allowed),
            key=lambda p: p.name,
        )

    def iter_directories(self, root: Path) -> list[Path]:
        return [root, *self.get_subdirectories(root)]


def relative_directory(root: Path, directory: Path) -> str | None:
    """Directory relative to root in posix form; None for root itself."""
    rel = directory.relative_to(root)
    if rel == Path("."):
        return None
    return rel.as_posix()
