import os
from pathlib import Path
from typing import Iterable, List, Sequence
from wbc.domain.errors import ConversionIOError
from wbc.domain.models import SUPPORTED_EXTENSIONS

class FileScanner:
    """Recursively scans a directory tree for convertible images."""

    def __init__(self, extensions: Sequence[str] = SUPPORTED_EXTENSIONS, exclude_dirs: Iterable[Path] = ()):
        self.extensions = {(ext if ext.startswith(".") else f".{ext}").lower() for ext in extensions}
        self.exclude_dirs = {Path(d).resolve() for d in exclude_dirs}

    def scan(self, root_dir: Path) -> List[Path]:
        """Returns absolute paths of matching files in depth-first, lexical order."""
        root = Path(root_dir).resolve()
        if not root.exists():
            raise ConversionIOError(f"Input directory does not exist: {root}", path=root)
        if not root.is_dir():
            raise ConversionIOError(f"Input path is not a directory: {root}", path=root)
        if not os.access(root, os.R_OK | os.X_OK):
            raise ConversionIOError(f"Input directory is not readable: {root}", path=root)

        def on_error(exc: OSError):
            raise ConversionIOError(f"Cannot read directory {exc.filename}: {exc.strerror}", path=Path(exc.filename or root)) from exc

        found: List[Path] = []
        for current, dirs, files in os.walk(str(root), onerror=on_error):
            current_path = Path(current)

            # Ensure deterministic traversal: sort directories and files
            dirs[:] = sorted(d for d in dirs if (current_path / d) not in self.exclude_dirs)
            files.sort()

            for file_name in files:
                file_path = current_path / file_name
                if file_path.suffix.lower() not in self.extensions:
                    continue
                if not file_path.is_file():
                    continue
                found.append(file_path)
        return found
