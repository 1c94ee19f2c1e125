import os
from pathlib import Path
from wbc.domain.errors import ConversionIOError
from wbc.domain.models import OUTPUT_SUFFIX


def ensure_output_root(output_root: Path) -> Path:
    """Creates the output root (with missing ancestors) and returns it resolved."""
    output_root = Path(output_root)
    try:
        output_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConversionIOError(f"Cannot create output directory {output_root}: {exc}", path=output_root) from exc
    return output_root.resolve()


def _relative_to_root(input_root: Path, input_path: Path) -> Path:
    # Lexical: a symlinked file keeps its own place in the tree, wherever it points
    input_path = Path(os.path.abspath(input_path))
    for root in (Path(os.path.abspath(input_root)), Path(input_root).resolve()):
        try:
            return input_path.relative_to(root)
        except ValueError:
            continue
    raise ConversionIOError(f"{input_path} is not under input directory {input_root}", path=input_path)


def map_output_path(input_root: Path, output_root: Path, input_path: Path) -> Path:
    """Maps an input image to its .webp path under output_root.

    The relative sub-directory layout is preserved and the parent directory of
    the returned path exists when this returns. Symlinks are not followed, so a
    link is mapped by its own location, not by its target's.
    """
    rel_path = _relative_to_root(input_root, input_path)

    output_path = Path(output_root) / rel_path.with_suffix(OUTPUT_SUFFIX)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConversionIOError(f"Cannot create directory {output_path.parent}: {exc}", path=output_path.parent) from exc
    return output_path
