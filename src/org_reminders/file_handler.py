"""Reading and writing the Org file.

Reads detect the encoding with charset-normalizer; writes replace the whole
file in place.
"""

from pathlib import Path

from charset_normalizer import from_bytes

FALLBACK_ENCODING = "utf-8"


def validate_file_path(path_str: str) -> Path:
    """Return the resolved path of an existing regular file.

    ``~`` is expanded and relative paths resolve against the working
    directory.

    Raises:
        ValueError: When nothing exists at the path or it is not a file.
    """
    path = Path(path_str).expanduser().resolve()
    if not path.exists():
        raise ValueError(f"File not found: {path_str}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path_str}")
    return path


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Return ``(text, encoding)`` for *path*.

    Empty files and undetectable content are treated as UTF-8; detected
    ASCII is reported as UTF-8 too.
    """
    data = path.read_bytes()
    if not data:
        return "", FALLBACK_ENCODING

    match = from_bytes(data).best()
    if match is None:
        return data.decode(FALLBACK_ENCODING, errors="replace"), (
            FALLBACK_ENCODING
        )

    encoding = match.encoding
    if encoding == "ascii":
        encoding = FALLBACK_ENCODING
    return str(match), encoding


def write_file(path: Path, content: str, encoding: str = "utf-8") -> int:
    """Overwrite *path* with *content* and return the byte count.

    Missing parent directories are created.
    """
    data = content.encode(encoding)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return len(data)
