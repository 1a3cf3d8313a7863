"""File I/O helpers: encoding-aware reads, atomic and write-once writes.

Snapshot files are usually written by this tool (UTF-8), but exports
from other machines or editors turn up in other encodings or with a BOM,
so reads detect the encoding instead of assuming it.
"""

import os
import tempfile
from pathlib import Path

from charset_normalizer import from_bytes

# =============================================================================
# Read
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect the
    encoding.  Defaults to UTF-8 for empty files or when detection fails.
    A leading BOM is stripped from the returned text.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # ascii is a strict subset of utf-8
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content.lstrip("\ufeff"), encoding)


# =============================================================================
# Write
# =============================================================================


def write_file_atomic(path: Path, content: str, encoding: str = "utf-8") -> int:
    """Replace *path* with *content* so readers never see a partial file.

    Writes to a temporary file in the same directory, then ``os.replace``s
    it over the target.  Parent directories are created as needed.

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(encoded)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return len(encoded)


def write_new_file(path: Path, content: str, encoding: str = "utf-8") -> int:
    """Create *path* with *content*; fail if it already exists.

    Used for write-once artifacts such as pre-replace backups.

    Raises:
        FileExistsError: If *path* is already present.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    with open(path, "xb") as fh:
        fh.write(encoded)
        fh.flush()
        os.fsync(fh.fileno())
    return len(encoded)
