"""
Guards for user-supplied names and ids that end up in filesystem paths:
upload file names, background music tracks and export ids.
"""

import re
import unicodedata
from pathlib import Path, PureWindowsPath

from .logging import get_logger

logger = get_logger(__name__, component="security")

MAX_FILENAME_LENGTH = 255

_UUID = re.compile(r"^[0-9a-f]{8}(-[0-9a-f]{4}){3}-[0-9a-f]{12}$", re.IGNORECASE)
_FORBIDDEN_CHARS = re.compile(r'[<>:"|?*\x00-\x1f\x7f]')


def sanitize_filename(filename: str) -> str:
    """
    Reduce a client-supplied name to a bare, ASCII file name.

    Directory parts (either separator), control and reserved characters and
    leading dots are removed.

    Raises:
        ValueError: if nothing usable remains

    Example:
        >>> sanitize_filename("../../etc/passwd")
        'passwd'
        >>> sanitize_filename("<report>.pdf")
        'report.pdf'
    """
    # PureWindowsPath splits on both "/" and "\"
    name = PureWindowsPath(filename).name
    name = _FORBIDDEN_CHARS.sub("", name)
    name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    name = name.strip().lstrip(".")[:MAX_FILENAME_LENGTH]

    if not name.strip("."):
        logger.warning("Rejected file name", extra={"original": filename})
        raise ValueError("Invalid filename after sanitization")

    if name != filename:
        logger.info("Filename sanitized", extra={"original": filename, "sanitized": name})
    return name


def is_valid_id(value: str) -> bool:
    """Session, chunk and job ids are UUID4 strings."""
    return bool(value) and _UUID.match(value) is not None


def validate_path_within_directory(path: Path, allowed_directory: Path) -> bool:
    """True when ``path`` resolves (symlinks and ``..`` included) inside ``allowed_directory``."""
    try:
        resolved = Path(path).resolve()
        root = Path(allowed_directory).resolve()
    except (OSError, RuntimeError) as exc:
        logger.warning("Path resolution failed", extra={"path": str(path), "error": str(exc)})
        return False

    if resolved == root or root in resolved.parents:
        return True

    logger.warning("Path outside allowed directory", extra={
        "path": str(resolved),
        "allowed_directory": str(root),
    })
    return False
