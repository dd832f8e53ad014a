"""
Environment parsing and the checks run once at startup.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional

REQUIRED_MEDIA_TOOLS = ("ffmpeg", "ffprobe")
TRUTHY = frozenset({"1", "true", "yes", "on"})


def parse_bool_env(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


def env_bool(name: str, default: bool) -> bool:
    return parse_bool_env(os.getenv(name), default=default)


def _env_number(name: str, default, minimum, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(cast(raw), minimum)
    except ValueError:
        return default


def env_int(name: str, default: int, minimum: int) -> int:
    """Integer setting clamped to ``minimum``; unparsable values give ``default``."""
    return _env_number(name, default, minimum, int)


def env_float(name: str, default: float, minimum: float) -> float:
    return _env_number(name, default, minimum, float)


def locate_media_tools(tools: Iterable[str] = REQUIRED_MEDIA_TOOLS) -> Dict[str, Optional[str]]:
    return {tool: shutil.which(tool) for tool in tools}


def missing_runtime_tools(tools: Iterable[str] = REQUIRED_MEDIA_TOOLS) -> List[str]:
    return [tool for tool, path in locate_media_tools(tools).items() if path is None]


def ensure_writable_directory(path: Path) -> None:
    """Create ``path`` if needed and prove a file can be written there."""
    try:
        path.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=path, prefix=".write_probe_"):
            pass
    except OSError as exc:
        raise RuntimeError(f"Directory is not writable: {path}") from exc


def run_startup_runtime_checks(*, export_dir: Path, strict_tools: bool) -> Dict[str, object]:
    """
    The export directory must be writable. Missing media tools are reported,
    and only abort startup when ``strict_tools`` is set; otherwise each export
    fails on its own.
    """
    ensure_writable_directory(export_dir)

    missing = missing_runtime_tools()
    if missing and strict_tools:
        raise RuntimeError("Missing required runtime tools: " + ", ".join(missing))

    return {
        "ok": not missing,
        "export_dir": {"path": str(export_dir), "writable": True},
        "tools": {"required": list(REQUIRED_MEDIA_TOOLS), "missing": missing},
    }
