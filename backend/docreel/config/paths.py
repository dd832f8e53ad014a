"""
Paths configuration

Centralized directory paths for the application.
"""

import os
from pathlib import Path

APP_DIR = Path(__file__).parent.parent
BACKEND_DIR = APP_DIR.parent
EXPORT_DIR = Path(os.getenv("EXPORT_DIR", str(BACKEND_DIR / "exports")))
MUSIC_DIR = Path(os.getenv("MUSIC_DIR", str(BACKEND_DIR / "music")))

EXPORT_DIR.mkdir(parents=True, exist_ok=True)
MUSIC_DIR.mkdir(parents=True, exist_ok=True)

__all__ = ["APP_DIR", "BACKEND_DIR", "EXPORT_DIR", "MUSIC_DIR"]
