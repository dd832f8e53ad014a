"""
Media utilities used by the export stage.

``MediaToolkit`` is the seam the export stage depends on; the ffmpeg
implementation shells out with ``asyncio.to_thread(subprocess.run, ...)``.
Encoding choices:
    - concat demuxer with stream copy, re-encode (libx264/aac) when copy fails
    - title cards: lavfi colour source + drawtext, silent stereo track
    - background music: looped, attenuated and mixed under the clip audio
"""

import asyncio
import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence

import httpx

from docreel.core import InternalError, LogTimer, UpstreamError, get_logger

logger = get_logger(__name__, component="media")

VIDEO_SIZE = "1280x720"
VIDEO_FPS = 30
AUDIO_RATE = 44100

REENCODE_ARGS = [
    "-c:v", "libx264",
    "-preset", "veryfast",
    "-pix_fmt", "yuv420p",
    "-r", str(VIDEO_FPS),
    "-c:a", "aac",
    "-ar", str(AUDIO_RATE),
    "-ac", "2",
]


class MediaToolkit(ABC):
    @abstractmethod
    async def fetch(self, url: str, destination: Path) -> Path:
        """Download a remote clip to a local file."""

    @abstractmethod
    async def concatenate(self, inputs: Sequence[Path], output: Path) -> Path:
        """Join clips in order into one file."""

    @abstractmethod
    async def render_title_card(self, text: str, output: Path, duration: float) -> Path:
        """Render a short card showing ``text``."""

    @abstractmethod
    async def mix_background_music(self, video: Path, music: Path, output: Path, volume: float) -> Path:
        """Lay a music track under the video's audio."""


def _escape_concat_path(path: Path) -> str:
    return str(path.resolve()).replace("'", "'\\''")


def _escape_drawtext(text: str) -> str:
    escaped = text.replace("\\", "\\\\")
    for char in (":", "'", "%", ","):
        escaped = escaped.replace(char, "\\" + char)
    return escaped


def write_concat_list(inputs: Sequence[Path], list_path: Path) -> Path:
    with open(list_path, "w", encoding="utf-8") as f:
        for item in inputs:
            f.write(f"file '{_escape_concat_path(item)}'\n")
    return list_path


class FfmpegMediaToolkit(MediaToolkit):
    def __init__(self, download_timeout: float = 120.0, ffmpeg_timeout: float = 600.0):
        self.download_timeout = download_timeout
        self.ffmpeg_timeout = ffmpeg_timeout

    async def _run(self, cmd: List[str], operation: str) -> subprocess.CompletedProcess:
        try:
            with LogTimer(logger, f"ffmpeg {operation}", level=logging.DEBUG):
                result = await asyncio.to_thread(
                    subprocess.run,
                    cmd,
                    capture_output=True,
                    text=True,
                    timeout=self.ffmpeg_timeout,
                )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise InternalError(f"{operation} failed: {exc}") from exc

        if result.returncode != 0:
            logger.warning("ffmpeg command failed", extra={
                "operation": operation,
                "returncode": result.returncode,
                "stderr": result.stderr[-500:],
            })
        return result

    async def fetch(self, url: str, destination: Path) -> Path:
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with httpx.AsyncClient(timeout=self.download_timeout, follow_redirects=True) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    with open(destination, "wb") as f:
                        async for block in response.aiter_bytes():
                            f.write(block)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Failed to download clip {url}: {exc}") from exc

        logger.debug("Clip downloaded", extra={"url": url, "path": str(destination)})
        return destination

    async def concatenate(self, inputs: Sequence[Path], output: Path) -> Path:
        if not inputs:
            raise InternalError("Nothing to concatenate")

        if len(inputs) == 1:
            shutil.copy(inputs[0], output)
            return output

        list_path = write_concat_list(inputs, output.parent / "concat_list.txt")
        base = ["ffmpeg", "-y", "-f", "concat", "-safe", "0", "-i", str(list_path)]

        result = await self._run(base + ["-c", "copy", str(output)], "concatenate")
        if result.returncode != 0 or not output.exists():
            # Clips with differing codecs or parameters cannot be stream-copied
            result = await self._run(base + REENCODE_ARGS + [str(output)], "concatenate (re-encode)")
            if result.returncode != 0 or not output.exists():
                raise InternalError(f"Video concatenation failed: {result.stderr[-300:]}")
        return output

    async def render_title_card(self, text: str, output: Path, duration: float) -> Path:
        drawtext = (
            f"drawtext=text='{_escape_drawtext(text)}':fontcolor=white:fontsize=48:"
            "x=(w-text_w)/2:y=(h-text_h)/2"
        )
        cmd = [
            "ffmpeg", "-y",
            "-f", "lavfi", "-i", f"color=c=black:s={VIDEO_SIZE}:d={duration:.2f}:r={VIDEO_FPS}",
            "-f", "lavfi", "-i", f"anullsrc=r={AUDIO_RATE}:cl=stereo",
            "-vf", drawtext,
            "-shortest",
            *REENCODE_ARGS,
            str(output),
        ]
        result = await self._run(cmd, "title card")
        if result.returncode != 0 or not output.exists():
            raise InternalError(f"Title card rendering failed: {result.stderr[-300:]}")
        return output

    async def mix_background_music(self, video: Path, music: Path, output: Path, volume: float) -> Path:
        mixed = [
            "ffmpeg", "-y",
            "-i", str(video),
            "-stream_loop", "-1", "-i", str(music),
            "-filter_complex",
            f"[1:a]volume={volume}[bg];[0:a][bg]amix=inputs=2:duration=first:dropout_transition=0[a]",
            "-map", "0:v", "-map", "[a]",
            "-c:v", "copy", "-c:a", "aac",
            "-shortest",
            str(output),
        ]
        result = await self._run(mixed, "background music")
        if result.returncode == 0 and output.exists():
            return output

        # Video without an audio stream: music becomes the only track
        music_only = [
            "ffmpeg", "-y",
            "-i", str(video),
            "-stream_loop", "-1", "-i", str(music),
            "-filter:a", f"volume={volume}",
            "-map", "0:v", "-map", "1:a",
            "-c:v", "copy", "-c:a", "aac",
            "-shortest",
            str(output),
        ]
        result = await self._run(music_only, "background music (music only)")
        if result.returncode != 0 or not output.exists():
            raise InternalError(f"Adding background music failed: {result.stderr[-300:]}")
        return output
