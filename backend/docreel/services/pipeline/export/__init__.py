"""Session export: fetch, bookend, concatenate, add music."""

from .media import MediaToolkit, FfmpegMediaToolkit, write_concat_list
from .stage import ExportStage, DOWNLOAD_URL_TEMPLATE

__all__ = [
    "MediaToolkit",
    "FfmpegMediaToolkit",
    "write_concat_list",
    "ExportStage",
    "DOWNLOAD_URL_TEMPLATE",
]
