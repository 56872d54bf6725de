"""External media tool adapters."""

from src.infrastructure.media.base import MediaToolError, MediaToolsBase, StreamInfo
from src.infrastructure.media.ffmpeg_tools import FFmpegMediaTools

__all__ = [
    # Base classes
    "MediaToolsBase",
    "StreamInfo",
    "MediaToolError",
    # Implementations
    "FFmpegMediaTools",
]
