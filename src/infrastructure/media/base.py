"""Abstract base class for external media tools."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass
class StreamInfo:
    """One stream reported by the probe tool."""

    index: int
    codec_type: str | None
    codec_name: str | None
    width: int | None
    height: int | None

    @property
    def has_dimensions(self) -> bool:
        """Whether the stream carries a frame size (video/image streams)."""
        return bool(self.width) and bool(self.height)


class MediaToolError(Exception):
    """Raised when an external media tool cannot produce a usable result."""

    def __init__(
        self,
        tool: str,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{tool}: {message}")


class MediaToolsBase(ABC):
    """Probe and transform operations on local media files.

    Implementations should handle:
    - FFmpeg/FFprobe executables
    - In-memory fakes for tests
    """

    @abstractmethod
    async def probe_streams(self, path: Path) -> list[StreamInfo]:
        """List the media streams of a file.

        Args:
            path: File to inspect.

        Returns:
            Streams in container order; may be empty.

        Raises:
            MediaToolError: If the tool fails or its output is malformed.
        """

    @abstractmethod
    async def remux_faststart(self, input_path: Path, output_path: Path) -> Path:
        """Write a stream-copy remux with the index moved to the front.

        Never modifies ``input_path``.

        Args:
            input_path: Source MP4.
            output_path: Where to write the remuxed file; must differ from
                the input.

        Returns:
            Path of the written file.

        Raises:
            MediaToolError: If the tool fails.
        """
