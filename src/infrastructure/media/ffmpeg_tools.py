"""FFmpeg/FFprobe implementation of the media tools."""

import asyncio
import contextlib
import json
from pathlib import Path
from typing import Any

from src.commons.telemetry import get_logger, timed
from src.infrastructure.media.base import MediaToolError, MediaToolsBase, StreamInfo

_STDERR_TAIL = 2000


class FFmpegMediaTools(MediaToolsBase):
    """Runs ffprobe and ffmpeg as subprocesses.

    Requires ffmpeg and ffprobe to be installed and available in PATH, or
    their locations passed explicitly. Each invocation is bounded by
    ``timeout_seconds``; on expiry or cancellation the child is killed.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        timeout_seconds: float = 300,
    ) -> None:
        """Initialize the media tools.

        Args:
            ffmpeg_path: Path to ffmpeg executable.
            ffprobe_path: Path to ffprobe executable.
            timeout_seconds: Upper bound for a single tool run.
        """
        self._ffmpeg = ffmpeg_path
        self._ffprobe = ffprobe_path
        self._timeout = timeout_seconds
        self._logger = get_logger(__name__)

    @timed
    async def probe_streams(self, path: Path) -> list[StreamInfo]:
        """List streams using ``ffprobe -show_streams``."""
        cmd = [
            self._ffprobe,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]
        stdout = await self._run(cmd)

        try:
            data = json.loads(stdout)
            raw_streams = data.get("streams", [])
            if not isinstance(raw_streams, list):
                raise TypeError("'streams' is not a list")
            return [self._parse_stream(i, s) for i, s in enumerate(raw_streams)]
        except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as e:
            raise MediaToolError(self._ffprobe, f"unparsable output: {e}") from e

    @timed
    async def remux_faststart(self, input_path: Path, output_path: Path) -> Path:
        """Remux with ``-c copy -movflags faststart`` into ``output_path``."""
        if output_path.resolve() == input_path.resolve():
            raise ValueError("Output path must differ from the input path")

        cmd = [
            self._ffmpeg,
            "-nostdin",
            "-v",
            "error",
            "-i",
            str(input_path),
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            "-y",
            str(output_path),
        ]
        await self._run(cmd)
        return output_path

    async def _run(self, cmd: list[str]) -> bytes:
        """Run a tool and return its stdout, killing it if the caller gives up.

        Both the timeout and cancellation of the awaiting task kill the child
        and reap it before the error propagates, so nothing keeps writing into
        the caller's temporary directory.
        """
        tool = cmd[0]
        self._logger.debug("Running media tool", extra={"command": cmd})

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise MediaToolError(tool, f"could not be started: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout
            )
        except TimeoutError as e:
            await self._kill(process)
            raise MediaToolError(tool, f"timed out after {self._timeout}s") from e
        except asyncio.CancelledError:
            await self._kill(process)
            self._logger.debug("Media tool cancelled", extra={"tool": tool})
            raise

        if process.returncode != 0:
            tail = stderr.decode("utf-8", "replace")[-_STDERR_TAIL:]
            status = process.returncode
            raise MediaToolError(tool, f"exited with status {status}", status, tail)
        return stdout

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
        await process.wait()

    @staticmethod
    def _parse_stream(position: int, stream: dict[str, Any]) -> StreamInfo:
        """Build a StreamInfo from one ffprobe stream entry."""
        width = stream.get("width")
        height = stream.get("height")
        return StreamInfo(
            index=int(stream.get("index", position)),
            codec_type=stream.get("codec_type"),
            codec_name=stream.get("codec_name"),
            width=int(width) if width is not None else None,
            height=int(height) if height is not None else None,
        )
