"""Unit tests for GeometryClassifier and FastStartTranscoder."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from src.application.services.media import FastStartTranscoder, GeometryClassifier
from src.domain.exceptions import NoStreamsException, ProbeException, TranscodeException
from src.domain.models.asset import AspectRatio
from src.infrastructure.media.base import MediaToolError, StreamInfo


def _video_stream(width: int | None, height: int | None, index: int = 0) -> StreamInfo:
    return StreamInfo(
        index=index,
        codec_type="video",
        codec_name="h264",
        width=width,
        height=height,
    )


def _audio_stream(index: int = 0) -> StreamInfo:
    return StreamInfo(
        index=index,
        codec_type="audio",
        codec_name="aac",
        width=None,
        height=None,
    )


@pytest.fixture
def media_tools():
    """Create mock media tools."""
    tools = AsyncMock()
    tools.probe_streams = AsyncMock()
    tools.remux_faststart = AsyncMock()
    return tools


class TestGeometryClassifier:
    """Tests for orientation classification from probe output."""

    @pytest.mark.parametrize(
        ("width", "height", "expected"),
        [
            (1920, 1080, AspectRatio.LANDSCAPE),
            (1080, 1920, AspectRatio.PORTRAIT),
            (1000, 1000, AspectRatio.OTHER),
        ],
    )
    async def test_classifies_first_stream(self, media_tools, width, height, expected):
        media_tools.probe_streams.return_value = [_video_stream(width, height)]
        classifier = GeometryClassifier(media_tools)

        assert await classifier.classify(Path("/tmp/in.mp4")) == expected
        media_tools.probe_streams.assert_awaited_once_with(Path("/tmp/in.mp4"))

    async def test_skips_leading_audio_stream(self, media_tools):
        media_tools.probe_streams.return_value = [
            _audio_stream(0),
            _video_stream(1080, 1920, index=1),
        ]

        result = await GeometryClassifier(media_tools).classify(Path("in.mp4"))

        assert result == AspectRatio.PORTRAIT

    async def test_uses_first_stream_with_dimensions(self, media_tools):
        media_tools.probe_streams.return_value = [
            _video_stream(1920, 1080, index=0),
            _video_stream(1080, 1920, index=1),
        ]

        result = await GeometryClassifier(media_tools).classify(Path("in.mp4"))

        assert result == AspectRatio.LANDSCAPE

    async def test_no_streams(self, media_tools):
        media_tools.probe_streams.return_value = []

        with pytest.raises(NoStreamsException):
            await GeometryClassifier(media_tools).classify(Path("in.mp4"))

    async def test_no_stream_with_dimensions(self, media_tools):
        media_tools.probe_streams.return_value = [
            _audio_stream(0),
            _video_stream(0, 0, index=1),
        ]

        with pytest.raises(ProbeException) as exc_info:
            await GeometryClassifier(media_tools).classify(Path("in.mp4"))

        assert not isinstance(exc_info.value, NoStreamsException)

    async def test_tool_failure_becomes_probe_failure(self, media_tools):
        media_tools.probe_streams.side_effect = MediaToolError(
            "ffprobe",
            "exited with status 1",
            returncode=1,
            stderr="moov atom not found",
        )

        with pytest.raises(ProbeException) as exc_info:
            await GeometryClassifier(media_tools).classify(Path("in.mp4"))

        assert isinstance(exc_info.value.__cause__, MediaToolError)
        assert "ffprobe" in exc_info.value.reason


class TestFastStartTranscoder:
    """Tests for the fast-start remux step."""

    def test_output_path_is_sibling(self):
        staged = Path("/tmp/work/upload.mp4")
        assert FastStartTranscoder.output_path_for(staged) == Path(
            "/tmp/work/upload.mp4.processing"
        )

    async def test_returns_remuxed_path(self, media_tools, tmp_path: Path):
        staged = tmp_path / "upload.mp4"
        expected = tmp_path / "upload.mp4.processing"
        media_tools.remux_faststart.return_value = expected

        result = await FastStartTranscoder(media_tools).transcode(staged)

        assert result == expected
        media_tools.remux_faststart.assert_awaited_once_with(staged, expected)

    async def test_failure_removes_partial_output(self, media_tools, tmp_path: Path):
        staged = tmp_path / "upload.mp4"
        partial = tmp_path / "upload.mp4.processing"

        async def fail(input_path: Path, output_path: Path) -> Path:
            output_path.write_bytes(b"half a file")
            raise MediaToolError("ffmpeg", "exited with status 1", returncode=1)

        media_tools.remux_faststart.side_effect = fail

        with pytest.raises(TranscodeException):
            await FastStartTranscoder(media_tools).transcode(staged)

        assert not partial.exists()
