"""Video geometry classification and fast-start transcoding."""

from pathlib import Path

from src.commons.telemetry import get_logger
from src.domain.exceptions import NoStreamsException, ProbeException, TranscodeException
from src.domain.models.asset import AspectRatio, classify_aspect_ratio
from src.infrastructure.media.base import MediaToolError, MediaToolsBase

PROCESSING_SUFFIX = ".processing"


class GeometryClassifier:
    """Buckets a staged video by the frame size of its first visual stream."""

    def __init__(self, media_tools: MediaToolsBase) -> None:
        self._tools = media_tools
        self._logger = get_logger(__name__)

    async def classify(self, path: Path) -> AspectRatio:
        """Probe ``path`` and classify its orientation.

        Audio and data streams carry no frame size and are skipped; the
        first stream that does decides the bucket.

        Raises:
            NoStreamsException: If the file has no streams at all.
            ProbeException: If probing fails or no stream has dimensions.
        """
        try:
            streams = await self._tools.probe_streams(path)
        except MediaToolError as e:
            raise ProbeException(str(e)) from e

        if not streams:
            raise NoStreamsException(str(path))

        stream = next((s for s in streams if s.has_dimensions), None)
        if stream is None or stream.width is None or stream.height is None:
            raise ProbeException("No stream reports frame dimensions")

        aspect_ratio = classify_aspect_ratio(stream.width, stream.height)
        self._logger.debug(
            "Classified video geometry",
            extra={
                "width": stream.width,
                "height": stream.height,
                "stream_index": stream.index,
                "aspect_ratio": aspect_ratio.value,
            },
        )
        return aspect_ratio


class FastStartTranscoder:
    """Produces a progressive-playback copy of a staged MP4."""

    def __init__(self, media_tools: MediaToolsBase) -> None:
        self._tools = media_tools

    @staticmethod
    def output_path_for(staged: Path) -> Path:
        """Sibling path the remux is written to."""
        return staged.with_name(staged.name + PROCESSING_SUFFIX)

    async def transcode(self, staged: Path) -> Path:
        """Remux ``staged`` with its index up front; the input is left as is.

        Raises:
            TranscodeException: If the remux fails. Partial output is removed.
        """
        output = self.output_path_for(staged)
        try:
            return await self._tools.remux_faststart(staged, output)
        except MediaToolError as e:
            output.unlink(missing_ok=True)
            raise TranscodeException(str(e)) from e
