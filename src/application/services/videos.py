"""Video record lookups and ownership checks."""

from src.application.dtos.upload import CreateVideoRequest
from src.commons.infrastructure.documentdb.base import DocumentDBBase, DocumentDBError
from src.commons.telemetry import get_logger
from src.domain.exceptions import (
    ForbiddenException,
    PersistenceException,
    VideoNotFoundException,
)
from src.domain.models.video import Video
from src.domain.value_objects.video_id import VideoId


class VideoService:
    """Reads and creates video records on behalf of a caller."""

    def __init__(self, document_db: DocumentDBBase, collection: str) -> None:
        """Initialize the service.

        Args:
            document_db: Document database provider.
            collection: Collection holding video records.
        """
        self._db = document_db
        self._collection = collection
        self._logger = get_logger(__name__)

    @property
    def collection(self) -> str:
        """Collection video records live in."""
        return self._collection

    async def create_video(self, user_id: str, request: CreateVideoRequest) -> Video:
        """Create a draft record owned by ``user_id``."""
        video = Video(
            user_id=user_id,
            title=request.title,
            description=request.description,
        )
        try:
            await self._db.insert(self._collection, video.model_dump(mode="json"))
        except DocumentDBError as e:
            raise PersistenceException(f"Could not create video: {e.reason}") from e

        self._logger.info(
            "Created video record",
            extra={"video_id": video.id, "user_id": user_id},
        )
        return video

    async def find_video(self, video_id: VideoId) -> Video:
        """Load a record by ID.

        Raises:
            VideoNotFoundException: If no record has this ID.
            PersistenceException: If the store cannot be read.
        """
        try:
            document = await self._db.find_by_id(self._collection, str(video_id))
        except DocumentDBError as e:
            raise PersistenceException(f"Could not load video: {e.reason}") from e

        if document is None:
            raise VideoNotFoundException(str(video_id))
        return Video.model_validate(document)

    async def get_owned_video(self, video_id: VideoId, user_id: str) -> Video:
        """Load a record and check that ``user_id`` owns it.

        Raises:
            VideoNotFoundException: If no record has this ID.
            ForbiddenException: If the caller is not the owner.
        """
        video = await self.find_video(video_id)
        if not video.is_owned_by(user_id):
            raise ForbiddenException(video.id, user_id)
        return video
