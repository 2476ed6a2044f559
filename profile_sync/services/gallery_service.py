"""
Gallery management: the single work-example gallery owned by a user.

Photos are added through a multipart upload endpoint. Removal has no
per-image endpoint and re-submits the gallery's whole image list.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from profile_sync.errors import (
    ConflictError,
    NotFoundError,
    ProfileSyncError,
    ValidationError,
)
from profile_sync.models.gallery import Gallery, GalleryImage
from profile_sync.models.profile import WorkExample
from profile_sync.services.api_client import ApiClient
from profile_sync.utils.file_utils import file_size, is_image_file
from profile_sync.utils.logger import get_logger

logger = get_logger(__name__)


def parse_gallery(data: Dict[str, Any]) -> Gallery:
    owner = data.get("user")
    owner_id = owner.get("id") if isinstance(owner, dict) else None
    images = [
        GalleryImage(id=int(img["id"]), image=str(img.get("image") or ""))
        for img in data.get("images") or []
        if isinstance(img, dict) and img.get("id") is not None
    ]
    return Gallery(id=int(data["id"]), owner_id=owner_id, images=images)


class GalleryService:
    """Locate, lazily create and edit the current user's gallery."""

    def __init__(self, client: ApiClient):
        """
        Initialize gallery service.

        Args:
            client: Authenticated API client of the gallery owner
        """
        self.client = client
        self._owner_id: Optional[int] = None

    def owner_id(self) -> Optional[int]:
        """Id of the authenticated user, fetched once."""
        if self._owner_id is None:
            try:
                me = self.client.get("/api/users/me") or {}
            except ProfileSyncError as e:
                logger.warning(f"Could not resolve current user: {e.message}")
                return None
            self._owner_id = me.get("id")
        return self._owner_id

    def _fetch(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        try:
            return self.client.get_collection(path, params=params)
        except ProfileSyncError as e:
            logger.warning(f"Gallery lookup via {path} failed: {e.message}")
            return []

    @staticmethod
    def _owned(galleries: List[Dict[str, Any]], owner_id: Any, allow_unowned: bool = False) -> Optional[Gallery]:
        """First gallery whose embedded owner is ``owner_id``."""
        for data in galleries:
            owner = data.get("user")
            if isinstance(owner, dict) and str(owner.get("id")) == str(owner_id):
                return parse_gallery(data)
            if owner is None and allow_unowned:
                return parse_gallery(data)
        return None

    def find_gallery(self) -> Optional[Gallery]:
        """
        Look up the user's gallery.

        Tries, in order: the "mine" endpoint, a collection query filtered by
        owner, and a scan of all galleries matched on the embedded owner.

        Returns:
            The gallery, or None when the user has none
        """
        mine = self._fetch("/api/galleries/me")
        if mine:
            return parse_gallery(mine[0])

        owner_id = self.owner_id()
        if owner_id is None:
            return None

        # The owner filter may be ignored by the server
        gallery = self._owned(
            self._fetch("/api/galleries", params={"user": owner_id}), owner_id, allow_unowned=True
        )
        if gallery is not None:
            return gallery

        logger.debug("Falling back to a full gallery scan")
        return self._owned(self._fetch("/api/galleries"), owner_id)

    def create_gallery(self) -> Gallery:
        """
        Create an empty gallery, or return the one a concurrent creator made.

        Raises:
            ProfileSyncError: Creation failed and no gallery can be found
        """
        try:
            data = self.client.post("/api/galleries", {"images": []})
        except (ConflictError, ValidationError) as e:
            # 409/422: a gallery already exists for this user
            logger.info(f"Gallery creation lost a race ({e.status_code}), looking it up again")
            gallery = self.find_gallery()
            if gallery is None:
                raise
            return gallery

        if not isinstance(data, dict) or data.get("id") is None:
            gallery = self.find_gallery()
            if gallery is None:
                raise NotFoundError("Gallery was created but cannot be found", 404)
            return gallery

        logger.info(f"Created gallery {data['id']}")
        return parse_gallery(data)

    def get_or_create_gallery(self) -> Gallery:
        gallery = self.find_gallery()
        if gallery is not None:
            return gallery
        return self.create_gallery()

    def get_or_create_gallery_id(self) -> int:
        return self.get_or_create_gallery().id

    def _valid_files(self, files: Sequence[Union[str, Path]]) -> List[Path]:
        limit = self.client.settings.max_gallery_image_bytes
        valid = []
        for f in files:
            path = Path(f)
            if not path.is_file() or not is_image_file(path):
                logger.warning(f"Skipping {path.name}: not an image")
                continue
            if file_size(path) > limit:
                logger.warning(f"Skipping {path.name}: larger than {limit // (1024 * 1024)}MB")
                continue
            valid.append(path)
        return valid

    def add_images(self, files: Sequence[Union[str, Path]]) -> int:
        """
        Upload images to the gallery in one multipart request.

        Invalid files are skipped one by one; the rest are still uploaded.

        Returns:
            Number of images uploaded

        Raises:
            ValidationError: No file in the batch is a valid image
        """
        valid = self._valid_files(files)
        if not valid:
            raise ValidationError("No valid images to upload")

        gallery_id = self.get_or_create_gallery_id()
        try:
            self.client.upload(f"/api/galleries/{gallery_id}/upload-photo", valid, field="imageFile[]")
        except NotFoundError:
            # Stale gallery id: create once and retry once
            logger.warning(f"Gallery {gallery_id} vanished, creating a new one")
            gallery_id = self.create_gallery().id
            self.client.upload(f"/api/galleries/{gallery_id}/upload-photo", valid, field="imageFile[]")

        logger.info(f"Uploaded {len(valid)} image(s) to gallery {gallery_id}")
        return len(valid)

    def _replace_images(self, gallery: Gallery, images: List[dict]) -> None:
        self.client.patch(f"/api/galleries/{gallery.id}", {"images": images})

    def remove_image(self, image_id: Union[int, str]) -> bool:
        """
        Remove one image by re-submitting the rest of the gallery.

        Returns:
            False when the image is not in the gallery (nothing is written)

        Raises:
            NotFoundError: The user has no gallery
        """
        gallery = self.find_gallery()
        if gallery is None:
            raise NotFoundError("Gallery not found", 404)

        image_id = int(image_id)
        if all(img.id != image_id for img in gallery.images):
            logger.warning(f"Image {image_id} is not in gallery {gallery.id}")
            return False

        self._replace_images(gallery, gallery.image_payload(exclude_id=image_id))
        logger.info(f"Removed image {image_id} from gallery {gallery.id}")
        return True

    def remove_all(self) -> None:
        """Empty the gallery."""
        gallery = self.find_gallery()
        if gallery is None:
            raise NotFoundError("Gallery not found", 404)
        self._replace_images(gallery, [])
        logger.info(f"Removed all images from gallery {gallery.id}")

    def image_url(self, image_path: str) -> str:
        """Absolute URL for a stored gallery image path."""
        if not image_path:
            return self.client.settings.placeholder_image
        if image_path.startswith("http"):
            return image_path
        if image_path.startswith("/"):
            return f"{self.client.base_url}{image_path}"
        return f"{self.client.base_url}/images/gallery_photos/{image_path}"

    def work_examples(self, gallery: Optional[Gallery] = None) -> List[WorkExample]:
        """
        Gallery images as work examples, each verified reachable.

        Images whose URL does not answer fall back to the placeholder.
        """
        if gallery is None:
            gallery = self.find_gallery()
        if gallery is None:
            return []

        placeholder = self.client.settings.placeholder_image
        examples = []
        for img in gallery.images:
            url = self.image_url(img.image)
            if url != placeholder and not self.client.probe(url):
                logger.debug(f"Image {img.id} unreachable, using placeholder")
                url = placeholder
            examples.append(WorkExample(id=str(img.id), image=url))
        return examples
