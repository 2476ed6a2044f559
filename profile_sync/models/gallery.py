"""Gallery related data models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class GalleryImage(BaseModel):
    """An image entry in a gallery."""
    id: int
    image: str


class Gallery(BaseModel):
    """The single gallery owned by a user."""
    id: int
    owner_id: Optional[int] = None
    images: List[GalleryImage] = Field(default_factory=list)

    def image_payload(self, exclude_id: Optional[int] = None) -> List[dict]:
        """Image list in the whole-collection write format."""
        return [{"image": img.image} for img in self.images if img.id != exclude_id]
