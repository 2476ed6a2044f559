"""Review related data models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class ReviewUser(BaseModel):
    """Reviewed user or reviewer."""
    id: int = 0
    name: str = ""
    surname: str = ""
    rating: float = 0
    image: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.surname}".strip()


class ReviewImage(BaseModel):
    """Image attached to a review."""
    id: int
    image: str


class Review(BaseModel):
    """A review as read from the API; never mutated here."""
    id: int
    rating: Optional[float] = None
    description: str = ""
    user: Optional[ReviewUser] = None
    reviewer: Optional[ReviewUser] = None
    images: List[ReviewImage] = Field(default_factory=list)
    service_id: Optional[int] = None
    service_title: str = ""
    for_reviewer: bool = False
    created_at: Optional[str] = None
