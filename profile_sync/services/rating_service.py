"""
Review fetching, review creation and rating aggregation.
"""

from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from profile_sync.errors import ProfileSyncError, ValidationError
from profile_sync.models.references import iri
from profile_sync.models.review import Review, ReviewImage, ReviewUser
from profile_sync.services.api_client import ApiClient
from profile_sync.utils.logger import get_logger
from profile_sync.utils.text import excerpt

logger = get_logger(__name__)

ROLES = ("master", "client")


def is_valid_rating(rating: Any) -> bool:
    """Ratings count when they are numbers in (0, 5]; zero is treated as missing data."""
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        return False
    return 0 < rating <= 5


def average_rating(ratings: Iterable[Any]) -> float:
    """
    Mean of the valid ratings, rounded half-up to one decimal.

    Out-of-range values are skipped, not clamped.

    Returns:
        The mean, or 0 when no rating is valid
    """
    valid = [Decimal(str(r)) for r in ratings if is_valid_rating(r)]
    if not valid:
        return 0
    mean = sum(valid) / len(valid)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _user(data: Any) -> Optional[ReviewUser]:
    if not isinstance(data, dict) or data.get("id") is None:
        return None
    rating = data.get("rating")
    return ReviewUser(
        id=int(data["id"]),
        name=data.get("name") or "",
        surname=data.get("surname") or "",
        rating=rating if isinstance(rating, (int, float)) else 0,
        image=data.get("image") or "",
    )


def parse_review(data: Dict[str, Any], role: str = "master") -> Review:
    """Decode a review; ``role`` names the reviewed side."""
    other = "client" if role == "master" else "master"
    ticket = data.get("ticket") if isinstance(data.get("ticket"), dict) else {}
    services = data.get("services") if isinstance(data.get("services"), dict) else {}
    return Review(
        id=int(data["id"]),
        rating=data.get("rating"),
        description=data.get("description") or "",
        user=_user(data.get(role)),
        reviewer=_user(data.get(other)),
        images=[
            ReviewImage(id=int(img["id"]), image=str(img.get("image") or ""))
            for img in data.get("images") or []
            if isinstance(img, dict) and img.get("id") is not None
        ],
        service_id=ticket.get("id") or services.get("id"),
        service_title=ticket.get("title") or services.get("title") or "",
        for_reviewer=bool(data.get("forClient")) if role == "master" else bool(data.get("forMaster")),
        created_at=data.get("createdAt"),
    )


class RatingService:
    """Reviews of one subject and the rating derived from them."""

    def __init__(self, client: ApiClient):
        self.client = client

    def fetch_reviews(self, subject_id: Union[int, str], role: str = "master") -> List[Review]:
        """
        Reviews written about a master or a client.

        A 404 yields an empty list. Reviews that reference another subject
        are dropped.
        """
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")

        data = self.client.get_collection(
            "/api/reviews", params={f"exists[{role}]": "true", role: subject_id}
        )
        reviews = []
        for entry in data:
            if not isinstance(entry, dict) or entry.get("id") is None:
                continue
            review = parse_review(entry, role)
            if review.user is not None and str(review.user.id) == str(subject_id):
                reviews.append(review)
        logger.info(f"Fetched {len(reviews)} review(s) for {role} {subject_id}")
        return reviews

    def recompute(self, reviews: Sequence[Review]) -> float:
        return average_rating(review.rating for review in reviews)

    def persist_rating(self, subject_id: Union[int, str], rating: float) -> None:
        self.client.patch(f"/api/users/{subject_id}", {"rating": rating})
        logger.info(f"Stored rating {rating} for user {subject_id}")

    def refresh_rating(
        self,
        subject_id: Union[int, str],
        current_rating: Optional[float],
        reviews: Optional[Sequence[Review]] = None,
        role: str = "master",
    ) -> float:
        """
        Recompute a subject's rating and store it when it changed.

        The stored rating is a cached value; it can go stale until the next
        recompute.

        Returns:
            The recomputed rating
        """
        if reviews is None:
            reviews = self.fetch_reviews(subject_id, role)
        rating = self.recompute(reviews)
        if current_rating is None or rating != current_rating:
            try:
                self.persist_rating(subject_id, rating)
            except ProfileSyncError as e:
                logger.error(f"Could not store rating for user {subject_id}: {e.message}")
        return rating

    def create_review(
        self,
        master_id: Union[int, str],
        client_id: Union[int, str],
        rating: int,
        description: str,
        review_type: str = "master",
        photos: Sequence[Union[str, Path]] = (),
    ) -> Dict[str, Any]:
        """
        Post a review and attach its photos one at a time.

        Raises:
            ValidationError: Rating outside 1..5 or an empty description
        """
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        if not description.strip():
            raise ValidationError("Review text is required")

        created = self.client.post("/api/reviews", {
            "type": review_type,
            "rating": rating,
            "description": description.strip(),
            "master": iri("users", master_id),
            "client": iri("users", client_id),
        })
        review_id = created.get("id") if isinstance(created, dict) else None
        logger.info(f"Created review {review_id}")

        for photo in photos:
            if review_id is None:
                break
            try:
                self.client.upload(f"/api/reviews/{review_id}/upload-photo", [photo])
            except ProfileSyncError as e:
                logger.error(f"Review {review_id} saved but photo {Path(photo).name} failed: {e.message}")
        return created

    def excerpt(self, review: Review) -> str:
        """Plain-text description cut to the configured length."""
        return excerpt(review.description, self.client.settings.review_excerpt_length)
