"""Address related data models."""

from typing import List, Optional

from pydantic import BaseModel, Field

# Administrative levels in display order, with their API collection names
ADDRESS_LEVELS = (
    ("province", "provinces"),
    ("city", "cities"),
    ("district", "districts"),
    ("suburb", "suburbs"),
    ("settlement", "settlements"),
    ("community", "communities"),
    ("village", "villages"),
)

NEW_ID_PREFIX = "new-"


class AddressValue(BaseModel):
    """Normalized local selection of administrative level ids."""
    province_id: Optional[int] = None
    city_id: Optional[int] = None
    suburb_ids: List[int] = Field(default_factory=list)
    district_ids: List[int] = Field(default_factory=list)
    settlement_id: Optional[int] = None
    community_id: Optional[int] = None
    village_id: Optional[int] = None

    def is_submittable(self) -> bool:
        """Province is set and either a city or at least one district is."""
        return self.province_id is not None and (
            self.city_id is not None or len(self.district_ids) > 0
        )


class Address(BaseModel):
    """An address as shown on the profile."""
    id: str
    display_text: str = ""
    value: AddressValue = Field(default_factory=AddressValue)
