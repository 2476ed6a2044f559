"""Profile read model and its sub-collections."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .address import Address


class PhoneType(str, Enum):
    """Phone slots; each maps to one scalar field on the user resource."""
    TJ = "tj"
    INTERNATIONAL = "international"

    @property
    def phone_id(self) -> str:
        return f"phone-{self.value}"

    @property
    def api_field(self) -> str:
        return "phone1" if self is PhoneType.TJ else "phone2"


class Phone(BaseModel):
    """A phone number in one of the two fixed slots."""
    id: str
    number: str
    type: PhoneType

    @classmethod
    def for_type(cls, phone_type: PhoneType, number: str) -> "Phone":
        return cls(id=phone_type.phone_id, number=number, type=phone_type)


class SocialNetwork(BaseModel):
    """A social network entry; an empty handle means present but unset."""
    id: str
    network: str
    handle: str = ""
    url: Optional[str] = None


class AvailableSocialNetwork(BaseModel):
    """Catalog entry offered when adding a network."""
    id: int
    network: str


class Education(BaseModel):
    """An education entry."""
    id: str
    institution: str = ""
    specialty: str = ""
    occupation_id: Optional[int] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    currently_studying: bool = False


class WorkExample(BaseModel):
    """A gallery image shown as a work example."""
    id: str
    image: str
    title: str = "Work example"


class Service(BaseModel):
    """A service (ticket) listed on the profile."""
    id: str
    name: str
    price: float = 0
    unit: str = ""
    description: str = ""
    active: bool = True


class ProfileData(BaseModel):
    """Denormalized profile read model."""
    id: str = ""
    full_name: str = ""
    email: str = ""
    gender: str = ""
    date_of_birth: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    rating: float = 0
    reviews: int = 0
    avatar: Optional[str] = None
    education: List[Education] = Field(default_factory=list)
    work_examples: List[WorkExample] = Field(default_factory=list)
    work_area: str = ""
    addresses: List[Address] = Field(default_factory=list)
    can_work_remotely: bool = False
    services: List[Service] = Field(default_factory=list)
    social_networks: List[SocialNetwork] = Field(default_factory=list)
    phones: List[Phone] = Field(default_factory=list)

    @property
    def specialty(self) -> str:
        """Specialty labels as one display string."""
        return ", ".join(self.specialties)


class ProfileUpdate(BaseModel):
    """
    Partial update of the profile read model.

    Only the fields explicitly set on an update are merged into the store;
    everything else on the current snapshot is left as it is.
    """
    full_name: Optional[str] = None
    specialties: Optional[List[str]] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None
    avatar: Optional[str] = None
    education: Optional[List[Education]] = None
    work_examples: Optional[List[WorkExample]] = None
    work_area: Optional[str] = None
    addresses: Optional[List[Address]] = None
    can_work_remotely: Optional[bool] = None
    services: Optional[List[Service]] = None
    social_networks: Optional[List[SocialNetwork]] = None
    phones: Optional[List[Phone]] = None
