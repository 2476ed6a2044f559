"""Data models for the application."""

from .address import Address, AddressValue
from .gallery import Gallery, GalleryImage
from .profile import (
    AvailableSocialNetwork,
    Education,
    Phone,
    PhoneType,
    ProfileData,
    ProfileUpdate,
    Service,
    SocialNetwork,
    WorkExample,
)
from .references import ResolvedRef, UnresolvedRef, iri, parse_iri, parse_reference
from .review import Review, ReviewImage, ReviewUser

__all__ = [
    "Address",
    "AddressValue",
    "AvailableSocialNetwork",
    "Education",
    "Gallery",
    "GalleryImage",
    "Phone",
    "PhoneType",
    "ProfileData",
    "ProfileUpdate",
    "ResolvedRef",
    "Review",
    "ReviewImage",
    "ReviewUser",
    "Service",
    "SocialNetwork",
    "UnresolvedRef",
    "WorkExample",
    "iri",
    "parse_iri",
    "parse_reference",
]
