# Models package init
"""
StayHub Backend: ORM Mapping of the Hosted Tables
==================================================

Importing this package registers every mapped class on Base.metadata so
string-based relationship targets resolve regardless of import order.
"""

from stayhub.models.user import Gender, Language, User, UserRole, UserStats
from stayhub.models.room import Amenity, Location, Review, Room, RoomImage, room_amenities
from stayhub.models.booking import (
    BOOKING_ACTIVE,
    BOOKING_CANCELLED,
    BOOKING_PAID,
    Booking,
)
from stayhub.models.favorite import Collection, Favorite, collection_rooms
from stayhub.models.user_settings import UserSettings

__all__ = [
    "Amenity",
    "BOOKING_ACTIVE",
    "BOOKING_CANCELLED",
    "BOOKING_PAID",
    "Booking",
    "Collection",
    "Favorite",
    "Gender",
    "Language",
    "Location",
    "Review",
    "Room",
    "RoomImage",
    "User",
    "UserRole",
    "UserSettings",
    "UserStats",
    "collection_rooms",
    "room_amenities",
]
