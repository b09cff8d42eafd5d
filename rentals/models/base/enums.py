"""
Enumerations shared by models and schemas.
"""

from enum import Enum


class UserType(str, Enum):
    RENTER = "renter"
    SUPPLIER = "supplier"
    ADMIN = "admin"


class VehicleType(str, Enum):
    DIESEL = "diesel"
    GASOLINE = "gasoline"
    ELECTRIC = "electric"
    HYBRID = "hybrid"
    PLUG_IN_HYBRID = "plug_in_hybrid"


class GearboxType(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class FuelPolicy(str, Enum):
    LIKE_FOR_LIKE = "like_for_like"
    FREE_TANK = "free_tank"
    FULL_TO_FULL = "full_to_full"
    FULL_TO_EMPTY = "full_to_empty"


class MileagePolicy(str, Enum):
    LIMITED = "limited"
    UNLIMITED = "unlimited"


class RangeClass(str, Enum):
    MINI = "mini"
    MIDI = "midi"
    MAXI = "maxi"
    SCOOTER = "scooter"


class MultimediaTag(str, Enum):
    TOUCHSCREEN = "touchscreen"
    BLUETOOTH = "bluetooth"
    ANDROID_AUTO = "android_auto"
    APPLE_CAR_PLAY = "apple_car_play"


class Availability(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class ReviewStatus(str, Enum):
    """Moderation status of a review"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
