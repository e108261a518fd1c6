"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.

Wire format is camelCase (what the React client sends and reads); Python
attributes and MongoDB documents are snake_case. Every model accepts both.
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, ClassVar, FrozenSet, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, EmailStr, Field,
    field_validator, model_validator
)
from pydantic.alias_generators import to_camel

T = TypeVar("T")

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """MongoDB hands back naive UTC datetimes; keep everything comparable."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class PartialUpdate(CamelModel):
    """
    Body of a partial update: omitted fields are left untouched.

    Null clears a field only when it is listed in `clearable`; any other
    field sent as null fails validation.
    """
    clearable: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_nulls(self):
        nulled = sorted(
            name for name in self.model_fields_set
            if getattr(self, name) is None and name not in self.clearable
        )
        if nulled:
            raise ValueError(", ".join(to_camel(n) for n in nulled) + " cannot be null")
        return self


# ============================================================
# ENUMS
# ============================================================

class ExperienceLevel(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"
    expert = "expert"


class CertificationLevel(str, Enum):
    open_water = "Open Water"
    advanced_open_water = "Advanced Open Water"
    rescue_diver = "Rescue Diver"
    dive_master = "Dive Master"
    instructor = "Instructor"


class SiteCertification(str, Enum):
    open_water = "Open Water"
    advanced_open_water = "Advanced Open Water"
    rescue_diver = "Rescue Diver"
    dive_master = "Dive Master"
    technical = "Technical"


class PreferredDiveType(str, Enum):
    reef = "reef"
    wreck = "wreck"
    cave = "cave"
    night = "night"
    drift = "drift"
    deep = "deep"
    shore = "shore"
    boat = "boat"


class SiteVisibility(str, Enum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    poor = "poor"
    variable = "variable"


class CurrentStrength(str, Enum):
    none = "none"
    mild = "mild"
    moderate = "moderate"
    strong = "strong"
    variable = "variable"


class EntryType(str, Enum):
    shore = "shore"
    boat = "boat"
    both = "both"


class SiteFeature(str, Enum):
    reef = "reef"
    wreck = "wreck"
    cave = "cave"
    wall = "wall"
    drift = "drift"
    night_diving = "night_diving"
    macro = "macro"
    sharks = "sharks"
    rays = "rays"
    turtles = "turtles"
    deep = "deep"


class Facility(str, Enum):
    dive_shop = "dive_shop"
    equipment_rental = "equipment_rental"
    air_fills = "air_fills"
    nitrox = "nitrox"
    accommodation = "accommodation"
    restaurant = "restaurant"
    parking = "parking"
    showers = "showers"
    lockers = "lockers"


class BuddyDiveType(str, Enum):
    recreational = "recreational"
    technical = "technical"
    wreck = "wreck"
    cave = "cave"
    night = "night"
    deep = "deep"
    drift = "drift"


class BuddyRequestStatus(str, Enum):
    active = "active"
    completed = "completed"
    cancelled = "cancelled"
    expired = "expired"


class ResponseStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


class DiveVisibility(str, Enum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    poor = "poor"


class DiveCurrent(str, Enum):
    none = "none"
    mild = "mild"
    moderate = "moderate"
    strong = "strong"


class DiveType(str, Enum):
    reef = "reef"
    wreck = "wreck"
    cave = "cave"
    night = "night"
    drift = "drift"
    deep = "deep"
    shore = "shore"
    boat = "boat"
    training = "training"


class GasType(str, Enum):
    air = "air"
    nitrox = "nitrox"
    trimix = "trimix"


class Wetsuit(str, Enum):
    none = "none"
    three_mm = "3mm"
    five_mm = "5mm"
    seven_mm = "7mm"
    drysuit = "drysuit"


def _lower(value):
    return value.lower() if isinstance(value, str) else value


Rating5 = Annotated[int, Field(ge=1, le=5)]
Month = Annotated[int, Field(ge=1, le=12)]


# ============================================================
# GENERIC ENVELOPES
# ============================================================

class DataResponse(CamelModel, Generic[T]):
    success: bool = True
    data: T


class ListResponse(CamelModel, Generic[T]):
    success: bool = True
    count: int
    data: List[T]


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class ErrorResponse(CamelModel):
    """Body of every non-2xx response (see api/error_handlers.py)."""
    success: bool = False
    error: str
    errors: Optional[List[str]] = None
    message: Optional[str] = None


# ============================================================
# USER / AUTH SCHEMAS
# ============================================================

class UserLocation(CamelModel):
    city: Optional[str] = None
    country: Optional[str] = None
    coordinates: Optional[List[float]] = None

    @field_validator("coordinates")
    @classmethod
    def _lng_lat_pair(cls, v):
        if v is not None and len(v) != 2:
            raise ValueError("Coordinates must be [longitude, latitude]")
        return v


class UserEquipment(CamelModel):
    has_full_set: bool = False
    items: List[str] = []


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    certification_level: CertificationLevel
    experience_level: ExperienceLevel = ExperienceLevel.beginner
    number_of_dives: int = Field(0, ge=0)
    bio: str = Field("", max_length=500)
    location: Optional[UserLocation] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()

    @field_validator("experience_level", mode="before")
    @classmethod
    def _lower_level(cls, v):
        return _lower(v)


class LoginRequest(CamelModel):
    # Presence is checked by the route so the error message matches the client
    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdate(PartialUpdate):
    clearable = frozenset({"location", "equipment", "profile_image"})

    name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[UserLocation] = None
    certification_level: Optional[CertificationLevel] = None
    experience_level: Optional[ExperienceLevel] = None
    number_of_dives: Optional[int] = Field(None, ge=0)
    preferred_dive_types: Optional[List[PreferredDiveType]] = None
    languages: Optional[List[str]] = None
    equipment: Optional[UserEquipment] = None
    profile_image: Optional[str] = None
    is_looking_for_buddy: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower() if v else v

    @field_validator("experience_level", mode="before")
    @classmethod
    def _lower_level(cls, v):
        return _lower(v)


class PasswordUpdate(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class UserSummary(CamelModel):
    """The handful of fields other endpoints embed when they populate a user."""
    id: str = Field(..., alias="_id")
    name: str
    certification_level: Optional[str] = None
    experience_level: Optional[str] = None
    number_of_dives: int = 0


class AuthUser(UserSummary):
    email: str


class AuthResponse(CamelModel):
    success: bool = True
    token: str
    user: AuthUser


class TokenMessageResponse(CamelModel):
    success: bool = True
    token: str
    message: str


class PublicUserResponse(UserSummary):
    bio: str = ""
    location: Optional[UserLocation] = None
    preferred_dive_types: List[str] = []
    languages: List[str] = []
    equipment: Optional[UserEquipment] = None
    profile_image: Optional[str] = None
    is_verified: bool = False
    is_looking_for_buddy: bool = True
    last_active: Optional[datetime] = None
    created_at: Optional[datetime] = None


class UserResponse(PublicUserResponse):
    email: str
    favorite_sites: List[str] = []
    updated_at: Optional[datetime] = None


# ============================================================
# LOCATION SCHEMAS
# ============================================================

class GeoPoint(CamelModel):
    type: Literal["Point"] = "Point"
    coordinates: List[float]

    @field_validator("coordinates")
    @classmethod
    def _valid_point(cls, v):
        if len(v) != 2:
            raise ValueError("Coordinates must be [longitude, latitude]")
        lng, lat = v
        if not -180 <= lng <= 180 or not -90 <= lat <= 90:
            raise ValueError("Coordinates out of range")
        return v


class DepthRange(CamelModel):
    min: float = Field(..., ge=0)
    max: float
    average: Optional[float] = None

    @model_validator(mode="after")
    def _max_not_below_min(self):
        if self.max < self.min:
            raise ValueError("Maximum depth must be greater than minimum depth")
        return self


class TemperatureRange(CamelModel):
    min: Optional[float] = None
    max: Optional[float] = None


class WaterTemperature(CamelModel):
    summer: Optional[TemperatureRange] = None
    winter: Optional[TemperatureRange] = None


class Image(CamelModel):
    url: str
    caption: Optional[str] = None


class SiteRating(CamelModel):
    average: float = Field(0, ge=0, le=5)
    count: int = Field(0, ge=0)


class LocationCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    coordinates: GeoPoint
    country: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    difficulty: ExperienceLevel
    depth: DepthRange
    visibility: SiteVisibility = SiteVisibility.good
    current_strength: CurrentStrength = CurrentStrength.mild
    entry_type: EntryType = EntryType.boat
    best_months: List[Month] = []
    marine_life: List[str] = []
    features: List[SiteFeature] = []
    facilities: List[Facility] = []
    certification_required: SiteCertification = SiteCertification.open_water
    images: List[Image] = []
    water_temperature: Optional[WaterTemperature] = None
    hazards: List[str] = []
    local_regulations: Optional[str] = Field(None, max_length=500)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("difficulty", mode="before")
    @classmethod
    def _lower_difficulty(cls, v):
        return _lower(v)


class LocationResponse(LocationCreate):
    id: str = Field(..., alias="_id")
    rating: SiteRating = SiteRating()
    is_active: bool = True
    added_by: Optional[str] = None
    distance: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LocationListResponse(ListResponse[LocationResponse]):
    total: int


class LocationSummary(CamelModel):
    id: str = Field(..., alias="_id")
    name: str
    country: Optional[str] = None
    difficulty: Optional[str] = None


class RatingRequest(CamelModel):
    rating: Optional[float] = None
    comment: Optional[str] = None


# ============================================================
# BUDDY REQUEST SCHEMAS
# ============================================================

class PreferredDates(CamelModel):
    start: datetime
    end: datetime
    flexible: bool = False

    @field_validator("start", "end")
    @classmethod
    def _naive(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end < self.start:
            raise ValueError("Preferred end date must be on or after the start date")
        return self


class EmergencyContact(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    relationship: Optional[str] = None


class AdditionalNotes(CamelModel):
    equipment: Optional[str] = None
    transportation: Optional[str] = None
    accommodation: Optional[str] = None


class BuddyRequestCreate(CamelModel):
    location_id: str = Field(..., validation_alias=AliasChoices("locationId", "location", "location_id"))
    message: str = Field(..., min_length=1, max_length=500)
    preferred_dates: PreferredDates
    experience_level: Optional[ExperienceLevel] = None
    dive_type: BuddyDiveType = BuddyDiveType.recreational
    max_group_size: int = Field(4, ge=2, le=10)
    tags: List[str] = []
    emergency_contact: Optional[EmergencyContact] = None
    additional_notes: Optional[AdditionalNotes] = None

    @field_validator("experience_level", mode="before")
    @classmethod
    def _lower_level(cls, v):
        return _lower(v)

    @field_validator("tags")
    @classmethod
    def _lower_tags(cls, v):
        return [t.strip().lower() for t in v if t.strip()]


class BuddyRequestUpdate(PartialUpdate):
    clearable = frozenset({"emergency_contact", "additional_notes"})

    message: Optional[str] = Field(None, min_length=1, max_length=500)
    preferred_dates: Optional[PreferredDates] = None
    experience_level: Optional[ExperienceLevel] = None
    dive_type: Optional[BuddyDiveType] = None
    max_group_size: Optional[int] = Field(None, ge=2, le=10)
    tags: Optional[List[str]] = None
    emergency_contact: Optional[EmergencyContact] = None
    additional_notes: Optional[AdditionalNotes] = None
    status: Optional[BuddyRequestStatus] = None

    @field_validator("experience_level", mode="before")
    @classmethod
    def _lower_level(cls, v):
        return _lower(v)

    @field_validator("tags")
    @classmethod
    def _lower_tags(cls, v):
        return [t.strip().lower() for t in v if t.strip()] if v is not None else v


class BuddyResponseCreate(CamelModel):
    message: Optional[str] = Field(None, max_length=500)


class BuddyResponseOut(CamelModel):
    id: Optional[str] = Field(None, alias="_id")
    responder: Union[UserSummary, str]
    message: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None


class BuddyRequestResponse(CamelModel):
    id: str = Field(..., alias="_id")
    requester: Union[UserSummary, str]
    location: Union[LocationSummary, str]
    message: str
    preferred_dates: PreferredDates
    experience_level: str
    dive_type: str
    max_group_size: int
    status: str
    responses: List[BuddyResponseOut] = []
    tags: List[str] = []
    emergency_contact: Optional[EmergencyContact] = None
    additional_notes: Optional[AdditionalNotes] = None
    accepted_responses_count: int = 0
    pending_responses_count: int = 0
    is_full: bool = False
    is_expired: bool = False
    days_until_dive: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MyBuddyRequests(CamelModel):
    my_requests: List[BuddyRequestResponse] = []
    joined_requests: List[BuddyRequestResponse] = []
    pending_requests: List[BuddyRequestResponse] = []


class BuddyStats(CamelModel):
    active_requests: int = 0
    total_requests: int = 0
    responses_received: int = 0
    pending_responses: int = 0
    joined_requests: int = 0
    responses_sent: int = 0


# ============================================================
# DIVE LOG SCHEMAS
# ============================================================

class AirUsed(CamelModel):
    start: Optional[float] = Field(None, ge=0)
    end: Optional[float] = Field(None, ge=0)
    type: GasType = GasType.air


class DiveEquipment(CamelModel):
    wetsuit: Optional[Wetsuit] = None
    weight: Optional[float] = Field(None, ge=0, le=30)
    computer: Optional[bool] = None
    camera: Optional[bool] = None
    additional_gear: List[str] = []


class WildlifeSighting(CamelModel):
    species: str
    count: Optional[int] = Field(None, ge=0)


class DiveConditions(CamelModel):
    weather: Optional[str] = None
    sea_state: Optional[str] = None
    notes: Optional[str] = None


class DiveSafety(CamelModel):
    incidents: bool = False
    incident_details: Optional[str] = None
    deco_stops: bool = False
    safety_stop: bool = True


class DiveRating(CamelModel):
    overall: Rating5
    visibility: Optional[Rating5] = None
    marine_life: Optional[Rating5] = None
    difficulty: Optional[Rating5] = None


class BuddyReview(CamelModel):
    rating: Optional[Rating5] = None
    safety: Optional[Rating5] = None
    skills: Optional[Rating5] = None
    communication: Optional[Rating5] = None
    would_dive_again: Optional[bool] = None
    comments: Optional[str] = Field(None, max_length=300)


def _check_time(v: Optional[str]) -> Optional[str]:
    if v is not None and not TIME_PATTERN.match(v):
        raise ValueError("Time must be in HH:MM format")
    return v


def _check_not_future(v: Optional[datetime]) -> Optional[datetime]:
    v = to_naive_utc(v)
    if v is not None and v > datetime.now(timezone.utc).replace(tzinfo=None):
        raise ValueError("Dive date cannot be in the future for logged dives")
    return v


class DiveCreate(CamelModel):
    location_id: str = Field(..., validation_alias=AliasChoices("locationId", "location", "location_id"))
    buddy_id: Optional[str] = None
    buddy_request_id: Optional[str] = None
    date: datetime = Field(..., validation_alias=AliasChoices("date", "diveDate"))
    entry_time: str
    exit_time: str
    max_depth: float = Field(..., ge=1, le=60)
    average_depth: Optional[float] = Field(
        None, ge=1, validation_alias=AliasChoices("averageDepth", "avgDepth", "average_depth")
    )
    water_temperature: Optional[float] = Field(None, ge=-2, le=40)
    visibility: DiveVisibility
    current: Optional[DiveCurrent] = None
    dive_type: DiveType
    air_used: Optional[AirUsed] = None
    equipment: Optional[DiveEquipment] = None
    wildlife: List[WildlifeSighting] = []
    notes: Optional[str] = Field(None, max_length=1000)
    photos: List[Image] = []
    conditions: Optional[DiveConditions] = None
    safety: DiveSafety = DiveSafety()
    rating: DiveRating
    buddy_review: Optional[BuddyReview] = None
    is_public: bool = True

    @field_validator("entry_time", "exit_time")
    @classmethod
    def _time_format(cls, v):
        return _check_time(v)

    @field_validator("date")
    @classmethod
    def _not_future(cls, v):
        return _check_not_future(v)

    @field_validator("visibility", "current", "dive_type", mode="before")
    @classmethod
    def _lower_enums(cls, v):
        return _lower(v)


class DiveUpdate(PartialUpdate):
    clearable = frozenset({
        "buddy_id", "average_depth", "water_temperature", "current", "air_used",
        "equipment", "notes", "conditions", "safety", "buddy_review",
    })

    location_id: Optional[str] = Field(None, validation_alias=AliasChoices("locationId", "location", "location_id"))
    buddy_id: Optional[str] = None
    date: Optional[datetime] = Field(None, validation_alias=AliasChoices("date", "diveDate"))
    entry_time: Optional[str] = None
    exit_time: Optional[str] = None
    max_depth: Optional[float] = Field(None, ge=1, le=60)
    average_depth: Optional[float] = Field(
        None, ge=1, validation_alias=AliasChoices("averageDepth", "avgDepth", "average_depth")
    )
    water_temperature: Optional[float] = Field(None, ge=-2, le=40)
    visibility: Optional[DiveVisibility] = None
    current: Optional[DiveCurrent] = None
    dive_type: Optional[DiveType] = None
    air_used: Optional[AirUsed] = None
    equipment: Optional[DiveEquipment] = None
    wildlife: Optional[List[WildlifeSighting]] = None
    notes: Optional[str] = Field(None, max_length=1000)
    photos: Optional[List[Image]] = None
    conditions: Optional[DiveConditions] = None
    safety: Optional[DiveSafety] = None
    rating: Optional[DiveRating] = None
    buddy_review: Optional[BuddyReview] = None
    is_public: Optional[bool] = None

    @field_validator("entry_time", "exit_time")
    @classmethod
    def _time_format(cls, v):
        return _check_time(v)

    @field_validator("date")
    @classmethod
    def _not_future(cls, v):
        return _check_not_future(v)

    @field_validator("visibility", "current", "dive_type", mode="before")
    @classmethod
    def _lower_enums(cls, v):
        return _lower(v)


class DiveResponse(CamelModel):
    id: str = Field(..., alias="_id")
    user_id: str
    location_id: str
    location: Optional[LocationSummary] = None
    buddy_id: Optional[str] = None
    buddy: Optional[UserSummary] = None
    buddy_request_id: Optional[str] = None
    date: datetime
    entry_time: str
    exit_time: str
    duration: float
    max_depth: float
    average_depth: Optional[float] = None
    water_temperature: Optional[float] = None
    visibility: str
    current: Optional[str] = None
    dive_type: str
    air_used: Optional[AirUsed] = None
    equipment: Optional[DiveEquipment] = None
    wildlife: List[WildlifeSighting] = []
    notes: Optional[str] = None
    photos: List[Image] = []
    conditions: Optional[DiveConditions] = None
    safety: Optional[DiveSafety] = None
    rating: DiveRating
    buddy_review: Optional[BuddyReview] = None
    verified: bool = False
    dive_number: Optional[int] = None
    is_public: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class DivePageResponse(CamelModel):
    success: bool = True
    data: List[DiveResponse]
    pagination: Pagination


class DiveOverview(CamelModel):
    total_dives: int = 0
    total_duration: float = 0
    avg_depth: float = 0
    max_depth_reached: float = 0
    avg_duration: float = 0
    unique_locations: List[str] = []


class LocationCount(CamelModel):
    location_id: str
    name: str
    count: int


class MonthCount(CamelModel):
    month: str
    count: int


class DiveTypeCount(CamelModel):
    dive_type: str
    count: int


class BuddyCount(CamelModel):
    buddy_id: str
    name: str
    count: int


class DiveStats(CamelModel):
    overview: DiveOverview = DiveOverview()
    top_locations: List[LocationCount] = []
    monthly_dives: List[MonthCount] = []
    dive_types: List[DiveTypeCount] = []
    top_buddies: List[BuddyCount] = []
    total_hours_underwater: float = 0
    favorite_site: str = "None"
