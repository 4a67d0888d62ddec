from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from housing.domain.enums.gender import Gender
from housing.domain.enums.listing_status import ListingStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PhotoResponse(_CamelModel):
    url: str
    deletable_id: str


class PreferencesResponse(_CamelModel):
    gender: Gender
    study_field: str | None = None
    year_of_study: str | None = None


class HousingShareResponse(_CamelModel):
    id: UUID
    owner_id: str
    title: str
    description: str
    governorate: str
    city: str
    address: str
    university: str
    amenities: list[str]
    current_occupants: int
    total_capacity: int
    price_per_person: Decimal
    preferences: PreferencesResponse
    photos: list[PhotoResponse]
    status: ListingStatus
    created_at: datetime
    updated_at: datetime


class HousingShareUpdateResponse(HousingShareResponse):
    warnings: list[str] = []


class PaginatedHousingSharesResponse(_CamelModel):
    items: list[HousingShareResponse]
    total: int
    total_pages: int
    current_page: int
    page_size: int


class DeleteHousingShareResponse(_CamelModel):
    status: str = "success"
    message: str = "Housing share deleted successfully"
    warnings: list[str] = []


class ErrorResponse(_CamelModel):
    status: str = "error"
    code: str
    message: str
    errors: list[str] | None = None
