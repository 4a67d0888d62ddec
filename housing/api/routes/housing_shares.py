from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from housing.api.auth import Identity, require_writer
from housing.api.dependencies import get_listing_manager
from housing.api.rate_limit import enforce_create_rate_limit
from housing.api.schemas.housing_share import (
    DeleteHousingShareResponse,
    HousingShareResponse,
    HousingShareUpdateResponse,
    PaginatedHousingSharesResponse,
    PhotoResponse,
    PreferencesResponse,
)
from housing.application.services.listing_lifecycle_manager import ListingLifecycleManager
from housing.config import settings
from housing.domain.entities.housing_share import HousingShare, MediaFile

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/housing-shares", tags=["housing-shares"])


def _listing_to_response(listing: HousingShare) -> HousingShareResponse:
    return HousingShareResponse(
        id=listing.id,
        owner_id=listing.owner_id,
        title=listing.title,
        description=listing.description,
        governorate=listing.governorate,
        city=listing.city,
        address=listing.address,
        university=listing.university,
        amenities=listing.amenities,
        current_occupants=listing.current_occupants,
        total_capacity=listing.total_capacity,
        price_per_person=listing.price_per_person,
        preferences=PreferencesResponse(
            gender=listing.preferences.gender,
            study_field=listing.preferences.study_field,
            year_of_study=listing.preferences.year_of_study,
        ),
        photos=[PhotoResponse(url=p.url, deletable_id=p.deletable_id) for p in listing.photos],
        status=listing.status,
        created_at=listing.created_at,
        updated_at=listing.updated_at,
    )


async def _read_photos(photos: list[UploadFile] | None) -> list[MediaFile]:
    """Enforce upload limits and load the files into memory."""
    if not photos:
        return []
    if len(photos) > settings.max_photos:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.max_photos} photos are allowed.",
        )

    files: list[MediaFile] = []
    for photo in photos:
        content_type = photo.content_type or ""
        if not content_type.startswith("image/"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Only images are allowed."
            )
        content = await photo.read()
        if len(content) > settings.max_photo_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"{photo.filename} exceeds {settings.max_photo_bytes} bytes.",
            )
        files.append(
            MediaFile(filename=photo.filename or "photo", content=content, content_type=content_type)
        )
    return files


class ListingForm:
    """Multipart form fields of a housing share; every field optional at this layer."""

    def __init__(
        self,
        title: Annotated[str | None, Form(max_length=100)] = None,
        description: Annotated[str | None, Form(max_length=1000)] = None,
        governorate: Annotated[str | None, Form()] = None,
        city: Annotated[str | None, Form()] = None,
        address: Annotated[str | None, Form()] = None,
        university: Annotated[str | None, Form()] = None,
        amenities: Annotated[str | None, Form()] = None,
        current_occupants: Annotated[int | None, Form(alias="currentOccupants")] = None,
        total_capacity: Annotated[int | None, Form(alias="totalCapacity")] = None,
        price_per_person: Annotated[float | None, Form(alias="pricePerPerson")] = None,
        preferences: Annotated[str | None, Form()] = None,
        listing_status: Annotated[str | None, Form(alias="status")] = None,
    ) -> None:
        self.fields: dict[str, Any] = {
            "title": title,
            "description": description,
            "governorate": governorate,
            "city": city,
            "address": address,
            "university": university,
            "amenities": amenities,
            "current_occupants": current_occupants,
            "total_capacity": total_capacity,
            # Keep the client's text so Decimal conversion does not go through binary float
            "price_per_person": None if price_per_person is None else str(price_per_person),
            "preferences": preferences,
            "status": listing_status,
        }


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=HousingShareResponse,
)
async def create_housing_share(
    identity: Annotated[Identity, Depends(enforce_create_rate_limit)],
    form: Annotated[ListingForm, Depends()],
    manager: Annotated[ListingLifecycleManager, Depends(get_listing_manager)],
    photos: Annotated[list[UploadFile] | None, File()] = None,
) -> HousingShareResponse:
    files = await _read_photos(photos)
    listing = await manager.create(identity.user_id, form.fields, files)
    return _listing_to_response(listing)


@router.get("", response_model=PaginatedHousingSharesResponse)
async def list_housing_shares(
    manager: Annotated[ListingLifecycleManager, Depends(get_listing_manager)],
    governorate: str | None = Query(default=None),
    listing_status: str | None = Query(default=None, alias="status"),
    gender: str | None = Query(default=None),
    min_price: float | None = Query(default=None, alias="minPrice"),
    max_price: float | None = Query(default=None, alias="maxPrice"),
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
) -> PaginatedHousingSharesResponse:
    """List housing shares, newest first, with optional exact-match and price filters."""
    filters = {
        "governorate": governorate,
        "status": listing_status,
        "gender": gender,
        "minPrice": min_price,
        "maxPrice": max_price,
    }
    result = await manager.list(filters, page, limit)
    return PaginatedHousingSharesResponse(
        items=[_listing_to_response(item) for item in result.items],
        total=result.total,
        total_pages=result.total_pages,
        current_page=result.current_page,
        page_size=result.page_size,
    )


@router.get("/{listing_id}", response_model=HousingShareResponse)
async def get_housing_share(
    listing_id: UUID,
    manager: Annotated[ListingLifecycleManager, Depends(get_listing_manager)],
) -> HousingShareResponse:
    listing = await manager.get_by_id(listing_id)
    return _listing_to_response(listing)


@router.put("/{listing_id}", response_model=HousingShareUpdateResponse)
async def update_housing_share(
    listing_id: UUID,
    identity: Annotated[Identity, Depends(require_writer)],
    form: Annotated[ListingForm, Depends()],
    manager: Annotated[ListingLifecycleManager, Depends(get_listing_manager)],
    photos: Annotated[list[UploadFile] | None, File()] = None,
) -> HousingShareUpdateResponse:
    files = await _read_photos(photos)
    result = await manager.update(identity.user_id, listing_id, form.fields, files)
    response = _listing_to_response(result.listing)
    return HousingShareUpdateResponse(**response.model_dump(), warnings=result.warnings)


@router.delete("/{listing_id}", response_model=DeleteHousingShareResponse)
async def delete_housing_share(
    listing_id: UUID,
    identity: Annotated[Identity, Depends(require_writer)],
    manager: Annotated[ListingLifecycleManager, Depends(get_listing_manager)],
) -> DeleteHousingShareResponse:
    result = await manager.delete(identity.user_id, listing_id)
    if result.warnings:
        logger.warning(
            "housing_share_media_cleanup_incomplete",
            listing_id=str(listing_id),
            warnings=result.warnings,
        )
    return DeleteHousingShareResponse(warnings=result.warnings)
