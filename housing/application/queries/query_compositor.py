import asyncio
import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

from housing.application.interfaces.housing_share_repository import (
    HousingShareRepository,
    ListingCriteria,
)
from housing.domain.entities.housing_share import HousingShare
from housing.domain.errors import StorageError, ValidationError

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Recognized filter keys -> criteria attribute
FILTER_KEYS: dict[str, str] = {
    "governorate": "governorate",
    "region": "governorate",
    "status": "status",
    "gender": "gender",
    "preferences.gender": "gender",
    "minPrice": "min_price",
    "min_price": "min_price",
    "maxPrice": "max_price",
    "max_price": "max_price",
}


@dataclass
class ListingPage:
    items: list[HousingShare]
    total: int
    total_pages: int
    current_page: int
    page_size: int


def _to_price(key: str, value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError([f"{key} must be a number"]) from exc


def build_criteria(filters: Mapping[str, Any]) -> ListingCriteria:
    """
    Translate a filter mapping into store criteria.

    Absent, ``None`` or empty values impose no constraint and unknown keys
    are ignored. An inverted price range is kept as is and simply matches
    nothing.
    """
    values: dict[str, Any] = {}
    for key, value in filters.items():
        name = FILTER_KEYS.get(key)
        if name is None or value is None or value == "":
            continue
        if name in ("min_price", "max_price"):
            values[name] = _to_price(key, value)
        else:
            values[name] = value.value if hasattr(value, "value") else str(value)
    return ListingCriteria(**values)


def clamp_pagination(
    page: int | None,
    page_size: int | None,
    *,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> tuple[int, int]:
    """page < 1 becomes 1; a page size outside [1, max] falls back to the default."""
    page = page if page is not None and page >= 1 else 1
    if page_size is None or page_size < 1 or page_size > max_page_size:
        page_size = default_page_size
    return page, page_size


class QueryCompositor:
    """
    Runs a filtered, newest-first page fetch and the matching total count.

    The two queries are independent and run concurrently; no point-in-time
    consistency between them is promised.
    """

    def __init__(
        self,
        repository: HousingShareRepository,
        *,
        timeout: float = 10.0,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self._repository = repository
        self._timeout = timeout
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    async def list(
        self,
        filters: Mapping[str, Any],
        page: int | None = None,
        page_size: int | None = None,
        timeout: float | None = None,
    ) -> ListingPage:
        criteria = build_criteria(filters)
        page, page_size = clamp_pagination(
            page,
            page_size,
            default_page_size=self._default_page_size,
            max_page_size=self._max_page_size,
        )
        deadline = self._timeout if timeout is None else timeout

        try:
            items, total = await asyncio.gather(
                asyncio.wait_for(
                    self._repository.find(
                        criteria, limit=page_size, offset=(page - 1) * page_size
                    ),
                    deadline,
                ),
                asyncio.wait_for(self._repository.count(criteria), deadline),
            )
        except asyncio.TimeoutError as exc:
            logger.error("housing_share_query_timed_out", timeout=deadline)
            raise StorageError("Listing query timed out") from exc
        except StorageError:
            raise
        except Exception as exc:
            logger.exception("housing_share_query_failed")
            raise StorageError(f"Listing query failed: {exc}") from exc

        logger.debug(
            "housing_shares_listed",
            total=total,
            page=page,
            page_size=page_size,
            returned=len(items),
        )
        return ListingPage(
            items=items,
            total=total,
            total_pages=math.ceil(total / page_size),
            current_page=page,
            page_size=page_size,
        )
