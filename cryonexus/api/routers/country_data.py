"""Country reference data endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from cryonexus.api.schemas.response import ErrorResponse
from cryonexus.logger import get_logger
from cryonexus.services.country_data import CountryDataStore, CountryRecord

logger = get_logger(__name__)
router = APIRouter()


def get_country_store(request: Request) -> CountryDataStore:
    """Dependency to get the CountryDataStore built at startup."""
    return request.app.state.country_store


@router.get(
    "/country-data",
    response_model=CountryRecord,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_country_data(
    iso3: Optional[str] = Query(default=None, description="ISO 3166-1 alpha-3 code"),
    store: CountryDataStore = Depends(get_country_store),
):
    """
    Get economic, risk and displacement reference data for one country.

    - **iso3**: 3-letter country code, case-insensitive
    """
    if not iso3 or len(iso3) != 3:
        raise HTTPException(
            status_code=400,
            detail="Missing or invalid 'iso3' query parameter (must be 3-letter ISO code)",
        )

    record = store.get(iso3)
    if record is None:
        logger.info(f"Country lookup miss: {iso3}")
        raise HTTPException(status_code=404, detail=f"No data found for country: {iso3}")

    return record
