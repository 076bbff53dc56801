"""API routers for the Celestial Self chart API."""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends

from .aspects import ASPECTS
from .config import get_settings
from .exceptions import ChartCalculationError, InvalidInputError, UnknownBodyError
from .geocode import StaticLocationResolver
from .models import (
    AspectDefinitionResponse,
    BatchResponse,
    BatchResultItem,
    BatchSummary,
    ConfigAspectsResponse,
    ConfigHouseSystemsResponse,
    ErrorDetail,
    NatalChartBatchRequest,
    NatalChartRequest,
    NatalChartResponse,
)
from .service import ChartRequest, ChartService

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def get_chart_service() -> ChartService:
    return ChartService(get_settings(), resolver=StaticLocationResolver())


# Helper Functions
def _to_chart_request(request: NatalChartRequest) -> ChartRequest:
    """Convert request model to a service ChartRequest."""
    return ChartRequest(
        birth_date=request.birth_date,
        birth_time=request.birth_time,
        latitude=request.latitude,
        longitude=request.longitude,
        place=request.place,
        house_system=request.house_system.value if request.house_system else None,
        timezone=request.timezone,
    )


# Configuration Endpoints
@router.get(
    "/config/house-systems",
    response_model=ConfigHouseSystemsResponse,
    summary="List Available House Systems",
    description="List the house systems the server can compute. Unavailable systems fall back to equal houses."
)
async def get_house_systems(service: ChartService = Depends(get_chart_service)):
    """List all available house systems."""
    return ConfigHouseSystemsResponse(
        house_systems=[s.value for s in service.houses.available],
        default=service.settings.DEFAULT_HOUSE_SYSTEM,
    )


@router.get(
    "/config/aspects",
    response_model=ConfigAspectsResponse,
    summary="List Aspect Definitions",
    description="Get the aspect patterns used for natal charts with their exact angle, orb and nature."
)
async def get_aspects():
    """List all aspect definitions with orb information."""
    return ConfigAspectsResponse(
        aspects=[
            AspectDefinitionResponse(
                name=asp.name,
                symbol=asp.symbol,
                angle=asp.angle,
                orb=asp.orb,
                nature=asp.nature,
            )
            for asp in ASPECTS
        ]
    )


# Natal Chart Endpoints
@router.post(
    "/natal/calculate",
    response_model=NatalChartResponse,
    summary="Calculate Natal Chart",
    description="""
    Calculate a natal chart including:
    - Ecliptic positions, signs, houses and retrograde status of ten bodies
    - Ascendant and twelve house cusps
    - Major aspects between the bodies

    Missing birth time defaults to 12:00; missing coordinates use the
    resolved place or (0, 0).
    """,
    responses={
        200: {"description": "Successful calculation"},
        422: {"description": "Validation error - invalid input parameters"},
        500: {"description": "Calculation error"}
    }
)
async def calculate_natal_chart(request: NatalChartRequest,
                                service: ChartService = Depends(get_chart_service)):
    """Calculate a single natal chart."""
    try:
        chart = await service.compute(_to_chart_request(request))
        return NatalChartResponse(**chart.to_dict())
    except (InvalidInputError, UnknownBodyError):
        raise
    except Exception as e:
        logger.exception("Chart calculation failed")
        raise ChartCalculationError(f"Chart calculation failed: {str(e)}")


@router.post(
    "/natal/calculate/batch",
    response_model=BatchResponse,
    summary="Calculate Multiple Natal Charts",
    description="""
    Calculate multiple natal charts in a single request.

    Each chart is processed independently - partial failures are allowed.
    """,
    responses={
        200: {"description": "Batch processing complete (may include partial failures)"},
        422: {"description": "Validation error in request structure"}
    }
)
async def calculate_natal_batch(request: NatalChartBatchRequest,
                                service: ChartService = Depends(get_chart_service)):
    """Calculate multiple natal charts in batch."""
    results = []

    for idx, chart_req in enumerate(request.charts):
        try:
            chart = await service.compute(_to_chart_request(chart_req))
            results.append(BatchResultItem(
                id=chart_req.id or f"chart_{idx}",
                success=True,
                data=NatalChartResponse(**chart.to_dict()),
                error=None
            ))
        except Exception as e:
            logger.warning("Batch chart %s failed: %s", chart_req.id or idx, e)
            results.append(BatchResultItem(
                id=chart_req.id or f"chart_{idx}",
                success=False,
                data=None,
                error=ErrorDetail(
                    type=type(e).__name__,
                    message=str(e),
                    detail=None
                )
            ))

    return BatchResponse(
        results=results,
        summary=BatchSummary(
            total=len(results),
            successful=sum(1 for r in results if r.success),
            failed=sum(1 for r in results if not r.success)
        )
    )
