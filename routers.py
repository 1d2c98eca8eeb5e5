"""API routers for Swiss Ephemeris API."""

import logging

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

import scenarios
from exceptions import ChartCalculationError, SwissEphAPIException
from models import (
    PlanetaryPositionsRequest,
    TransitsRequest,
    SolarRevolutionRequest,
    SynastryRequest,
    ChartResponse,
    TransitsResponse,
    SolarRevolutionResponse,
    SynastryResponse,
    AspectDefinitionResponse,
    ConfigAspectsResponse,
)
from swetest import CalculatorInvoker, SwetestRunner
from synastry import ASPECTS

logger = logging.getLogger(__name__)

router = APIRouter()


def get_calculator() -> CalculatorInvoker:
    """swetest runner configured from settings; overridden in tests."""
    return SwetestRunner()


async def _run(what: str, func, *args, **kwargs):
    """Run a blocking chart operation off the event loop."""
    try:
        return await run_in_threadpool(func, *args, **kwargs)
    except (SwissEphAPIException, ValueError):
        raise
    except Exception as e:
        logger.exception("%s failed", what)
        raise ChartCalculationError(f"{what} failed: {str(e)}")


# Configuration Endpoints
@router.get(
    "/config/aspects",
    response_model=ConfigAspectsResponse,
    summary="List Aspect Definitions",
    description="Aspects used for synastry and transits, with their exact angle and orb."
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
            )
            for asp in ASPECTS
        ]
    )


# Chart Endpoints
@router.post(
    "/charts/positions",
    response_model=ChartResponse,
    summary="Calculate Planetary Positions",
    description="""
    Calculate a chart for a UTC datetime and location:
    - Planets, lunar node, Lilith and the asteroids Chiron, Ceres, Pallas, Juno, Vesta
    - Placidus house cusps
    - Ascendant, Midheaven, Descendant, IC, ARMC and Vertex
    - South Node and Part of Fortune
    """,
    responses={
        200: {"description": "Successful calculation"},
        422: {"description": "Validation error - invalid input parameters"},
        502: {"description": "swetest failed"}
    }
)
async def calculate_planetary_positions(request: PlanetaryPositionsRequest,
                                        calculator: CalculatorInvoker = Depends(get_calculator)):
    """Calculate a single chart."""
    result = await _run(
        "Chart calculation",
        scenarios.calculate_planetary_positions,
        request.datetime, request.latitude, request.longitude,
        calculator=calculator,
    )
    return ChartResponse(**result)


@router.post(
    "/charts/transits",
    response_model=TransitsResponse,
    summary="Calculate Transits",
    description="""
    Calculate the natal chart, the current sky for the same location, and the
    aspects from transiting planets to natal planets.
    """,
    responses={
        200: {"description": "Successful calculation"},
        422: {"description": "Validation error - invalid input parameters"},
        502: {"description": "swetest failed"}
    }
)
async def calculate_transits(request: TransitsRequest,
                             calculator: CalculatorInvoker = Depends(get_calculator)):
    """Calculate transits for the current moment."""
    result = await _run(
        "Transit calculation",
        scenarios.calculate_transits,
        request.birth_datetime, request.latitude, request.longitude,
        calculator=calculator,
    )
    return TransitsResponse(**result)


@router.post(
    "/charts/solar-return",
    response_model=SolarRevolutionResponse,
    summary="Calculate Solar Return",
    description="""
    Find the moment in the requested year when the Sun returns to its natal
    longitude and calculate the chart for that moment at the return location.
    """,
    responses={
        200: {"description": "Successful calculation"},
        422: {"description": "Validation error - invalid input parameters"},
        502: {"description": "swetest failed"}
    }
)
async def calculate_solar_revolution(request: SolarRevolutionRequest,
                                     calculator: CalculatorInvoker = Depends(get_calculator)):
    """Calculate a solar return chart."""
    result = await _run(
        "Solar return calculation",
        scenarios.calculate_solar_revolution,
        request.birth_datetime, request.birth_latitude, request.birth_longitude,
        request.return_year, request.return_latitude, request.return_longitude,
        calculator=calculator,
    )
    return SolarRevolutionResponse(**result)


@router.post(
    "/charts/synastry",
    response_model=SynastryResponse,
    summary="Calculate Synastry",
    description="""
    Calculate both charts and every aspect between their ten classical planets,
    sorted by orb (most exact first).
    """,
    responses={
        200: {"description": "Successful calculation"},
        422: {"description": "Validation error - invalid input parameters"},
        502: {"description": "swetest failed"}
    }
)
async def calculate_synastry(request: SynastryRequest,
                             calculator: CalculatorInvoker = Depends(get_calculator)):
    """Calculate synastry aspects between two charts."""
    result = await _run(
        "Synastry calculation",
        scenarios.calculate_synastry,
        request.person1_datetime, request.person1_latitude, request.person1_longitude,
        request.person2_datetime, request.person2_latitude, request.person2_longitude,
        calculator=calculator,
    )
    return SynastryResponse(**result)
