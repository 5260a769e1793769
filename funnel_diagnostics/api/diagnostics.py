"""
FastAPI router module for the funnel diagnostic engine.

The engine itself is an in-process library; this router is the host adapter
that exposes it over HTTP. It performs no persistence.

Key Endpoints:
- POST /diagnostics - Run the full pipeline on one snapshot
- POST /diagnostics/batch - Run the pipeline on several snapshots, order kept
- GET /diagnostics/targets - Default metric registry
- GET /diagnostics/benchmarks - Available benchmark profiles
- GET /diagnostics/benchmarks/profile - Resolve one profile (segment wins)

Error Handling:
- Negative or non-numeric counters are rejected by pydantic (HTTP 422)
- Missing, zero or inconsistent data is never an error; it is reported in the
  DiagnosticReport
- RegistryConfigurationError is logged with full detail and answered with a
  generic HTTP 500 "Diagnostic engine misconfigured"

Dependencies:
- funnel_diagnostics/core/dependencies.py: SettingsDep, EngineConfigDep
- funnel_diagnostics/services/diagnostic.py: run_diagnostic_request, run_diagnostic_batch
- funnel_diagnostics/services/benchmarks.py: benchmark catalog and profiles
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query

from funnel_diagnostics.core.dependencies import EngineConfigDep, SettingsDep
from funnel_diagnostics.models.enums import BenchmarkChannel, BenchmarkSegment
from funnel_diagnostics.models.schemas import (
    BenchmarkCatalog,
    BenchmarkProfile,
    DiagnosticReport,
    DiagnosticRequest,
    MetricTarget,
)
from funnel_diagnostics.services.benchmarks import get_benchmark_catalog, get_benchmark_profile
from funnel_diagnostics.services.diagnostic import run_diagnostic_batch, run_diagnostic_request
from funnel_diagnostics.services.registry import RegistryConfigurationError


# =============================================================================
# Module Configuration
# =============================================================================

logger = logging.getLogger(__name__)

# Maximum number of snapshots accepted by the batch endpoint
MAX_BATCH_SIZE: int = 100

MISCONFIGURED_DETAIL: str = "Diagnostic engine misconfigured"


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


# =============================================================================
# POST /diagnostics - Run Diagnostic
# =============================================================================


@router.post("", response_model=DiagnosticReport)
async def create_diagnostic(
    request: DiagnosticRequest,
    settings: SettingsDep,
    engine_config: EngineConfigDep,
) -> DiagnosticReport:
    """
    Run the full diagnostic pipeline on one funnel snapshot.

    Args:
        request: Snapshot, optional target overrides and context.
        settings: Application settings from dependency injection.
        engine_config: Engine configuration from dependency injection.

    Returns:
        DiagnosticReport with stage evaluations, impacts, confidence,
        bottlenecks and recommended actions.

    Raises:
        HTTPException 500: If the metric registry is out of sync with the
            stage table.

    Example Request:
        POST /diagnostics
        {
            "snapshot": {"leads": 200, "mql": 40, "sql": 10, "spend": 12000},
            "context": {"channel": "linkedin_ads"}
        }
    """
    try:
        return run_diagnostic_request(request, engine_config, settings)
    except RegistryConfigurationError as e:
        logger.error(f"Diagnostic engine misconfigured: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=MISCONFIGURED_DETAIL)


# =============================================================================
# POST /diagnostics/batch - Run Diagnostics in Batch
# =============================================================================


@router.post("/batch", response_model=List[DiagnosticReport])
async def create_diagnostic_batch(
    requests: List[DiagnosticRequest],
    settings: SettingsDep,
    engine_config: EngineConfigDep,
) -> List[DiagnosticReport]:
    """
    Run the pipeline on several snapshots. Reports keep the request order.

    Raises:
        HTTPException 400: If the batch is empty or larger than MAX_BATCH_SIZE.
        HTTPException 500: If the metric registry is out of sync with the
            stage table.
    """
    if not requests:
        logger.warning("POST /diagnostics/batch rejected: empty batch")
        raise HTTPException(status_code=400, detail="At least one diagnostic request is required")

    if len(requests) > MAX_BATCH_SIZE:
        logger.warning(f"POST /diagnostics/batch rejected: {len(requests)} requests")
        raise HTTPException(
            status_code=400,
            detail=f"Batch size {len(requests)} exceeds the maximum of {MAX_BATCH_SIZE}",
        )

    try:
        return run_diagnostic_batch(requests, engine_config, settings)
    except RegistryConfigurationError as e:
        logger.error(f"Diagnostic engine misconfigured: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=MISCONFIGURED_DETAIL)


# =============================================================================
# GET /diagnostics/targets - Default Registry
# =============================================================================


@router.get("/targets", response_model=Dict[str, MetricTarget])
async def list_targets(engine_config: EngineConfigDep) -> Dict[str, MetricTarget]:
    """Return the default metric targets the engine grades against."""
    return dict(engine_config.targets)


# =============================================================================
# GET /diagnostics/benchmarks - Benchmark Profiles
# =============================================================================


@router.get("/benchmarks", response_model=BenchmarkCatalog)
async def list_benchmarks() -> BenchmarkCatalog:
    """Return every channel and segment benchmark profile."""
    return get_benchmark_catalog()


@router.get("/benchmarks/profile", response_model=BenchmarkProfile)
async def resolve_benchmark_profile(
    channel: Optional[BenchmarkChannel] = Query(default=None, description="Benchmark channel"),
    segment: Optional[BenchmarkSegment] = Query(default=None, description="Benchmark segment (wins over channel)"),
) -> BenchmarkProfile:
    """
    Resolve the benchmark profile for a channel and/or segment.

    Raises:
        HTTPException 404: If neither channel nor segment is given.
    """
    profile = get_benchmark_profile(channel, segment)
    if profile is None:
        raise HTTPException(status_code=404, detail="No benchmark profile for the given channel/segment")
    return profile


__all__ = ["router"]
