"""PnL report API route."""

import re

import structlog
from fastapi import APIRouter, HTTPException, Query, status

from lptrack.api.dependencies import OrchestratorFactoryDep, SettingsDep
from lptrack.config.logging import report_context
from lptrack.core.exceptions import (
    CircuitBreakerOpenError,
    ConfigurationError,
    UpstreamFetchError,
)
from lptrack.data.models.report import PnlReport

log = structlog.get_logger(__name__)

router = APIRouter(tags=["pnl"])

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


@router.get("/pnl", response_model=PnlReport)
async def get_pnl_report(
    settings: SettingsDep,
    factory: OrchestratorFactoryDep,
    address: str = Query(..., description="Wallet address"),
    chain: str | None = Query(default=None, description="Chain key (defaults to settings)"),
    from_block: int | None = Query(default=None, ge=0, description="First block for swaps"),
) -> PnlReport:
    """Reconstruct the PnL timeline and summaries of a wallet.

    Errors:
        400: Invalid address or unknown chain.
        502: An upstream data source failed; no partial report is returned.
        503: An upstream circuit breaker is open.
    """
    if not ADDRESS_PATTERN.match(address):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid address: {address}",
        )

    try:
        orchestrator = factory(settings, chain)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    try:
        with report_context(address, chain or settings.chain):
            return await orchestrator.build_report(address, from_block=from_block)
    except UpstreamFetchError as e:
        log.error("pnl_report_upstream_failed", address=address, service=e.service, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
    except CircuitBreakerOpenError as e:
        log.warning("pnl_report_circuit_open", address=address, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)
        ) from e
    finally:
        await orchestrator.close()
