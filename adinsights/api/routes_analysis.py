from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from adinsights.ads.client import GoogleAdsClient, UpstreamQueryError
from adinsights.agent.dates import DateInterval
from adinsights.agent.pipeline import AnalysisPipeline
from adinsights.agent.query_validator import validate_gaql
from adinsights.api.deps import get_ads_client, get_pipeline
from adinsights.models import AskRequest, CampaignSearchRequest, CompareRequest, ExecuteQueryRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])

UPSTREAM_HINT = "Check the customer id, account access and that the selected fields are compatible with the resource."


def upstream_error(exc: UpstreamQueryError) -> HTTPException:
    return HTTPException(
        status_code=502,
        detail={"error": exc.message, "details": exc.details, "hint": UPSTREAM_HINT},
    )


@router.post("/analysis/ask")
async def ask_question(payload: AskRequest, pipeline: AnalysisPipeline = Depends(get_pipeline)):
    try:
        return await pipeline.ask(payload.account_id, payload.question)
    except UpstreamQueryError as exc:
        raise upstream_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to answer question for %s", payload.account_id)
        raise HTTPException(status_code=500, detail=f"Failed to answer question: {exc}") from exc


@router.post("/analysis/compare")
async def compare_periods(payload: CompareRequest, pipeline: AnalysisPipeline = Depends(get_pipeline)):
    try:
        result = await pipeline.compare_periods(
            payload.account_id,
            payload.period1.to_interval(),
            payload.period2.to_interval(),
            analysis_type=payload.analysis_type,
            campaign_filter=payload.campaign_filter,
        )
        return result.to_dict()
    except UpstreamQueryError as exc:
        raise upstream_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to compare periods for %s", payload.account_id)
        raise HTTPException(status_code=500, detail=f"Failed to compare periods: {exc}") from exc


@router.post("/analysis/campaign-search")
async def search_campaigns(payload: CampaignSearchRequest, pipeline: AnalysisPipeline = Depends(get_pipeline)):
    try:
        return await pipeline.search_campaigns(payload.account_id, payload.search_text, payload.to_interval())
    except UpstreamQueryError as exc:
        raise upstream_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to search campaigns for %s", payload.account_id)
        raise HTTPException(status_code=500, detail=f"Failed to search campaigns: {exc}") from exc


@router.get("/analysis/seasonal/{account_id}")
async def seasonal_patterns(
    account_id: str,
    start: date = Query(...),
    end: date = Query(...),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    interval = DateInterval(start=start, end=end, label=f"{start.isoformat()} to {end.isoformat()}")
    try:
        return await pipeline.seasonal(account_id, interval)
    except UpstreamQueryError as exc:
        raise upstream_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to detect seasonal patterns for %s", account_id)
        raise HTTPException(status_code=500, detail=f"Failed to detect seasonal patterns: {exc}") from exc


@router.post("/execute-query")
async def execute_query(payload: ExecuteQueryRequest, client: GoogleAdsClient = Depends(get_ads_client)):
    try:
        validate_gaql(payload.query)
        rows = await client.execute(payload.query, payload.customer_id)
        return {"success": True, "data": rows, "rowCount": len(rows)}
    except UpstreamQueryError as exc:
        raise upstream_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to execute query for %s", payload.customer_id)
        raise HTTPException(status_code=500, detail=f"Failed to execute query: {exc}") from exc
