"""
URL analysis API routes.
"""
import logging
import uuid
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from campaign_assist.api.deps import get_analysis_client, get_analysis_workflow
from campaign_assist.core.exceptions import (
    InvalidURLError, NotFoundError, PersistenceError, PollTransportError, SubmissionError,
    raise_bad_gateway, raise_bad_request, raise_not_found
)
from campaign_assist.schemas.analysis import AnalyzeRequest, AnalyzeResponse, PollProgress
from campaign_assist.schemas.common import MessageResponse
from campaign_assist.services.analysis_client import AnalysisClient
from campaign_assist.services.analysis_workflow import AnalysisWorkflow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


@router.post("/analyze", response_model=AnalyzeResponse, status_code=202)
async def submit_analysis(
    request: AnalyzeRequest,
    workflow: AnalysisWorkflow = Depends(get_analysis_workflow)
):
    """
    Submit a URL for analysis.
    Creates the draft when no campaign_id is given; polling runs in the background.
    """
    try:
        submission = await workflow.start(
            request.url,
            campaign_id=request.campaign_id,
            form=request.form,
        )
    except InvalidURLError as e:
        raise_bad_request(e.message)
    except NotFoundError:
        raise_not_found("Campaign", str(request.campaign_id))
    except (SubmissionError, PersistenceError) as e:
        raise_bad_gateway(e.message)

    return AnalyzeResponse(
        job_id=submission.job_id,
        status=submission.status,
        campaign_id=submission.campaign_id,
    )


@router.get("/analyze/status/{job_id}")
async def proxy_job_status(
    job_id: str,
    client: AnalysisClient = Depends(get_analysis_client)
):
    """Forward a status query to the analyze API with the service key attached."""
    try:
        response = await client.fetch_status_raw(job_id)
    except PollTransportError as e:
        raise_bad_gateway(e.message)

    try:
        data = response.json()
    except ValueError:
        raise_bad_gateway("Analyze API returned a non-JSON response")

    if response.is_error:
        logger.error(f"Analyze API error: {response.status_code} {data}")
        error = data.get("error") if isinstance(data, dict) else None
        return JSONResponse(
            status_code=response.status_code,
            content={"error": error or "Failed to check job status", "details": data},
        )
    return data


@router.get("/campaigns/{campaign_id}/analysis", response_model=PollProgress)
async def get_analysis_progress(
    campaign_id: uuid.UUID,
    workflow: AnalysisWorkflow = Depends(get_analysis_workflow)
):
    """Live progress of the draft's analysis, including suggested tags."""
    progress = workflow.progress(campaign_id)
    if progress is None:
        raise_not_found("Analysis for campaign", str(campaign_id))
    return progress


@router.delete("/campaigns/{campaign_id}/analysis", response_model=MessageResponse)
async def cancel_analysis(
    campaign_id: uuid.UUID,
    workflow: AnalysisWorkflow = Depends(get_analysis_workflow)
):
    """Stop polling for the draft (the user left the form)."""
    if not workflow.cancel(campaign_id):
        raise_not_found("Running analysis for campaign", str(campaign_id))
    return {"message": "Analysis polling cancelled"}
