"""
API dependencies - shared across all routes.
"""
from fastapi import Request

from campaign_assist.services.analysis_client import AnalysisClient
from campaign_assist.services.analysis_workflow import AnalysisWorkflow


def get_analysis_workflow(request: Request) -> AnalysisWorkflow:
    """Application-scoped workflow created in the lifespan handler."""
    return request.app.state.analysis_workflow


def get_analysis_client(request: Request) -> AnalysisClient:
    return request.app.state.analysis_client
