"""
Custom exceptions for Campaign Assist.
Provides consistent error handling across the application.
"""
from fastapi import HTTPException, status


class CampaignAssistException(Exception):
    """Base exception for Campaign Assist"""
    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(CampaignAssistException):
    """Resource not found"""
    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class ExternalServiceError(CampaignAssistException):
    """External service call failed"""
    def __init__(self, service: str = "External service", message: str = None):
        msg = f"{service} call failed"
        if message:
            msg = f"{msg}: {message}"
        super().__init__(msg)


# Analysis job errors

class SubmissionError(ExternalServiceError):
    """Submitting a URL for analysis failed. No draft was created or touched."""
    def __init__(self, message: str = None, status_code: int = None):
        self.status_code = status_code
        super().__init__("Analyze API submit", message)


class InvalidURLError(SubmissionError):
    """The URL was rejected before contacting the analysis service"""
    def __init__(self, url: str, message: str = "Invalid URL format"):
        self.url = url
        super().__init__(f"{message}: '{url}'")


class PollTransportError(ExternalServiceError):
    """A single status poll failed on the wire. Not retried."""
    def __init__(self, job_id: str, message: str = None):
        self.job_id = job_id
        super().__init__(f"Analyze API status for job '{job_id}'", message)


class JobFailed(CampaignAssistException):
    """The analysis service reported the job as failed"""
    def __init__(self, job_id: str, message: str = None):
        self.job_id = job_id
        msg = f"Analysis job '{job_id}' failed"
        if message:
            msg = f"{msg}: {message}"
        super().__init__(msg)


class JobTimeout(CampaignAssistException):
    """The poll attempt budget ran out before a terminal status"""
    def __init__(self, job_id: str, attempts: int):
        self.job_id = job_id
        self.attempts = attempts
        super().__init__(f"Analysis job '{job_id}' did not finish after {attempts} polls")


class PersistenceError(CampaignAssistException):
    """The terminal write for a job failed"""
    def __init__(self, campaign_id: str, message: str = None):
        self.campaign_id = campaign_id
        msg = f"Could not save analysis result for campaign '{campaign_id}'"
        if message:
            msg = f"{msg}: {message}"
        super().__init__(msg)


# HTTP Exception helpers
def raise_not_found(resource: str = "Resource", resource_id: str = None):
    """Raise 404 HTTPException"""
    err = NotFoundError(resource, resource_id)
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=err.message)


def raise_bad_request(message: str):
    """Raise 400 HTTPException"""
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def raise_bad_gateway(message: str):
    """Raise 502 HTTPException for upstream failures"""
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=message)

