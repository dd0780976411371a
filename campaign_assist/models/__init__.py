# Models package - database models and shared enums
from campaign_assist.models.analysis import JobStatus, PollState, TERMINAL_POLL_STATES
from campaign_assist.models.campaign import CampaignDraft
