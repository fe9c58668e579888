"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum

# Backing store key namespace, shared with every other component of a deployment
KEY_JOB_POOL = "delayer:job_pool"
PREFIX_JOB_BUCKET = "delayer:job_bucket:"
PREFIX_READY_QUEUE = "delayer:ready_queue:"

# Job record hash fields
FIELD_TOPIC = "topic"
FIELD_BODY = "body"


class PopOutcome(StrEnum):
    """Outcome labels for pop/bpop."""

    DELIVERED = "delivered"
    EMPTY = "empty"
    TIMEOUT = "timeout"
    EXPIRED = "expired"


class PromotionOutcome(StrEnum):
    """Outcome of moving a single job out of the scheduling index."""

    PROMOTED = "promoted"
    LOST_RACE = "lost_race"
    EXPIRED = "expired"


# API constants
API_V1_PREFIX = "/v1"

# Metrics names
METRIC_JOBS_PUSHED = "delayer_jobs_pushed_total"
METRIC_JOBS_POPPED = "delayer_jobs_popped_total"
METRIC_JOBS_REMOVED = "delayer_jobs_removed_total"
METRIC_JOBS_PROMOTED = "delayer_jobs_promoted_total"
METRIC_INDEX_SIZE = "delayer_scheduling_index_size"
METRIC_QUEUE_DEPTH = "delayer_ready_queue_depth"
METRIC_API_REQUESTS = "delayer_api_requests_total"
METRIC_API_LATENCY = "delayer_api_request_latency_seconds"

# Trace span names
SPAN_PUSH = "delayer.push"
SPAN_POP = "delayer.pop"
SPAN_BPOP = "delayer.bpop"
SPAN_REMOVE = "delayer.remove"
SPAN_PROMOTE = "delayer.promote"
