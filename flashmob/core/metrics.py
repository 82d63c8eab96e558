"""
Prometheus metrics for HTTP traffic and the session workflows
"""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "flashmob_requests_total",
    "Total requests",
    ["method", "endpoint", "status"]
)
REQUEST_DURATION = Histogram(
    "flashmob_request_duration_seconds",
    "Request duration",
    ["method", "endpoint"]
)

SESSION_TRANSITIONS = Counter(
    "flashmob_session_transitions_total",
    "Study session status transitions",
    ["transition"]
)
JOIN_REQUEST_OUTCOMES = Counter(
    "flashmob_join_request_outcomes_total",
    "Join request results, including refusals",
    ["outcome"]
)
CHECKINS = Counter(
    "flashmob_checkins_total",
    "Check-in attempts",
    ["result"]
)


def record_session_transition(transition: str) -> None:
    SESSION_TRANSITIONS.labels(transition=transition).inc()


def record_join_outcome(outcome: str) -> None:
    JOIN_REQUEST_OUTCOMES.labels(outcome=outcome).inc()


def record_checkin(result: str) -> None:
    CHECKINS.labels(result=result).inc()
