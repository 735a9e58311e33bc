from .engagement import (
    MetricProgress,
    ProgressReport,
    calculate_progress,
    next_login_streak,
)

__all__ = [
    "MetricProgress",
    "ProgressReport",
    "calculate_progress",
    "next_login_streak",
]
