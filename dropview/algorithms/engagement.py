"""
Engagement scoring - Progress towards the member reward.

This provides:
1. The progress score over three capped counters
2. Per-metric breakdown (current, target, completed, remaining)
3. The calendar-day login streak rule

Everything here is pure: no database access, no clock reads.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from dropview.config import settings

logger = logging.getLogger(__name__)


class MetricProgress:
    """Progress of a single counter towards its target."""

    def __init__(self, current: int, target: int):
        self.current = max(current or 0, 0)
        self.target = target

    @property
    def completed(self) -> bool:
        return self.current >= self.target

    @property
    def remaining(self) -> int:
        return max(self.target - self.current, 0)

    @property
    def fraction(self) -> float:
        """Share of the target reached, capped at 1.0."""
        return min(self.current, self.target) / self.target

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current,
            "target": self.target,
            "completed": self.completed,
            "remaining": self.remaining,
        }


class ProgressReport:
    """
    Container for a member's progress score.

    Each metric contributes an equal third of the score. A metric past its
    target contributes exactly its third, never more.
    """

    def __init__(
        self,
        referrals: int,
        login_streak: int,
        community_actions: int,
        reward_previously_unlocked: bool = False,
        referral_target: Optional[int] = None,
        login_streak_target: Optional[int] = None,
        community_actions_target: Optional[int] = None,
    ):
        self.metrics = {
            "referrals": MetricProgress(
                referrals, referral_target or settings.referral_target
            ),
            "login_streak": MetricProgress(
                login_streak, login_streak_target or settings.login_streak_target
            ),
            "community_actions": MetricProgress(
                community_actions,
                community_actions_target or settings.community_actions_target,
            ),
        }
        self.reward_previously_unlocked = reward_previously_unlocked

    @property
    def raw_progress(self) -> float:
        share = sum(metric.fraction / len(self.metrics) for metric in self.metrics.values())
        return 100 * share

    @property
    def progress(self) -> int:
        """Progress percentage rounded for display."""
        return int(round(self.raw_progress))

    @property
    def reward_unlocked(self) -> bool:
        return self.reward_previously_unlocked or self.progress >= 100

    @property
    def newly_unlocked(self) -> bool:
        """True when this report crosses 100% for the first time."""
        return not self.reward_previously_unlocked and self.progress >= 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "progress": self.progress,
            "reward_unlocked": self.reward_unlocked,
            "metrics": {name: metric.to_dict() for name, metric in self.metrics.items()},
        }


def calculate_progress(
    referrals: int,
    login_streak: int,
    community_actions: int,
    reward_previously_unlocked: bool = False,
) -> ProgressReport:
    """
    Score a member's engagement.

    progress = 100 * (min(r,10)/10/3 + min(s,5)/5/3 + min(a,3)/3/3)

    Args:
        referrals: Successful referrals
        login_streak: Consecutive-day login streak
        community_actions: Posts created
        reward_previously_unlocked: Persisted unlock flag

    Returns:
        ProgressReport with score, unlock flag and per-metric breakdown
    """
    return ProgressReport(
        referrals=referrals,
        login_streak=login_streak,
        community_actions=community_actions,
        reward_previously_unlocked=reward_previously_unlocked,
    )


def _utc_date(moment: datetime) -> date:
    """Calendar date in UTC. Naive datetimes are taken to be UTC already."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()


def next_login_streak(
    last_login: Optional[datetime], current_streak: int, now: datetime
) -> int:
    """
    Compute the login streak after a successful login at ``now``.

    Only calendar dates are compared:
    - no previous login -> 1
    - same day -> unchanged
    - the following day -> streak + 1
    - any larger gap -> 1
    """
    if last_login is None:
        return 1

    days_since = (_utc_date(now) - _utc_date(last_login)).days

    if days_since == 0:
        return current_streak or 1
    if days_since == 1:
        return (current_streak or 0) + 1

    logger.debug(f"Login streak reset after {days_since} days")
    return 1
