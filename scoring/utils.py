"""
Contribution scoring.
The score is a fixed linear weighting of the four per-user counters.
"""
from typing import Any, Dict

CONTRIBUTION_WEIGHTS = {
    'commits': 2.0,
    'merge_requests': 3.0,
    'approvals': 1.0,
    'comments': 0.5,
}


def compute_weighted_score(metrics: Dict[str, Any], weights: Dict[str, float]) -> float:
    """
    Compute a single aggregate score from individual metric values using provided weights.
    Missing metrics are treated as zero.
    """
    total = 0.0
    for k, w in weights.items():
        val = float(metrics.get(k, 0.0) or 0.0)
        total += val * float(w)
    return total


def contribution_score(commits: int, merge_requests: int, approvals: int, comments: int) -> float:
    """commits*2 + merge_requests*3 + approvals*1 + comments*0.5"""
    return compute_weighted_score(
        {'commits': commits, 'merge_requests': merge_requests, 'approvals': approvals, 'comments': comments},
        CONTRIBUTION_WEIGHTS,
    )


def score_users(users) -> None:
    """Set contribution_score on every UserStats from its current counters."""
    for u in users:
        u.contribution_score = contribution_score(u.commits, u.merge_requests, u.approvals, u.comments)
