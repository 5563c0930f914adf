"""
Derived metrics over aggregated data: contribution trends, team health indicators,
per-merge-request detail snapshots and dashboard distributions.
"""
import math
from datetime import date
from statistics import median
from typing import Any, Dict, Iterable, List, Optional

from correlate.matching import DEFAULT_THRESHOLD, correlate_team_members
from normalize.models import MergeRequestBundle, MergeRequestDetail
from normalize.util import date_key, hours_between

def compute_trends(daily_contributions: Dict[str, Dict[str, int]]) -> Dict[str, Dict[str, int]]:
    """Roll the date x user matrix into daily, ISO-weekly and monthly totals.

    Weekly keys are '{iso_year}-W{iso_week}' (ISO-8601, weeks start on Monday);
    monthly keys are '{year}-{month}' with a 1-based month. Neither is zero-padded.
    Only buckets present in the input are created.
    """
    daily: Dict[str, int] = {}
    weekly: Dict[str, int] = {}
    monthly: Dict[str, int] = {}
    for day in sorted(daily_contributions.keys()):
        total = sum(daily_contributions[day].values())
        daily[day] = total
        d = date.fromisoformat(day)
        iso_year, iso_week, _ = d.isocalendar()
        week_key = f"{iso_year}-W{iso_week}"
        month_key = f"{d.year}-{d.month}"
        weekly[week_key] = weekly.get(week_key, 0) + total
        monthly[month_key] = monthly.get(month_key, 0) + total
    return {'daily': daily, 'weekly': weekly, 'monthly': monthly}


def compute_team_metrics(details: List[MergeRequestDetail]) -> Dict[str, float]:
    total = len(details)
    if total == 0:
        return {'averageReviewTime': 0, 'mergeSuccessRate': 0, 'reviewParticipation': 0, 'codeChurnRate': 0}

    merged = sum(1 for d in details if d.state == 'merged')
    review_times = [d.review_time for d in details if d.review_time is not None]
    reviewed = sum(1 for d in details if d.reviewers)
    churn = sum(d.size or 0 for d in details)

    return {
        'averageReviewTime': (sum(review_times) / len(review_times)) if review_times else 0,
        'mergeSuccessRate': merged / total * 100,
        'reviewParticipation': reviewed / total * 100,
        'codeChurnRate': churn / total,
    }


def complexity_for_size(size: Optional[int]) -> Optional[float]:
    if size is None:
        return None
    return math.log2(size) if size > 0 else 0.0


def merge_request_detail(bundle: MergeRequestBundle, project_name: str) -> MergeRequestDetail:
    """Build the immutable detail snapshot for one merge request from whatever enrichment is available."""
    mr = bundle.merge_request
    merged = mr.state == 'merged' and mr.merged_at is not None
    review_time = hours_between(mr.created_at, mr.merged_at) if merged else None

    commit_dates = [c.date for c in bundle.commits or [] if c.date is not None]
    last_commit_date = max(commit_dates) if commit_dates else None
    last_commit_to_merge = hours_between(last_commit_date, mr.updated_at)

    return MergeRequestDetail(
        id=mr.iid,
        project=project_name,
        title=mr.title,
        state=mr.state,
        created_at=mr.created_at,
        updated_at=mr.updated_at,
        merged_at=mr.merged_at,
        closed_at=mr.closed_at,
        author=mr.author.username if mr.author else 'unknown',
        author_name=mr.author.display_name if mr.author else 'Unknown',
        assignee=mr.assignee.username if mr.assignee else None,
        reviewers=[r.username for r in mr.reviewers],
        approvers=[a.username for a in bundle.approvals or []],
        labels=mr.labels,
        source_branch=mr.source_branch,
        target_branch=mr.target_branch,
        approval_duration=review_time,
        review_time=review_time,
        size=bundle.size,
        complexity=complexity_for_size(bundle.size),
        files_changed=bundle.files_changed,
        last_commit_date=last_commit_date,
        last_commit_to_merge=last_commit_to_merge,
    )


def _distribution(values: Iterable[Any]) -> Dict[str, int]:
    dist: Dict[str, int] = {}
    for v in values:
        key = str(v)
        dist[key] = dist.get(key, 0) + 1
    return dist


def duration_stats(values: Iterable[Optional[float]]) -> Dict[str, float]:
    present = [float(v) for v in values if v is not None]
    if not present:
        return {'average': 0, 'median': 0, 'min': 0, 'max': 0}
    return {
        'average': sum(present) / len(present),
        'median': median(present),
        'min': min(present),
        'max': max(present),
    }


def build_dashboard(details: List[MergeRequestDetail], tracker_members: Optional[List[Any]] = None,
                    scm_authors: Optional[List[str]] = None, threshold: float = DEFAULT_THRESHOLD) -> Dict[str, Any]:
    """Distributions and approval-duration statistics over MR details, plus optional roster correlation.

    scm_authors defaults to the MR author display names.
    """
    dashboard: Dict[str, Any] = {
        'statusDistribution': _distribution(d.state for d in details),
        'authorDistribution': _distribution(d.author_name for d in details),
        'dailyDistribution': dict(sorted(_distribution(date_key(d.created_at) for d in details if d.created_at).items())),
        'projectDistribution': _distribution(d.project for d in details),
        'approvalDurationStats': duration_stats(d.approval_duration for d in details),
    }
    if tracker_members is not None:
        authors = scm_authors if scm_authors is not None else [d.author_name for d in details]
        dashboard['teamMemberCorrelation'] = correlate_team_members(tracker_members, authors, threshold)
    return dashboard
