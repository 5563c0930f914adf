"""
Typed records for source-control data and for heatmap results.
Upstream payloads are converted into these in normalize.util before they reach the aggregator.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


class Member:
    """
    Group member (or any actor reference) with a username and display name.
    """
    def __init__(self, username: str, display_name: str):
        self.username = username
        self.display_name = display_name

    def __eq__(self, other):
        return isinstance(other, Member) and (self.username, self.display_name) == (other.username, other.display_name)

    def __repr__(self):
        return f"Member({self.username!r}, {self.display_name!r})"


class Project:
    def __init__(self, project_id: Any, name: str, path_with_namespace: str = '', default_branch: Optional[str] = None):
        self.project_id = project_id
        self.name = name
        self.path_with_namespace = path_with_namespace
        self.default_branch = default_branch


class Commit:
    def __init__(self, sha: str, title: str, message: str, author_name: str, author_email: str, authored_date: Optional[datetime],
                 committed_date: Optional[datetime], additions: Optional[int] = None, deletions: Optional[int] = None, total: Optional[int] = None):
        self.sha = sha
        self.title = title
        self.message = message
        self.author_name = author_name
        self.author_email = author_email
        self.authored_date = authored_date
        self.committed_date = committed_date
        self.additions = additions
        self.deletions = deletions
        self.total = total

    @property
    def date(self) -> Optional[datetime]:
        return self.committed_date or self.authored_date


class MergeRequest:
    """
    Merge request as listed by the host, before enrichment.
    """
    def __init__(self, iid: int, project_id: Any, title: str, state: str, created_at: Optional[datetime], updated_at: Optional[datetime] = None,
                 merged_at: Optional[datetime] = None, closed_at: Optional[datetime] = None, author: Optional[Member] = None,
                 assignee: Optional[Member] = None, reviewers: Optional[List[Member]] = None, labels: Optional[List[str]] = None,
                 source_branch: str = '', target_branch: str = ''):
        self.iid = iid
        self.project_id = project_id
        self.title = title
        self.state = state  # opened/closed/merged/locked
        self.created_at = created_at
        self.updated_at = updated_at
        self.merged_at = merged_at
        self.closed_at = closed_at
        self.author = author
        self.assignee = assignee
        self.reviewers = reviewers or []
        self.labels = labels or []
        self.source_branch = source_branch
        self.target_branch = target_branch


class Note:
    def __init__(self, note_id: Any, body: str, author: Optional[Member], created_at: Optional[datetime], system: bool = False):
        self.note_id = note_id
        self.body = body
        self.author = author
        self.created_at = created_at
        self.system = system


class MergeRequestBundle:
    """
    One merge request plus whatever enrichment could be fetched for it.
    None means the lookup failed; an empty list means the lookup succeeded with no items.
    """
    def __init__(self, merge_request: MergeRequest, commits: Optional[List[Commit]] = None, approvals: Optional[List[Member]] = None,
                 notes: Optional[List[Note]] = None, files_changed: Optional[int] = None, size: Optional[int] = None):
        self.merge_request = merge_request
        self.commits = commits
        self.approvals = approvals
        self.notes = notes
        self.files_changed = files_changed
        self.size = size


class ProjectSnapshot:
    def __init__(self, project: Project, commits: List[Commit], bundles: List[MergeRequestBundle]):
        self.project = project
        self.commits = commits
        self.bundles = bundles


class UserStats:
    """
    Per-actor counters for one aggregation run. contribution_score is derived after folding.
    """
    def __init__(self, username: str, name: str, commits: int = 0, merge_requests: int = 0, approvals: int = 0, comments: int = 0):
        self.username = username
        self.name = name
        self.commits = commits
        self.merge_requests = merge_requests
        self.approvals = approvals
        self.comments = comments
        self.contribution_score: Optional[float] = None
        self.last_active: Optional[datetime] = None

    def touch(self, when: Optional[datetime]):
        """Advance last_active to `when` if it is newer."""
        if when is not None and (self.last_active is None or when > self.last_active):
            self.last_active = when

    def to_dict(self) -> Dict[str, Any]:
        out = {
            'username': self.username,
            'name': self.name,
            'commits': self.commits,
            'mergeRequests': self.merge_requests,
            'approvals': self.approvals,
            'comments': self.comments,
        }
        if self.contribution_score is not None:
            out['contributionScore'] = self.contribution_score
        if self.last_active is not None:
            out['lastActiveDate'] = _iso(self.last_active)
        return out


class PushDetail:
    def __init__(self, sha: str, message: str, date: str, project: str, branch: Optional[str], files_changed: Optional[int] = None,
                 insertions: Optional[int] = None, deletions: Optional[int] = None):
        self.sha = sha
        self.message = message
        self.date = date
        self.project = project
        self.branch = branch
        self.files_changed = files_changed
        self.insertions = insertions
        self.deletions = deletions

    def to_dict(self) -> Dict[str, Any]:
        out = {'sha': self.sha, 'message': self.message, 'date': self.date, 'project': self.project, 'branch': self.branch}
        if self.files_changed is not None:
            out['filesChanged'] = self.files_changed
        if self.insertions is not None:
            out['insertions'] = self.insertions
        if self.deletions is not None:
            out['deletions'] = self.deletions
        return out


class MergeRequestDetail:
    """
    Immutable per-merge-request snapshot used for team metrics and MR analytics.
    Durations are in hours.
    """
    __slots__ = (
        'id', 'project', 'title', 'state', 'created_at', 'updated_at', 'merged_at', 'closed_at', 'author', 'author_name',
        'assignee', 'reviewers', 'approvers', 'labels', 'source_branch', 'target_branch', 'approval_duration', 'review_time',
        'size', 'complexity', 'files_changed', 'last_commit_date', 'last_commit_to_merge',
    )

    def __init__(self, **fields):
        for name in self.__slots__:
            object.__setattr__(self, name, fields.get(name))
        for name in ('reviewers', 'approvers', 'labels'):
            object.__setattr__(self, name, tuple(fields.get(name) or ()))

    def __setattr__(self, name, value):
        raise AttributeError(f"MergeRequestDetail is immutable (tried to set {name!r})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'project': self.project,
            'title': self.title,
            'state': self.state,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'merged_at': _iso(self.merged_at),
            'closed_at': _iso(self.closed_at),
            'author': self.author,
            'author_name': self.author_name,
            'assignee': self.assignee,
            'reviewers': list(self.reviewers),
            'approvers': list(self.approvers),
            'labels': list(self.labels),
            'source_branch': self.source_branch,
            'target_branch': self.target_branch,
            'approval_duration': self.approval_duration,
            'review_time': self.review_time,
            'size': self.size,
            'complexity': self.complexity,
            'files_changed': self.files_changed,
            'last_commit_date': _iso(self.last_commit_date),
            'last_commit_to_merge': self.last_commit_to_merge,
        }


class HeatmapResult:
    def __init__(self, users: List[UserStats], daily_contributions: Dict[str, Dict[str, int]], user_push_details: Dict[str, List[PushDetail]],
                 contribution_trends: Dict[str, Dict[str, int]], team_metrics: Dict[str, float], total_merge_requests: int = 0,
                 total_commits: int = 0, total_approvals: int = 0, total_comments: int = 0):
        self.users = users
        self.total_merge_requests = total_merge_requests
        self.total_commits = total_commits
        self.total_approvals = total_approvals
        self.total_comments = total_comments
        self.daily_contributions = daily_contributions
        self.user_push_details = user_push_details
        self.contribution_trends = contribution_trends
        self.team_metrics = team_metrics

    def user(self, username: str) -> Optional[UserStats]:
        for u in self.users:
            if u.username == username:
                return u
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'users': [u.to_dict() for u in self.users],
            'totalMergeRequests': self.total_merge_requests,
            'totalCommits': self.total_commits,
            'totalApprovals': self.total_approvals,
            'totalComments': self.total_comments,
            'dailyContributions': {d: dict(rec) for d, rec in self.daily_contributions.items()},
            'userPushDetails': {u: [p.to_dict() for p in pushes] for u, pushes in self.user_push_details.items()},
            'contributionTrends': {k: dict(v) for k, v in self.contribution_trends.items()},
            'teamMetrics': dict(self.team_metrics),
        }
