"""
Heatmap assembly: resolves identities, collects every project of a group, folds the records into
per-user statistics and derives scores, trends and team metrics.
"""
import logging
from datetime import datetime
from typing import Any, List, Optional, Tuple

from config import HeatmapConfig, load_config
from correlate.identity import IdentityResolver
from errors import UpstreamError, ValidationError
from ingest.collector import collect_merge_request, collect_project
from ingest.gitlab import GitLabClient
from normalize.models import HeatmapResult, Member, MergeRequestDetail, Project, ProjectSnapshot
from normalize.util import day_window, normalize_members, normalize_project
from scoring.aggregator import ContributionAggregator
from scoring.metrics import compute_team_metrics, compute_trends, merge_request_detail

logger = logging.getLogger(__name__)


def _validate(group_id: str, start_date: str, end_date: str) -> Tuple[datetime, datetime]:
    if not group_id or not str(group_id).strip():
        raise ValidationError("groupId is required", field='groupId', value=group_id)
    return day_window(start_date, end_date)


def _client(config: Optional[HeatmapConfig], client):
    if client is not None:
        return client
    return GitLabClient.from_config(config or load_config())


def _projects(client, group_id: str) -> List[Project]:
    # group and project-list failures are fatal and propagate
    client.get_group(group_id)
    return [normalize_project(p) for p in client.list_group_projects(group_id)]


def _members(client, group_id: str) -> List[Member]:
    try:
        return normalize_members(client.list_group_members(group_id))
    except UpstreamError as ex:
        logger.warning("Could not list members of group %s, names fall back to record values: %s", group_id, ex)
        return []


def _snapshots(client, projects: List[Project], window_start: datetime, window_end: datetime):
    for project in projects:
        logger.info("Scanning project %s", project.path_with_namespace or project.name)
        yield collect_project(client, project, window_start, window_end)


def _details(snapshot: ProjectSnapshot) -> List[MergeRequestDetail]:
    return [merge_request_detail(b, snapshot.project.name) for b in snapshot.bundles]


def collect_heatmap(group_id: str, start_date: str, end_date: str, config: Optional[HeatmapConfig] = None,
                    client=None) -> Tuple[HeatmapResult, List[MergeRequestDetail]]:
    """
    Aggregate contribution analytics for every project of a group over [start_date, end_date].

    Parameters:
        group_id (str): GitLab group id or full path.
        start_date (str): Start date (YYYY-MM-DD), inclusive from start of day UTC.
        end_date (str): End date (YYYY-MM-DD), inclusive to end of day UTC.
        config (HeatmapConfig): Optional configuration; loaded from the environment when omitted.
        client: Optional pre-built client exposing the GitLabClient methods.

    Returns:
        (HeatmapResult, details): users, totals, daily contributions, push details, trends and team metrics,
        plus the per-merge-request details gathered in the same collection pass.

    Raises:
        ValidationError, ConfigurationError, or UpstreamError when the group or its project list cannot be read.
    """
    window_start, window_end = _validate(group_id, start_date, end_date)
    config = config or (load_config() if client is None else HeatmapConfig())
    client = _client(config, client)

    projects = _projects(client, group_id)
    members = _members(client, group_id)
    resolver = IdentityResolver(members, threshold=config.match_threshold)
    logger.info("Group %s: %d members, %d projects", group_id, len(members), len(projects))

    aggregator = ContributionAggregator(resolver)
    details: List[MergeRequestDetail] = []
    for snapshot in _snapshots(client, projects, window_start, window_end):
        aggregator.fold_project(snapshot)
        details.extend(_details(snapshot))

    result = HeatmapResult(
        users=aggregator.finalize(),
        total_merge_requests=aggregator.total_merge_requests,
        total_commits=aggregator.total_commits,
        total_approvals=aggregator.total_approvals,
        total_comments=aggregator.total_comments,
        daily_contributions=aggregator.daily,
        user_push_details=aggregator.push_details,
        contribution_trends=compute_trends(aggregator.daily),
        team_metrics=compute_team_metrics(details),
    )
    return result, details


def compute_heatmap(group_id: str, start_date: str, end_date: str, config: Optional[HeatmapConfig] = None, client=None) -> HeatmapResult:
    """Aggregate contribution analytics for every project of a group. See collect_heatmap."""
    result, _ = collect_heatmap(group_id, start_date, end_date, config=config, client=client)
    return result


def compute_merge_request_analytics(group_id: str, start_date: str, end_date: str, config: Optional[HeatmapConfig] = None,
                                    client=None) -> List[MergeRequestDetail]:
    """Per-merge-request detail snapshots for every project of a group within the date window."""
    window_start, window_end = _validate(group_id, start_date, end_date)
    client = _client(config, client)
    details: List[MergeRequestDetail] = []
    for snapshot in _snapshots(client, _projects(client, group_id), window_start, window_end):
        details.extend(_details(snapshot))
    return details


def process_merge_request(client, project_id: Any, mr_iid: int, window_start: datetime, window_end: datetime) -> Optional[MergeRequestDetail]:
    """Detail snapshot for a single merge request, or None if it was created outside the window.

    The project and merge request lookups are not absorbed: a missing MR raises NotFoundError.
    """
    project = normalize_project(client.get_project(project_id))
    raw = client.get_merge_request(project_id, mr_iid)
    bundle = collect_merge_request(client, project, raw)
    created = bundle.merge_request.created_at
    if created is None or created < window_start or created > window_end:
        return None
    return merge_request_detail(bundle, project.name)
