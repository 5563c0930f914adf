"""
Raw collection adapter: fetches one project's commits and merge requests (with their commits,
approvals, notes, detail and commit stats) and returns a typed ProjectSnapshot.

Upstream failures for a single project listing or a single merge-request lookup are logged and
absorbed; the affected part of the snapshot is left empty (or None for enrichment).
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from errors import UpstreamError
from normalize.models import Commit, MergeRequestBundle, Project, ProjectSnapshot
from normalize.util import (
    files_changed_from_detail,
    format_api_timestamp,
    normalize_approvals,
    normalize_commit,
    normalize_merge_request,
    normalize_note,
)

logger = logging.getLogger(__name__)


def _commit_size(client, project_id: Any, commits: List[Commit]) -> Optional[int]:
    """Changed lines (additions + deletions) summed over the MR commits; None if any stats lookup fails."""
    size = 0
    for c in commits:
        if c.total is not None:
            size += c.total
            continue
        try:
            raw = client.get_commit(project_id, c.sha)
        except UpstreamError as ex:
            logger.warning("Could not fetch stats for commit %s in project %s: %s", c.sha, project_id, ex)
            return None
        stats = normalize_commit(raw)
        if stats.total is None:
            return None
        size += stats.total
    return size


def collect_merge_request(client, project: Project, raw_mr: Dict[str, Any]) -> MergeRequestBundle:
    """Fetch enrichment for one merge request. Every lookup is independent and may degrade to None."""
    mr = normalize_merge_request(raw_mr, project.project_id)
    pid, iid = project.project_id, mr.iid
    bundle = MergeRequestBundle(mr)

    try:
        bundle.commits = [normalize_commit(c) for c in client.list_merge_request_commits(pid, iid)]
    except UpstreamError as ex:
        logger.warning("Could not list commits for MR !%s in %s: %s", iid, project.name, ex)

    try:
        bundle.approvals = normalize_approvals(client.get_merge_request_approvals(pid, iid))
    except UpstreamError as ex:
        logger.warning("Could not fetch approvals for MR !%s in %s: %s", iid, project.name, ex)

    try:
        bundle.notes = [normalize_note(n) for n in client.list_merge_request_notes(pid, iid)]
    except UpstreamError as ex:
        logger.warning("Could not list notes for MR !%s in %s: %s", iid, project.name, ex)

    try:
        bundle.files_changed = files_changed_from_detail(client.get_merge_request(pid, iid))
    except UpstreamError as ex:
        logger.warning("Could not fetch details for MR !%s in %s: %s", iid, project.name, ex)

    if bundle.commits is not None:
        bundle.size = _commit_size(client, pid, bundle.commits)
    return bundle


def collect_project(client, project: Project, window_start: datetime, window_end: datetime) -> ProjectSnapshot:
    """Collect default-branch commits and MRs created inside [window_start, window_end] for one project."""
    since, until = format_api_timestamp(window_start), format_api_timestamp(window_end)

    commits: List[Commit] = []
    try:
        commits = [normalize_commit(c) for c in client.list_commits(project.project_id, project.default_branch, since, until)]
    except UpstreamError as ex:
        logger.warning("Could not list commits for project %s: %s", project.name, ex)

    raw_mrs: List[Dict[str, Any]] = []
    try:
        raw_mrs = client.list_merge_requests(project.project_id, since, until)
    except UpstreamError as ex:
        logger.warning("Could not list merge requests for project %s: %s", project.name, ex)

    bundles = [collect_merge_request(client, project, raw) for raw in raw_mrs]
    logger.info("Project %s: %d commits, %d merge requests", project.name, len(commits), len(bundles))
    return ProjectSnapshot(project, commits, bundles)
