"""
Folds per-project snapshots into per-user counters and a date x user contribution matrix.

Merge-request commit counts are added to the MR author's `commits` on top of the default-branch
commits counted per author, so commits that reached the default branch through an MR are counted twice.
"""
from typing import Dict, List, Optional

from correlate.identity import IdentityResolver
from normalize.models import Commit, Member, MergeRequestBundle, ProjectSnapshot, PushDetail, UserStats
from normalize.util import date_key
from .filters import is_bot, is_meaningful_comment
from .utils import score_users


class ContributionAggregator:
    """Accumulates UserStats, DailyContributions and push details across projects.

    Not thread-safe: fold snapshots one at a time.
    """

    def __init__(self, resolver: IdentityResolver):
        self.resolver = resolver
        self.users: Dict[str, UserStats] = {}
        self.daily: Dict[str, Dict[str, int]] = {}
        self.push_details: Dict[str, List[PushDetail]] = {}
        self.total_merge_requests = 0
        self.total_commits = 0
        self.total_approvals = 0
        self.total_comments = 0

    def _user(self, username: str, name: Optional[str] = None) -> UserStats:
        stats = self.users.get(username)
        if stats is None:
            stats = UserStats(username, self.resolver.resolve_name(username, name))
            self.users[username] = stats
        return stats

    def _actor(self, member: Optional[Member]) -> UserStats:
        if member is None:
            return self._user('unknown', 'unknown')
        return self._user(member.username, member.display_name)

    def fold_commit(self, commit: Commit, project_name: str, branch: Optional[str]) -> bool:
        """Count one default-branch commit. Returns False when it was skipped (bot author or no date)."""
        if commit.date is None:
            return False
        username = self.resolver.resolve_commit_author(commit.author_name, commit.author_email)
        if is_bot(username):
            return False

        day = date_key(commit.date)
        record = self.daily.setdefault(day, {})
        record[username] = record.get(username, 0) + 1

        self._user(username, commit.author_name).commits += 1
        self.total_commits += 1
        self.push_details.setdefault(username, []).append(PushDetail(
            sha=commit.sha,
            message=commit.title or commit.message,
            date=commit.date.isoformat(),
            project=project_name,
            branch=branch,
            insertions=commit.additions,
            deletions=commit.deletions,
        ))
        return True

    def fold_merge_request(self, bundle: MergeRequestBundle):
        mr = bundle.merge_request
        self.total_merge_requests += 1
        author = self._actor(mr.author)
        author.merge_requests += 1
        author.touch(mr.created_at)

        # bot-authored MRs still count as MRs, but their commits never reach any commit counter
        if not is_bot(author.username):
            mr_commits = len(bundle.commits or [])
            author.commits += mr_commits
            self.total_commits += mr_commits

        for approver in bundle.approvals or []:
            self._actor(approver).approvals += 1
            self.total_approvals += 1

        for note in bundle.notes or []:
            if note.system or note.author is None:
                continue
            if is_bot(note.author.username) or not is_meaningful_comment(note.body):
                continue
            commenter = self._actor(note.author)
            commenter.comments += 1
            commenter.touch(note.created_at)
            self.total_comments += 1

    def fold_project(self, snapshot: ProjectSnapshot):
        project = snapshot.project
        for commit in snapshot.commits:
            self.fold_commit(commit, project.name, project.default_branch)
        for bundle in snapshot.bundles:
            self.fold_merge_request(bundle)

    def finalize(self) -> List[UserStats]:
        """Compute contribution scores and return users ordered by score (desc), then username."""
        users = list(self.users.values())
        score_users(users)
        users.sort(key=lambda u: (-u.contribution_score, u.username))
        return users
