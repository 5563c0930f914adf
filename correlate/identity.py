"""
Identity resolution between source-control usernames and canonical display names.
"""
import logging
from typing import Dict, Iterable, Optional

from normalize.models import Member
from .matching import DEFAULT_THRESHOLD, find_closest_name

logger = logging.getLogger(__name__)


def build_identity_map(members: Iterable[Member]) -> Dict[str, str]:
    """Map lowercase username -> display name. The first entry wins for duplicate usernames."""
    identity: Dict[str, str] = {}
    for m in members or []:
        if not m or not m.username:
            continue
        key = m.username.lower()
        if key not in identity:
            identity[key] = m.display_name or m.username
    return identity


class IdentityResolver:
    """Resolves usernames to display names and commit author names to usernames.

    Built once per aggregation run from the group membership listing; read-only afterwards.
    """

    def __init__(self, members: Iterable[Member], threshold: float = DEFAULT_THRESHOLD):
        members = [m for m in (members or []) if m and m.username]
        self.identity_map = build_identity_map(members)
        self.threshold = threshold
        self._username_by_lower = {}
        self._username_by_name = {}
        for m in members:
            self._username_by_lower.setdefault(m.username.lower(), m.username)
            if m.display_name:
                self._username_by_name.setdefault(m.display_name.lower(), m.username)
        self._display_names = list(dict.fromkeys(m.display_name for m in members if m.display_name))

    def resolve_name(self, username: str, fallback: Optional[str] = None) -> str:
        """Display name for `username`; falls back to the record's own name, then the username itself."""
        if username:
            mapped = self.identity_map.get(username.lower())
            if mapped:
                return mapped
        return fallback or username or 'unknown'

    def resolve_commit_author(self, author_name: str, author_email: str = '') -> str:
        """Best-effort username for a commit author (commits carry names and emails, not usernames)."""
        name = (author_name or '').strip()
        lowered = name.lower()
        if lowered and lowered in self._username_by_lower:
            return self._username_by_lower[lowered]
        if lowered and lowered in self._username_by_name:
            return self._username_by_name[lowered]

        local_part = (author_email or '').split('@', 1)[0].strip().lower()
        if local_part and local_part in self._username_by_lower:
            return self._username_by_lower[local_part]

        if name and self._display_names:
            closest = find_closest_name(name, self._display_names, self.threshold)
            if closest:
                logger.debug("Fuzzy-matched commit author %r to member %r", name, closest)
                return self._username_by_name[closest.lower()]

        return name or local_part or 'unknown'
