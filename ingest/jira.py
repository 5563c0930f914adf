"""
Jira client used for cross-system member correlation.
Only fetches what the dashboard needs: the unique assignees of a sprint's issues.
"""

from typing import Any, Dict, List, Optional

from config import HeatmapConfig
from errors import ConfigurationError
from .http import get_json


class JiraClient:
    """Minimal Jira Agile client for reading sprint rosters."""

    def __init__(self, base_url: str, token: str, user: Optional[str] = None, timeout: float = 30.0, max_results: int = 50):
        self.base_url = (base_url or '').rstrip('/')
        self.token = token
        self.timeout = timeout
        self.max_results = max_results
        # basic auth (email + API token) when a user is configured, bearer token otherwise
        self.auth = (user, token) if user else None
        self.headers = {"Accept": "application/json"}
        if not user:
            self.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_config(cls, config: HeatmapConfig) -> "JiraClient":
        if not config.jira_url or not config.jira_token:
            raise ConfigurationError('JIRA_URL and JIRA_TOKEN are required for sprint member lookups')
        return cls(config.jira_url, config.jira_token, user=config.jira_user, timeout=config.request_timeout)

    def get_sprint_issues(self, board_id: str, sprint_id: int) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/rest/agile/1.0/board/{board_id}/sprint/{int(sprint_id)}/issue"
        issues: List[Dict[str, Any]] = []
        start_at = 0
        while True:
            params = {"startAt": start_at, "maxResults": self.max_results, "fields": "assignee"}
            data, _ = get_json(url, headers=self.headers, params=params, timeout=self.timeout, auth=self.auth)
            page = data.get('issues', []) if isinstance(data, dict) else []
            issues.extend(page)
            if len(page) < self.max_results:
                break
            start_at += self.max_results
        return issues

    def get_sprint_members(self, board_id: str, sprint_id: int) -> List[Dict[str, str]]:
        """Unique assignees of the sprint's issues as [{'name', 'email'}], in first-seen order."""
        members: Dict[str, Dict[str, str]] = {}
        for issue in self.get_sprint_issues(board_id, sprint_id):
            fields = issue.get('fields') or {}
            assignee = fields.get('assignee') or {}
            name = assignee.get('displayName') or assignee.get('name')
            if not name or name in members:
                continue
            members[name] = {'name': name, 'email': assignee.get('emailAddress') or ''}
        return list(members.values())
