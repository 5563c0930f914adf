"""
GitLab REST v4 client used by the collection adapter.
Returns raw JSON payloads; shape normalization happens in normalize.util.
"""
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from config import HeatmapConfig
from .http import get_all, get_json


class GitLabClient:
    """Minimal GitLab client for group, project and merge-request resources."""

    def __init__(self, token: str, host: str = None, per_page: int = 100, timeout: float = 30.0):
        self.token = token
        self.host = (host or "https://gitlab.com").rstrip('/')
        self.base_url = f"{self.host}/api/v4"
        self.per_page = per_page
        self.timeout = timeout
        self.headers = {
            "PRIVATE-TOKEN": self.token or "",
            "Accept": "application/json",
        }

    @classmethod
    def from_config(cls, config: HeatmapConfig) -> "GitLabClient":
        return cls(config.require_gitlab_token(), config.gitlab_host, per_page=config.per_page, timeout=config.request_timeout)

    @staticmethod
    def _id(value: Any) -> str:
        # group/project ids may be numeric or a namespaced path ("team/sub")
        return quote(str(value), safe='')

    def _get(self, path: str, params: Dict[str, Any] = None) -> Any:
        data, _ = get_json(f"{self.base_url}{path}", headers=self.headers, params=params, timeout=self.timeout)
        return data

    def _list(self, path: str, params: Dict[str, Any] = None) -> List[Dict[str, Any]]:
        return get_all(f"{self.base_url}{path}", headers=self.headers, params=params, per_page=self.per_page, timeout=self.timeout)

    # groups

    def get_group(self, group_id: str) -> Dict[str, Any]:
        return self._get(f"/groups/{self._id(group_id)}", params={"with_projects": "false"})

    def list_group_members(self, group_id: str) -> List[Dict[str, Any]]:
        return self._list(f"/groups/{self._id(group_id)}/members/all")

    def list_group_projects(self, group_id: str) -> List[Dict[str, Any]]:
        params = {"include_subgroups": "true", "archived": "false"}
        return self._list(f"/groups/{self._id(group_id)}/projects", params=params)

    # projects

    def get_project(self, project_id: Any) -> Dict[str, Any]:
        return self._get(f"/projects/{self._id(project_id)}")

    def list_commits(self, project_id: Any, ref_name: Optional[str], since: str, until: str) -> List[Dict[str, Any]]:
        params = {"since": since, "until": until, "with_stats": "true"}
        if ref_name:
            params["ref_name"] = ref_name
        return self._list(f"/projects/{self._id(project_id)}/repository/commits", params=params)

    def get_commit(self, project_id: Any, sha: str) -> Dict[str, Any]:
        return self._get(f"/projects/{self._id(project_id)}/repository/commits/{self._id(sha)}", params={"stats": "true"})

    def list_merge_requests(self, project_id: Any, created_after: str, created_before: str) -> List[Dict[str, Any]]:
        params = {"created_after": created_after, "created_before": created_before, "scope": "all", "state": "all"}
        return self._list(f"/projects/{self._id(project_id)}/merge_requests", params=params)

    # merge requests

    def get_merge_request(self, project_id: Any, mr_iid: int) -> Dict[str, Any]:
        return self._get(f"/projects/{self._id(project_id)}/merge_requests/{int(mr_iid)}")

    def list_merge_request_commits(self, project_id: Any, mr_iid: int) -> List[Dict[str, Any]]:
        return self._list(f"/projects/{self._id(project_id)}/merge_requests/{int(mr_iid)}/commits")

    def get_merge_request_approvals(self, project_id: Any, mr_iid: int) -> Dict[str, Any]:
        return self._get(f"/projects/{self._id(project_id)}/merge_requests/{int(mr_iid)}/approvals")

    def list_merge_request_notes(self, project_id: Any, mr_iid: int) -> List[Dict[str, Any]]:
        params = {"sort": "asc", "order_by": "created_at"}
        return self._list(f"/projects/{self._id(project_id)}/merge_requests/{int(mr_iid)}/notes", params=params)
