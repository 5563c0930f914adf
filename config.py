"""
Engine configuration.
Values come from defaults, then an optional YAML file, then environment variables (highest precedence).
"""

import os
from typing import Any, Dict, Mapping, Optional

import yaml

from errors import ConfigurationError

DEFAULT_GITLAB_HOST = "https://gitlab.com"
DEFAULT_PER_PAGE = 100
DEFAULT_MATCH_THRESHOLD = 80.0
DEFAULT_REQUEST_TIMEOUT = 30.0

# environment variable -> (field name, converter)
ENV_FIELDS = {
    "GITLAB_TOKEN": ("gitlab_token", str),
    "GITLAB_HOST": ("gitlab_host", str),
    "JIRA_URL": ("jira_url", str),
    "JIRA_USER": ("jira_user", str),
    "JIRA_TOKEN": ("jira_token", str),
    "HEATMAP_PER_PAGE": ("per_page", int),
    "HEATMAP_MATCH_THRESHOLD": ("match_threshold", float),
    "HEATMAP_REQUEST_TIMEOUT": ("request_timeout", float),
}


class HeatmapConfig:
    """Explicit configuration passed into the engine and its clients."""

    def __init__(
        self,
        gitlab_token: Optional[str] = None,
        gitlab_host: str = DEFAULT_GITLAB_HOST,
        per_page: int = DEFAULT_PER_PAGE,
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        jira_url: Optional[str] = None,
        jira_user: Optional[str] = None,
        jira_token: Optional[str] = None,
    ):
        self.gitlab_token = gitlab_token
        self.gitlab_host = (gitlab_host or DEFAULT_GITLAB_HOST).rstrip('/')
        self.per_page = int(per_page)
        self.match_threshold = float(match_threshold)
        self.request_timeout = float(request_timeout)
        self.jira_url = jira_url
        self.jira_user = jira_user
        self.jira_token = jira_token

    def require_gitlab_token(self) -> str:
        if not self.gitlab_token:
            raise ConfigurationError('GITLAB_TOKEN not set (configure gitlab_token or the GITLAB_TOKEN env var)')
        return self.gitlab_token

    def to_dict(self) -> Dict[str, Any]:
        # tokens are never echoed back
        return {
            'gitlab_host': self.gitlab_host,
            'per_page': self.per_page,
            'match_threshold': self.match_threshold,
            'request_timeout': self.request_timeout,
            'jira_url': self.jira_url,
            'gitlab_token_set': bool(self.gitlab_token),
            'jira_token_set': bool(self.jira_token),
        }


def _read_yaml(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise ConfigurationError(f"Config file not found at: {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as ex:
        raise ConfigurationError(f"Failed to load config from {path}: {ex}")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level")
    return data


def _convert(field: str, raw: Any, conv):
    try:
        return conv(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid value for {field}: {raw!r}")


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> HeatmapConfig:
    """Build a HeatmapConfig from an optional YAML file and the environment.

    The YAML file may use the HeatmapConfig field names as top-level keys
    (gitlab_token, gitlab_host, per_page, match_threshold, ...). Unknown keys are ignored.
    """
    env = os.environ if environ is None else environ
    converters = {field: conv for field, conv in ENV_FIELDS.values()}
    values: Dict[str, Any] = {}

    if path:
        for key, raw in _read_yaml(path).items():
            if key in converters and raw is not None:
                values[key] = _convert(key, raw, converters[key])

    for var, (field, conv) in ENV_FIELDS.items():
        raw = env.get(var)
        if raw is not None and raw != "":
            values[field] = _convert(var, raw, conv)

    return HeatmapConfig(**values)


__all__ = ["HeatmapConfig", "load_config"]
