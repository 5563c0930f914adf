import pytest

from config import HeatmapConfig, load_config
from errors import ConfigurationError


def test_defaults():
    config = load_config(environ={})
    assert config.gitlab_token is None
    assert config.gitlab_host == 'https://gitlab.com'
    assert config.per_page == 100
    assert config.match_threshold == 80.0


def test_environment_values():
    env = {'GITLAB_TOKEN': 'tok', 'GITLAB_HOST': 'https://git.local/', 'HEATMAP_MATCH_THRESHOLD': '75', 'HEATMAP_PER_PAGE': '20'}
    config = load_config(environ=env)
    assert config.require_gitlab_token() == 'tok'
    assert config.gitlab_host == 'https://git.local'
    assert config.match_threshold == 75.0
    assert config.per_page == 20


def test_yaml_file_overridden_by_environment(tmp_path):
    path = tmp_path / 'heatmap.yaml'
    path.write_text('gitlab_host: https://git.example.com\nrequest_timeout: 12\njira_url: https://jira.example.com\nunknown: 1\n',
                    encoding='utf-8')
    config = load_config(str(path), environ={'GITLAB_HOST': 'https://override.example.com'})
    assert config.gitlab_host == 'https://override.example.com'
    assert config.request_timeout == 12.0
    assert config.jira_url == 'https://jira.example.com'


def test_invalid_values_raise():
    with pytest.raises(ConfigurationError):
        load_config(environ={'HEATMAP_PER_PAGE': 'many'})


def test_missing_or_malformed_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path / 'absent.yaml'), environ={})
    path = tmp_path / 'list.yaml'
    path.write_text('- a\n- b\n', encoding='utf-8')
    with pytest.raises(ConfigurationError):
        load_config(str(path), environ={})


def test_missing_token_and_redacted_dict():
    config = HeatmapConfig(jira_token='secret')
    with pytest.raises(ConfigurationError):
        config.require_gitlab_token()
    data = config.to_dict()
    assert 'secret' not in data.values()
    assert data['jira_token_set'] is True
    assert data['gitlab_token_set'] is False
