import json
from pathlib import Path

import pytest

import cli
from cli import _write_report_file, main

from fake_gitlab import alice_scenario


@pytest.fixture
def fake_client(monkeypatch):
    client = alice_scenario()
    monkeypatch.delenv('GITLAB_TOKEN', raising=False)
    monkeypatch.setattr(cli.GitLabClient, 'from_config', lambda config: client)
    return client


def _argv(*extra):
    return ['--group', 'team', '--start', '2025-01-06', '--end', '2025-01-07', '--gitlab_token', 't', *extra]


def test_json_to_file(tmp_path, fake_client):
    out_base = str(tmp_path / 'report')
    assert main(_argv('--out-file', out_base)) == 0
    data = json.loads(Path(f"{out_base}.json").read_text(encoding='utf-8'))
    assert data['users'][0]['username'] == 'alice'
    assert data['users'][0]['contributionScore'] == 9.0


def test_markdown_to_stdout(capsys, fake_client):
    assert main(_argv('--output', 'md')) == 0
    assert '| alice | Alice Liddell |' in capsys.readouterr().out


def test_analytics_csv(tmp_path, fake_client):
    out_base = str(tmp_path / 'mrs.csv')
    assert main(_argv('--analytics', '--output', 'csv', '--out-file', out_base)) == 0
    lines = Path(out_base).read_text(encoding='utf-8').splitlines()
    assert lines[0].startswith('id,project,title,state')
    assert lines[1].startswith('7,payments,')


def test_html_defaults_to_file(tmp_path, monkeypatch, fake_client):
    opened = []
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, '_open_file_in_browser', opened.append)
    assert main(_argv('--output', 'html', '--open')) == 0
    written = list(tmp_path.glob('heatmap_team_*.html'))
    assert len(written) == 1
    assert opened == [str(written[0].name)]


def test_dashboard_with_jira_roster(tmp_path, monkeypatch, fake_client):
    class FakeJira:
        def get_sprint_members(self, board_id, sprint_id):
            assert (board_id, sprint_id) == ('12', 34)
            return [{'name': 'Alice Liddell', 'email': 'alice@example.com'}]

    monkeypatch.setattr(cli.JiraClient, 'from_config', lambda config: FakeJira())
    out_base = str(tmp_path / 'dash')
    assert main(_argv('--jira-board', '12', '--jira-sprint', '34', '--out-file', out_base)) == 0
    data = json.loads(Path(f"{out_base}.json").read_text(encoding='utf-8'))
    assert data['dashboard']['teamMemberCorrelation']['exactMatches'] == [{'jiraName': 'Alice Liddell', 'gitlabName': 'Alice Liddell'}]


def test_dashboard_reuses_heatmap_collection(tmp_path, fake_client):
    out_base = str(tmp_path / 'dash')
    assert main(_argv('--dashboard', '--out-file', out_base)) == 0
    data = json.loads(Path(f"{out_base}.json").read_text(encoding='utf-8'))
    assert data['dashboard']['statusDistribution'] == {'merged': 1}
    assert data['dashboard']['approvalDurationStats']['average'] == 24.0
    assert [c for c in fake_client.calls if c[0] == 'list_merge_requests'] == [('list_merge_requests', 101)]
    assert len([c for c in fake_client.calls if c[0] == 'list_merge_request_notes']) == 1


def test_missing_token_exits(monkeypatch):
    monkeypatch.delenv('GITLAB_TOKEN', raising=False)
    with pytest.raises(SystemExit) as ctx:
        main(['--group', 'team', '--start', '2025-01-06', '--end', '2025-01-07'])
    assert ctx.value.code == 2


def test_unpaired_jira_flags_exit(fake_client):
    with pytest.raises(SystemExit):
        main(_argv('--jira-board', '12'))


def test_engine_error_returns_1(fake_client):
    assert main(['--group', 'other', '--start', '2025-01-06', '--end', '2025-01-07', '--gitlab_token', 't']) == 1


def test_write_report_file_adds_extension(tmp_path):
    path = _write_report_file(str(tmp_path / 'nested' / 'out'), 'md', '# hi')
    assert path.endswith('out.md')
    assert Path(path).read_text(encoding='utf-8') == '# hi'
