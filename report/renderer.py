"""
Report renderer: JSON/CSV/Markdown/HTML output for heatmap results and merge-request analytics.
HTML uses the Jinja2 template at report/templates/report.html.j2.
"""

import csv
import io
import json
import os
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from normalize.models import HeatmapResult, MergeRequestDetail

USER_COLUMNS = ['username', 'name', 'commits', 'mergeRequests', 'approvals', 'comments', 'contributionScore', 'lastActiveDate']
ANALYTICS_COLUMNS = [
    'id', 'project', 'title', 'state', 'author', 'author_name', 'created_at', 'updated_at', 'merged_at', 'reviewers', 'approvers',
    'source_branch', 'target_branch', 'approval_duration', 'review_time', 'last_commit_to_merge', 'size', 'complexity', 'files_changed',
]
TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'templates')


def _fmt_num(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def _cell(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return ';'.join(str(v) for v in value)
    return '' if value is None else value


def render_json(payload: Any) -> str:
    if isinstance(payload, HeatmapResult):
        payload = payload.to_dict()
    elif isinstance(payload, list):
        payload = [p.to_dict() if isinstance(p, MergeRequestDetail) else p for p in payload]
    return json.dumps(payload, indent=2, default=str)


def render_users_csv(result: HeatmapResult) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(USER_COLUMNS)
    for u in result.users:
        row = u.to_dict()
        writer.writerow([_cell(row.get(col)) for col in USER_COLUMNS])
    return output.getvalue()


def render_analytics_csv(details: List[MergeRequestDetail]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(ANALYTICS_COLUMNS)
    for d in details:
        row = d.to_dict()
        writer.writerow([_cell(row.get(col)) for col in ANALYTICS_COLUMNS])
    return output.getvalue()


def render_markdown(result: HeatmapResult, scope: Optional[str] = None) -> str:
    """Render a Markdown summary: totals, team metrics and the per-user table."""
    md = ["# Contribution Heatmap\n"]
    if scope:
        md.append(f"_Scope: {scope}_\n")
    md.append(f"- Merge Requests: **{result.total_merge_requests}**")
    md.append(f"- Commits: **{result.total_commits}**")
    md.append(f"- Approvals: **{result.total_approvals}**")
    md.append(f"- Comments: **{result.total_comments}**")
    md.append("\n## Team Metrics\n")
    tm = result.team_metrics
    md.append(f"- Average Review Time: **{_fmt_num(float(tm.get('averageReviewTime', 0)))} hours**")
    md.append(f"- Merge Success Rate: **{_fmt_num(float(tm.get('mergeSuccessRate', 0)))}%**")
    md.append(f"- Review Participation: **{_fmt_num(float(tm.get('reviewParticipation', 0)))}%**")
    md.append(f"- Code Churn Rate: **{_fmt_num(float(tm.get('codeChurnRate', 0)))}**")
    md.append("\n## Contributors\n")
    if not result.users:
        md.append("_No contributions in this period._")
        return "\n".join(md)
    md.append("| User | Name | Commits | MRs | Approvals | Comments | Score |")
    md.append("|---|---|---|---|---|---|---|")
    for u in result.users:
        md.append(f"| {u.username} | {u.name} | {u.commits} | {u.merge_requests} | {u.approvals} | {u.comments} | {_fmt_num(u.contribution_score)} |")
    return "\n".join(md)


def _environment() -> Environment:
    env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(['html', 'xml', 'j2']))
    env.filters['num'] = _fmt_num
    return env


def render_html(result: HeatmapResult, generated_at: Optional[str] = None, scope: Optional[str] = None,
                dashboard: Optional[Dict[str, Any]] = None) -> str:
    tmpl = _environment().get_template('report.html.j2')
    context = {
        'result': result,
        'users': result.users,
        'metrics': result.team_metrics,
        'trends': result.contribution_trends,
        'dashboard': dashboard,
        'generated_at': generated_at,
        'scope': scope,
    }
    return tmpl.render(**context)


def render(
    result: Optional[HeatmapResult] = None,
    fmt: str = 'json',
    analytics: Optional[List[MergeRequestDetail]] = None,
    dashboard: Optional[Dict[str, Any]] = None,
    generated_at: Optional[str] = None,
    scope: Optional[str] = None,
) -> str:
    """Main render function.

    Renders the heatmap result, or the MR analytics list when `analytics` is given.
    A dashboard dict is only rendered as JSON (alone) or embedded in HTML.
    """
    fmt_l = (fmt or 'json').lower()
    if analytics is not None:
        if fmt_l == 'csv':
            return render_analytics_csv(analytics)
        return render_json(analytics)
    if result is None:
        return render_json(dashboard) if dashboard is not None else ''
    if fmt_l in ('md', 'markdown'):
        return render_markdown(result, scope=scope)
    if fmt_l == 'csv':
        return render_users_csv(result)
    if fmt_l in ('html', 'htm'):
        return render_html(result, generated_at=generated_at, scope=scope, dashboard=dashboard)
    payload = result.to_dict()
    if dashboard is not None:
        payload['dashboard'] = dashboard
    return render_json(payload)
