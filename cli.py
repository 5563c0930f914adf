"""
CLI entry point. Wires the pipeline: collect -> aggregate -> score -> report
"""

import argparse
import logging
import os
import webbrowser
from datetime import datetime, timezone

from config import HeatmapConfig, load_config
from errors import HeatmapError
from heatmap import collect_heatmap, compute_merge_request_analytics
from ingest.gitlab import GitLabClient
from ingest.jira import JiraClient
from report.renderer import render
from scoring.metrics import build_dashboard

logger = logging.getLogger(__name__)

EXTENSIONS = {"html": "html", "md": "md", "csv": "csv", "json": "json"}


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _resolve_config(args, parser) -> HeatmapConfig:
    """Load config (file + environment) and apply CLI overrides.
    Calls parser.error() if the GitLab token is missing or the config file is invalid.
    """
    try:
        config = load_config(args.config or None)
    except HeatmapError as ex:
        parser.error(str(ex))
    if args.gitlab_token:
        config.gitlab_token = args.gitlab_token
    if args.gitlab_host:
        config.gitlab_host = args.gitlab_host.rstrip('/')
    if not config.gitlab_token:
        parser.error('Missing required token: gitlab_token (CLI flag --gitlab_token or env GITLAB_TOKEN)')
    if bool(args.jira_board) != bool(args.jira_sprint):
        parser.error('--jira-board and --jira-sprint must be given together')
    return config


def _open_file_in_browser(path: str):
    """Open a file URL in the system default web browser."""
    webbrowser.open("file://" + os.path.abspath(path))


def _write_report_file(path_base: str, ext: str, content: str, open_html: bool = False) -> str:
    """Write the rendered content to a file and optionally open HTML in the browser."""
    out_path = path_base if path_base.lower().endswith(f".{ext}") else f"{path_base}.{ext}"
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    # newline='' is safe for CSV on Windows and harmless for other formats
    with open(out_path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(content)
    print(f"Wrote report to {out_path}")
    if open_html:
        try:
            _open_file_in_browser(out_path)
        except webbrowser.Error:
            print('Failed to open browser automatically; file saved at', out_path)
    return out_path


def _sprint_members(args, config: HeatmapConfig):
    if not args.jira_board:
        return None
    return JiraClient.from_config(config).get_sprint_members(args.jira_board, args.jira_sprint)


def run_pipeline(args, config: HeatmapConfig):
    """Collect, aggregate and render. Returns (fmt, rendered)."""
    fmt = (args.output or "json").lower()
    client = GitLabClient.from_config(config)
    scope = f"{args.group}: {args.start} to {args.end}"
    generated_at = datetime.now(timezone.utc).isoformat()

    if args.analytics:
        details = compute_merge_request_analytics(args.group, args.start, args.end, config=config, client=client)
        return fmt, render(fmt=fmt, analytics=details)

    result, details = collect_heatmap(args.group, args.start, args.end, config=config, client=client)
    dashboard = None
    if args.dashboard or args.jira_board:
        dashboard = build_dashboard(details, tracker_members=_sprint_members(args, config), threshold=config.match_threshold)
    return fmt, render(result, fmt=fmt, dashboard=dashboard, generated_at=generated_at, scope=scope)


def write_output(fmt: str, rendered: str, args):
    """Write output to file (when --out-file is given or for html) or stdout."""
    if args.out_file.strip() or fmt == "html":
        ext = EXTENSIONS.get(fmt, "txt")
        base = args.out_file.strip() or f"heatmap_{args.group.replace('/', '_')}_{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}"
        _write_report_file(base, ext, rendered, open_html=(args.open and fmt == "html"))
    else:
        print(rendered)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Contribution heatmap for a GitLab group")
    parser.add_argument("--group", type=str, required=True, help="GitLab group id or full path")
    parser.add_argument("--start", type=str, required=True, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", type=str, required=True, help="End date (YYYY-MM-DD)")
    parser.add_argument("--output", type=str, choices=sorted(EXTENSIONS), default="json", help="Output format")
    parser.add_argument("--out-file", type=str, default="", help="Output file path. If omitted, non-HTML output goes to stdout")
    parser.add_argument("--open", action="store_true", help="Open the generated HTML report in the default browser")
    parser.add_argument("--analytics", action="store_true", help="Emit per-merge-request analytics instead of the heatmap")
    parser.add_argument("--dashboard", action="store_true", help="Include MR distributions and approval-duration stats")
    parser.add_argument("--config", type=str, default="", help="Path to a YAML config file (optional)")
    parser.add_argument("--gitlab_token", type=str, help="GitLab API token (or set GITLAB_TOKEN env var)")
    parser.add_argument("--gitlab_host", type=str, help="GitLab base URL (or set GITLAB_HOST env var)")
    parser.add_argument("--jira-board", type=str, default="", help="Jira board id for team member correlation")
    parser.add_argument("--jira-sprint", type=int, default=None, help="Jira sprint id for team member correlation")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    config = _resolve_config(args, parser)
    try:
        fmt, rendered = run_pipeline(args, config)
    except HeatmapError as ex:
        logger.error("Heatmap failed: %s", ex)
        return 1
    write_output(fmt, rendered, args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
