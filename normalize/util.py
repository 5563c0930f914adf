"""
Normalization helpers.
Convert raw GitLab payloads into normalize.models records and coerce optional/odd-shaped fields to safe defaults.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from errors import ValidationError
from normalize.models import Commit, Member, MergeRequest, Note, Project


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime. Returns None for empty or unparseable values."""
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def date_key(dt: datetime) -> str:
    """YYYY-MM-DD key of a timestamp in UTC."""
    return dt.astimezone(timezone.utc).date().isoformat()


def parse_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a YYYY-MM-DD date", field=field, value=value)


def day_window(start_date: str, end_date: str) -> Tuple[datetime, datetime]:
    """Return (start-of-day(start_date), end-of-day(end_date)) as UTC datetimes.

    An inverted range is returned as-is; upstream filters then simply match nothing.
    """
    start = datetime.combine(parse_date(start_date, 'startDate'), time.min, tzinfo=timezone.utc)
    end = datetime.combine(parse_date(end_date, 'endDate'), time.min, tzinfo=timezone.utc) + timedelta(days=1) - timedelta(milliseconds=1)
    return start, end


def format_api_timestamp(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.') + f"{dt.microsecond // 1000:03d}Z"


def hours_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / 3600.0


def _safe_int(value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        return int(str(value).rstrip('+'))
    except (TypeError, ValueError):
        return None


def normalize_member(raw: Any) -> Optional[Member]:
    """Coerce an actor reference into a Member.

    Accepts None, a bare username string, or an object with username/name (optionally nested under 'user').
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        return Member(raw, raw) if raw.strip() else None
    if not isinstance(raw, dict):
        return None
    if isinstance(raw.get('user'), dict):
        raw = raw['user']
    username = raw.get('username') or raw.get('login') or ''
    name = raw.get('name') or raw.get('displayName') or ''
    if not isinstance(username, str):
        username = str(username)
    if not isinstance(name, str):
        name = str(name)
    if not username and not name:
        return None
    return Member(username or name, name or username)


def normalize_members(raw_list: Any) -> List[Member]:
    out: List[Member] = []
    for raw in raw_list or []:
        m = normalize_member(raw)
        if m is not None:
            out.append(m)
    return out


def normalize_project(raw: Dict[str, Any]) -> Project:
    raw = raw or {}
    return Project(
        project_id=raw.get('id'),
        name=raw.get('name') or raw.get('path') or str(raw.get('id', '')),
        path_with_namespace=raw.get('path_with_namespace') or '',
        default_branch=raw.get('default_branch') or None,
    )


def normalize_commit(raw: Dict[str, Any]) -> Commit:
    raw = raw or {}
    stats = raw.get('stats') if isinstance(raw.get('stats'), dict) else {}
    message = raw.get('message') or raw.get('title') or ''
    return Commit(
        sha=raw.get('id') or raw.get('sha') or '',
        title=raw.get('title') or message.split('\n', 1)[0],
        message=message,
        author_name=raw.get('author_name') or '',
        author_email=raw.get('author_email') or '',
        authored_date=parse_timestamp(raw.get('authored_date') or raw.get('created_at')),
        committed_date=parse_timestamp(raw.get('committed_date') or raw.get('created_at')),
        additions=_safe_int(stats.get('additions')),
        deletions=_safe_int(stats.get('deletions')),
        total=_safe_int(stats.get('total')),
    )


def normalize_merge_request(raw: Dict[str, Any], project_id: Any = None) -> MergeRequest:
    raw = raw or {}
    labels = raw.get('labels') or []
    if isinstance(labels, str):
        labels = [labels]
    return MergeRequest(
        iid=_safe_int(raw.get('iid')) or _safe_int(raw.get('id')) or 0,
        project_id=raw.get('project_id', project_id),
        title=raw.get('title') or '',
        state=raw.get('state') or 'opened',
        created_at=parse_timestamp(raw.get('created_at')),
        updated_at=parse_timestamp(raw.get('updated_at')),
        merged_at=parse_timestamp(raw.get('merged_at')),
        closed_at=parse_timestamp(raw.get('closed_at')),
        author=normalize_member(raw.get('author')),
        assignee=normalize_member(raw.get('assignee')),
        reviewers=normalize_members(raw.get('reviewers')),
        labels=[str(lbl.get('name') if isinstance(lbl, dict) else lbl) for lbl in labels],
        source_branch=raw.get('source_branch') or '',
        target_branch=raw.get('target_branch') or '',
    )


def normalize_note(raw: Dict[str, Any]) -> Note:
    raw = raw or {}
    return Note(
        note_id=raw.get('id'),
        body=raw.get('body') or '',
        author=normalize_member(raw.get('author')),
        created_at=parse_timestamp(raw.get('created_at')),
        system=bool(raw.get('system', False)),
    )


def normalize_approvals(raw: Any) -> List[Member]:
    """Extract approvers from an approvals payload ({'approved_by': [{'user': {...}}, ...]})."""
    if not isinstance(raw, dict):
        return []
    approved_by = raw.get('approved_by')
    if not isinstance(approved_by, list):
        return []
    return normalize_members(approved_by)


def files_changed_from_detail(raw: Any) -> Optional[int]:
    """changes_count arrives as a string and may be capped (e.g. '1000+')."""
    if not isinstance(raw, dict):
        return None
    return _safe_int(raw.get('changes_count'))
