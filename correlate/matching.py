"""
Approximate name matching used to reconcile identities across systems
(issue-tracker rosters vs. source-control author names, commit author names vs. group members).

Matching order in find_closest_name:
- exact match after normalization (lower-case, alphanumerics only)
- word-part containment in either direction
- substring relation, scored by Levenshtein similarity
- otherwise Levenshtein similarity against every candidate
The best scored candidate is returned only if it reaches the threshold.
"""
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

DEFAULT_THRESHOLD = 80.0

_NON_ALNUM = re.compile(r'[^a-z0-9]')


def normalize_name(name: str) -> str:
    return _NON_ALNUM.sub('', (name or '').lower())


def name_parts(name: str) -> List[str]:
    parts = [normalize_name(p) for p in (name or '').lower().split()]
    return [p for p in parts if p]


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance computed over the full (len(a)+1) x (len(b)+1) matrix."""
    rows, cols = len(a) + 1, len(b) + 1
    matrix = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j
    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,
                matrix[i][j - 1] + 1,
                matrix[i - 1][j - 1] + cost,
            )
    return matrix[rows - 1][cols - 1]


def similarity(a: str, b: str) -> float:
    """0-100 similarity of two already-normalized strings."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 100.0
    return (max_len - levenshtein_distance(a, b)) / max_len * 100.0


def _parts_contained(parts_a: List[str], parts_b: List[str]) -> bool:
    if not parts_a or not parts_b:
        return False
    set_a, set_b = set(parts_a), set(parts_b)
    return set_a.issubset(set_b) or set_b.issubset(set_a)


def score_closest_name(candidate: str, names: Sequence[str]) -> Optional[Dict[str, Any]]:
    """Return {'name', 'similarity'} for the best candidate before thresholding, or None if names is empty."""
    norm_candidate = normalize_name(candidate)
    candidate_parts = name_parts(candidate)

    for name in names:
        if norm_candidate == normalize_name(name):
            return {'name': name, 'similarity': 100.0}
    for name in names:
        if _parts_contained(candidate_parts, name_parts(name)):
            return {'name': name, 'similarity': 100.0}

    best_name: Optional[str] = None
    best_score = -1.0
    for name in names:
        norm = normalize_name(name)
        if norm_candidate and norm and (norm_candidate in norm or norm in norm_candidate):
            score = similarity(norm_candidate, norm)
            if score > best_score:
                best_name, best_score = name, score

    if best_name is None:
        for name in names:
            score = similarity(norm_candidate, normalize_name(name))
            if score > best_score:
                best_name, best_score = name, score

    if best_name is None:
        return None
    return {'name': best_name, 'similarity': best_score}


def find_closest_name(candidate: str, names: Sequence[str], threshold: float = DEFAULT_THRESHOLD) -> Optional[str]:
    """Return the closest name from `names` or None when nothing reaches `threshold` (0-100)."""
    best = score_closest_name(candidate, names)
    if best is None or best['similarity'] < threshold:
        return None
    return best['name']


def _member_name(member: Any) -> str:
    if isinstance(member, dict):
        return member.get('name') or member.get('displayName') or ''
    return str(member or '')


def correlate_team_members(tracker_members: Iterable[Any], scm_authors: Iterable[str], threshold: float = DEFAULT_THRESHOLD) -> Dict[str, Any]:
    """Correlate an issue-tracker roster with source-control author names.

    tracker_members may be dicts with a 'name' (and optional 'email') or plain strings.
    """
    authors = list(dict.fromkeys(a for a in scm_authors if a))
    by_norm = {}
    for a in authors:
        by_norm.setdefault(normalize_name(a), a)

    exact_matches: List[Dict[str, Any]] = []
    close_matches: List[Dict[str, Any]] = []
    jira_only: List[str] = []
    matched_authors = set()

    for member in tracker_members or []:
        name = _member_name(member)
        if not name:
            continue
        exact = by_norm.get(normalize_name(name))
        if exact is not None:
            exact_matches.append({'jiraName': name, 'gitlabName': exact})
            matched_authors.add(exact)
            continue
        remaining = [a for a in authors if a not in matched_authors]
        best = score_closest_name(name, remaining)
        if best is not None and best['similarity'] >= threshold:
            close_matches.append({'jiraName': name, 'gitlabName': best['name'], 'similarity': round(best['similarity'], 2)})
            matched_authors.add(best['name'])
        else:
            jira_only.append(name)

    gitlab_only = [a for a in authors if a not in matched_authors]
    return {
        'exactMatches': exact_matches,
        'closeMatches': close_matches,
        'jiraOnly': jira_only,
        'gitlabOnly': gitlab_only,
    }


__all__ = [
    "normalize_name",
    "levenshtein_distance",
    "similarity",
    "find_closest_name",
    "score_closest_name",
    "correlate_team_members",
]
