"""
Signal vs. noise classification for actors and review comments.
"""
from typing import Optional

BOT_MARKERS = ('bot', 'security', 'system', 'pipeline', 'ci', 'auto')

# low-content acknowledgements; matched as the whole comment, a leading "phrase " or a trailing " phrase"
ACKNOWLEDGEMENTS = (
    'thanks',
    'thank you',
    'thx',
    'ty',
    'lgtm',
    'looks good',
    'looks good to me',
    'sounds good',
    '+1',
    'approved',
    'approve',
    'ok',
    'okay',
    'done',
    'nice',
    'great',
    'cool',
    'ack',
    '👍',
    ':+1:',
    ':thumbsup:',
)

SUBSTANTIVE_KEYWORDS = ('bug', 'fix', 'issue', 'error', 'change', 'update')

MIN_COMMENT_LENGTH = 5
SHORT_COMMENT_LENGTH = 15


def is_bot(username: Optional[str]) -> bool:
    name = (username or '').lower()
    return any(marker in name for marker in BOT_MARKERS)


def _has_keyword(lowered: str) -> bool:
    return any(k in lowered for k in SUBSTANTIVE_KEYWORDS)


def _is_acknowledgement(lowered: str) -> bool:
    for phrase in ACKNOWLEDGEMENTS:
        if lowered == phrase:
            return True
        # an acknowledgement followed (or preceded) by a substantive remark still counts
        if _has_keyword(lowered):
            continue
        if lowered.startswith(phrase + ' ') or lowered.endswith(' ' + phrase):
            return True
    return False


def is_meaningful_comment(text: Optional[str]) -> bool:
    """Heuristic: drop very short comments, bare acknowledgements, and short remarks with no substantive keyword."""
    trimmed = (text or '').strip()
    if len(trimmed) < MIN_COMMENT_LENGTH:
        return False
    lowered = trimmed.lower()
    if _is_acknowledgement(lowered):
        return False
    if len(trimmed) < SHORT_COMMENT_LENGTH and not _has_keyword(lowered):
        return False
    return True
