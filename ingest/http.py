"""
Single-attempt JSON GET helper and page walker shared by the upstream clients.
Each request is attempted exactly once; failures are raised as errors.UpstreamError subclasses.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple

import requests

from errors import ParseError, UpstreamError, error_for_status

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
# hard stop for runaway pagination (e.g. a server ignoring the page parameter)
MAX_PAGES = 1000


def _safe_int_from_headers(headers: Dict[str, Any], key: str) -> Optional[int]:
    try:
        val = headers.get(key)
        return int(val) if val not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _parse_body(resp, url: str):
    try:
        return resp.json()
    except ValueError:
        raise ParseError(f"Response from {url} is not valid JSON", url=url, status_code=getattr(resp, 'status_code', None),
                         details=(getattr(resp, 'text', '') or '')[:200])


def get_json(url: str, headers: Dict[str, str] = None, params: Dict[str, Any] = None, timeout: float = DEFAULT_TIMEOUT,
             auth: Optional[Tuple[str, str]] = None) -> Tuple[Any, Dict[str, Any]]:
    """GET url once and return (parsed JSON body, response headers).

    Raises UpstreamError (or a subclass) on transport failure, non-200 status, or a non-JSON body.
    """
    try:
        resp = requests.get(url, headers=headers or {}, params=params or {}, timeout=timeout, auth=auth)
    except requests.RequestException as ex:
        raise UpstreamError(f"Request to {url} failed: {ex}", url=url)

    status = getattr(resp, 'status_code', 0)
    if status != 200:
        try:
            body = resp.json()
        except ValueError:
            body = getattr(resp, 'text', None)
        raise error_for_status(status, url, body)
    return _parse_body(resp, url), (getattr(resp, 'headers', None) or {})


def iter_pages(url: str, headers: Dict[str, str] = None, params: Dict[str, Any] = None, per_page: int = 100,
               timeout: float = DEFAULT_TIMEOUT) -> Iterator[List[Any]]:
    """Yield successive pages of a list endpoint.

    Follows the X-Next-Page header when the server sends it; otherwise stops on the first short page.
    """
    page = 1
    base_params = dict(params or {})
    while page and page <= MAX_PAGES:
        page_params = dict(base_params, page=page, per_page=per_page)
        data, resp_headers = get_json(url, headers=headers, params=page_params, timeout=timeout)
        if not isinstance(data, list):
            raise ParseError(f"Expected a JSON list from {url}", url=url, status_code=200)
        yield data
        next_page = _safe_int_from_headers(resp_headers, 'X-Next-Page')
        if 'X-Next-Page' in resp_headers:
            page = next_page
        elif len(data) < per_page:
            page = None
        else:
            page += 1
    if page and page > MAX_PAGES:
        logger.warning("Stopped paginating %s after %d pages", url, MAX_PAGES)


def get_all(url: str, headers: Dict[str, str] = None, params: Dict[str, Any] = None, per_page: int = 100,
            timeout: float = DEFAULT_TIMEOUT) -> List[Any]:
    items: List[Any] = []
    for data in iter_pages(url, headers=headers, params=params, per_page=per_page, timeout=timeout):
        items.extend(data)
    return items


__all__ = ["get_json", "iter_pages", "get_all"]
