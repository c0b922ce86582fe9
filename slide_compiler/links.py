"""
Figma link validation and id extraction.

Supported URL shapes::

    https://www.figma.com/file/<fileKey>/<name>?node-id=<nodeId>
    https://www.figma.com/design/<fileKey>/<name>?node-id=<nodeId>
    https://www.figma.com/slides/<fileKey>/<name>?node-id=<nodeId>
    https://figma.com/file/<fileKey>?node-id=<nodeId>
"""
import re
from typing import NamedTuple, Optional
from urllib.parse import parse_qs, unquote, urlsplit

_HOSTNAME_RE = re.compile(r"^https?://([^/?#]+)", re.IGNORECASE)
_PATH_RE = re.compile(r"^/(file|design|slides)/([^/]+)")
_COMPONENT_URL_RE = re.compile(r"^https?://(?:www\.)?figma\.com/", re.IGNORECASE)
_NODE_ID_QUERY_RE = re.compile(r"[?&]node-id=")


class FigmaUrlParts(NamedTuple):
    file_key: Optional[str] = None
    node_id: Optional[str] = None


def is_remote_url(url: str) -> bool:
    return re.match(r"^https?://", url, re.IGNORECASE) is not None


def is_valid_figma_hostname(hostname: str) -> bool:
    """Accept ``figma.com`` and any of its subdomains."""
    hostname = hostname.lower()
    return hostname == "figma.com" or hostname.endswith(".figma.com")


def extract_hostname(url: str) -> Optional[str]:
    match = _HOSTNAME_RE.match(url.strip())
    if not match:
        return None
    # drop credentials and port
    host = match.group(1).rsplit("@", 1)[-1].split(":", 1)[0]
    return host.lower() or None


def is_valid_figma_url(url: str) -> bool:
    hostname = extract_hostname(url)
    return hostname is not None and is_valid_figma_hostname(hostname)


def is_figma_component_url(value: str) -> bool:
    """True for a Figma URL that points at a node (carries ``node-id``)."""
    return bool(_COMPONENT_URL_RE.match(value) and _NODE_ID_QUERY_RE.search(value))


def parse_figma_url(url: str) -> FigmaUrlParts:
    """
    Extract ``fileKey`` and ``nodeId`` from a Figma URL.

    Node ids are URL-decoded and normalised from ``1234-5678`` to
    ``1234:5678``. Non-Figma URLs give empty parts.
    """
    if not is_valid_figma_url(url):
        return FigmaUrlParts()

    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return FigmaUrlParts()

    path_match = _PATH_RE.match(parts.path)
    file_key = unquote(path_match.group(2)) if path_match else None

    node_values = parse_qs(parts.query).get("node-id")
    node_id = node_values[0].replace("-", ":") if node_values else None

    return FigmaUrlParts(file_key=file_key or None, node_id=node_id or None)


def url_extension(url: str) -> str:
    """Lower-cased extension of the last path segment, ``""`` when absent."""
    path = re.split(r"[?#]", url, maxsplit=1)[0]
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[-1].lower()
