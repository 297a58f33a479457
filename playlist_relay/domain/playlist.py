from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import unquote, urlsplit

DEFAULT_MEDIA_MARKERS = (".mkv", ".mp4")
DEFAULT_TRUSTED_HOSTS = ("seedr",)
NESTED_PLAYLIST_SUFFIX = ".m3u8"
_URL_SCHEMES = ("http://", "https://")


def extract_media_links(
    text: str,
    *,
    media_markers: Iterable[str] = DEFAULT_MEDIA_MARKERS,
    trusted_hosts: Iterable[str] = DEFAULT_TRUSTED_HOSTS,
) -> list[str]:
    """Return transferable media URLs from playlist text in source order.

    Comment/metadata lines, nested stream playlists and links that are neither
    a known container nor on a trusted host are dropped. Duplicates are kept.
    """
    markers = tuple(marker.lower() for marker in media_markers if marker)
    hosts = tuple(host.lower() for host in trusted_hosts if host)

    links: list[str] = []
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line.lower().startswith(_URL_SCHEMES):
            continue
        try:
            parts = urlsplit(line)
        except ValueError:
            continue
        path = parts.path.lower()
        if path.endswith(NESTED_PLAYLIST_SUFFIX):
            continue
        host = parts.netloc.lower()
        if any(marker in path for marker in markers) or any(trusted in host for trusted in hosts):
            links.append(line)
    return links


def display_name_from_url(url: str) -> str:
    last_segment = url.split("?", 1)[0].split("#", 1)[0].rsplit("/", 1)[-1]
    name = unquote(last_segment).strip()
    # Decoded names must stay usable as a multipart filename.
    name = name.replace("/", "_").replace("\\", "_")
    return name or "file"
