from __future__ import annotations

import re
from typing import Optional

_YOUTUBE_ID_RE = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")
_ID_LENGTH = 11


def extract_youtube_id(url: Optional[str]) -> str:
    """Return the 11-character video id for a YouTube URL, or '' if none.

    A bare id (11 characters, no spaces) is accepted as-is.
    """
    if not url:
        return ""
    match = _YOUTUBE_ID_RE.match(url)
    if match and len(match.group(2)) == _ID_LENGTH:
        return match.group(2)
    if len(url) == _ID_LENGTH and " " not in url:
        return url
    return ""


def thumbnail_url(url: Optional[str]) -> Optional[str]:
    video_id = extract_youtube_id(url)
    if not video_id:
        return None
    return f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg"


__all__ = ["extract_youtube_id", "thumbnail_url"]
