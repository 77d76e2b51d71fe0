"""
=============================================================================
CONTENT TYPE INFERENCE
=============================================================================

Maps a resolved file path to the media type sent in Content-type.

=============================================================================
WHY AN ORDERED TABLE?
=============================================================================

Tiny knows a handful of types and checks them in a fixed order. The first
suffix that matches wins; anything else is served as text/plain.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     SUFFIX LOOKUP ORDER                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ./home.html      ── .html ──►  text/html                          │
    │   ./godzilla.gif   ── .gif  ──►  image/gif                          │
    │   ./logo.png       ── .png  ──►  image/png                          │
    │   ./photo.jpg      ── .jpg  ──►  image/jpeg                         │
    │   ./clip.mp4       ── .mp4  ──►  video/mp4                          │
    │   ./data.bin       ── none  ──►  text/plain   (default)             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Unlike the usual application/octet-stream default, unknown files are served
as text/plain so a browser shows them instead of downloading them.

=============================================================================
"""

from pathlib import Path


# Checked top to bottom; keep the order stable.
MIME_TYPES = (
    (".html", "text/html"),
    (".gif", "image/gif"),
    (".png", "image/png"),
    (".jpg", "image/jpeg"),
    (".mp4", "video/mp4"),
)

DEFAULT_MIME_TYPE = "text/plain"


def get_content_type(path: str | Path) -> str:
    """
    Get the Content-type header value for a file.

    Pure function: no filesystem access, never fails.

    Examples:
        >>> get_content_type("./index.html")
        'text/html'

        >>> get_content_type("logo.PNG")
        'image/png'

        >>> get_content_type("data.bin")
        'text/plain'
    """
    name = str(path).lower()
    for suffix, mime_type in MIME_TYPES:
        if name.endswith(suffix):
            return mime_type
    return DEFAULT_MIME_TYPE
