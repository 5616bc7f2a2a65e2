"""
Media selection and display classification.

Pure functions over already-known metadata fields; nothing here touches the
network. get_best_media_url picks one URL for a display context,
get_media_display_type decides how that URL should be rendered.
"""

import re
from dataclasses import dataclass
from typing import Literal, Optional

MediaKind = Literal["generator", "animation", "image"]
DisplayContext = Literal["fullscreen", "thumbnail"]
DisplayType = Literal["video", "iframe", "image"]

_STATIC_IMAGE_RE = re.compile(r"\.(gif|jpg|jpeg|png|webp)$", re.IGNORECASE)
_VIDEO_EXT_RE = re.compile(r"\.(mp4|webm|mov|avi)$", re.IGNORECASE)
_GIF_EXT_RE = re.compile(r"\.gif$", re.IGNORECASE)
_HTML_EXT_RE = re.compile(r"\.(html|htm)$", re.IGNORECASE)

# Domains whose URLs are live generators rather than files
IFRAME_DOMAINS = ("generator.artblocks.io", "fxhash.xyz")

INTERACTIVE_PLATFORMS = (
    "fxhash.xyz",
    "generator.artblocks.io",
    "artblocks.io",
    "async.art",
    "foundation.app",
    "superrare.com",
    "alba.art",
    "gmstudio.art",
    "highlight.xyz",
    "prohibition.art",
    "verse.works",
    "plottables.io",
    "tender.art",
    "objkt.com",
    "hicetnunc.art",
    "teia.art",
    "versum.xyz",
    "kalamint.io",
    "rarible.com",
    "opensea.io",
    "looksrare.org",
    "x2y2.io",
    "blur.io",
    "niftygateway.com",
    "makersplace.com",
    "knownorigin.io",
    "asyncart.com",
    "zora.co",
    "catalog.works",
)

MIME_BY_EXTENSION = {
    # Images
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    # Video
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    # Interactive
    "html": "text/html",
    "htm": "text/html",
    "js": "application/javascript",
    "json": "application/json",
    "pdf": "application/pdf",
    "zip": "application/zip",
    "wasm": "application/wasm",
}


@dataclass(frozen=True)
class MediaUrls:
    generator_url: Optional[str] = None
    animation_url: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


@dataclass(frozen=True)
class MediaResult:
    url: str
    type: MediaKind


def get_best_media_url(
    urls: MediaUrls,
    context: DisplayContext = "fullscreen",
    mime: Optional[str] = None,
) -> Optional[MediaResult]:
    """
    Pick the single URL to show for a display context.

    Video MIME wins over context: the animation URL is the video. GIFs are
    treated the same way minus the generator fallback. Thumbnails prefer
    static images and only accept the animation URL when it looks like a
    still/GIF file; fullscreen prefers interactive content.
    """
    if mime and mime.startswith("video/"):
        if urls.animation_url:
            return MediaResult(urls.animation_url, "animation")
        if urls.image_url:
            return MediaResult(urls.image_url, "image")
        if urls.thumbnail_url:
            return MediaResult(urls.thumbnail_url, "image")
        if urls.generator_url:
            return MediaResult(urls.generator_url, "generator")

    if mime == "image/gif":
        if urls.animation_url:
            return MediaResult(urls.animation_url, "animation")
        if urls.image_url:
            return MediaResult(urls.image_url, "image")
        if urls.thumbnail_url:
            return MediaResult(urls.thumbnail_url, "image")

    if context == "thumbnail":
        if urls.thumbnail_url:
            return MediaResult(urls.thumbnail_url, "image")
        if urls.image_url:
            return MediaResult(urls.image_url, "image")
        if urls.animation_url and (
            mime == "image/gif" or _STATIC_IMAGE_RE.search(urls.animation_url)
        ):
            return MediaResult(urls.animation_url, "animation")
        if urls.generator_url:
            return MediaResult(urls.generator_url, "generator")
    else:
        if urls.generator_url:
            return MediaResult(urls.generator_url, "generator")
        if urls.animation_url:
            return MediaResult(urls.animation_url, "animation")
        if urls.image_url:
            return MediaResult(urls.image_url, "image")
        if urls.thumbnail_url:
            return MediaResult(urls.thumbnail_url, "image")

    return None


def get_media_display_type(
    result: Optional[MediaResult], mime: Optional[str] = None
) -> Optional[DisplayType]:
    """How a selected URL should be rendered: video, iframe or image."""
    if result is None:
        return None

    if result.type == "generator":
        return "iframe"

    if mime:
        if mime.startswith("video/"):
            return "video"
        if mime == "image/gif":
            # Rendered as an image element with video-like controls
            return "image"
        if mime.startswith("application/") or mime == "text/html":
            return "iframe"
        if mime.startswith("image/"):
            return "image"

    url = result.url
    if _VIDEO_EXT_RE.search(url):
        return "video"
    if _GIF_EXT_RE.search(url):
        return "video"
    if any(domain in url for domain in IFRAME_DOMAINS):
        return "iframe"
    if _HTML_EXT_RE.search(url):
        return "iframe"
    return "image"


def guess_mime_type_from_url(url: Optional[str]) -> Optional[str]:
    """Best-effort MIME from the file extension, ignoring query strings."""
    if not url:
        return None
    path = url.split("?", 1)[0].split("#", 1)[0]
    last_segment = path.rsplit("/", 1)[-1]
    if "." not in last_segment:
        return None
    extension = last_segment.rsplit(".", 1)[-1].lower()
    return MIME_BY_EXTENSION.get(extension)


def is_interactive_platform(url: Optional[str]) -> bool:
    if not url:
        return False
    return any(platform in url for platform in INTERACTIVE_PLATFORMS)
