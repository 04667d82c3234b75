"""yt-dlp backed upstream resolver.

Implements ResolverProtocol against YouTube. yt-dlp extraction is blocking,
so every call runs in a worker thread via ``asyncio.to_thread``. Every
failure is logged and downgraded to ``None``; nothing raises past this class.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qs, urlparse

import structlog
import yt_dlp
from yt_dlp.utils import DownloadError

if TYPE_CHECKING:
    from livetube.config import Settings

log = structlog.get_logger()

YOUTUBE_BASE_URL = "https://www.youtube.com"


def live_page_url(handle: str) -> str:
    """Canonical live page for a channel handle: ``@name`` → ``.../@name/live``."""
    return f"{YOUTUBE_BASE_URL}/{handle}/live"


def watch_url(video_id: str) -> str:
    return f"{YOUTUBE_BASE_URL}/watch?v={video_id}"


def _video_id_from_info(info: dict[str, Any]) -> str | None:
    # A channel that is not live resolves to its tab listing, not a video.
    if info.get("_type") == "playlist":
        return None
    target = info.get("url") or info.get("webpage_url") or ""
    ids = parse_qs(urlparse(target).query).get("v")
    if ids:
        return ids[0]
    return info.get("id")


def _manifest_from_info(info: dict[str, Any]) -> str | None:
    for fmt in info.get("formats") or []:
        if str(fmt.get("protocol", "")).startswith("m3u8") and fmt.get("manifest_url"):
            return fmt["manifest_url"]
    return info.get("manifest_url")


class YtDlpResolver:
    """Resolve handles to video ids and ids to live HLS manifests."""

    def __init__(
        self,
        *,
        lang: str = "en",
        location: str = "US",
        user_agent: str | None = None,
        cache_dir: str | None = None,
    ) -> None:
        http_headers = {"Accept-Language": lang}
        if user_agent:
            http_headers["User-Agent"] = user_agent
        self._options: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "noplaylist": True,
            "geo_bypass_country": location,
            "http_headers": http_headers,
            "extractor_args": {"youtube": {"lang": [lang]}},
            # False disables yt-dlp's on-disk cache
            "cachedir": cache_dir or False,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> YtDlpResolver:
        return cls(
            lang=settings.upstream.lang,
            location=settings.upstream.location,
            user_agent=settings.upstream.user_agent,
            cache_dir=settings.cache.dir if settings.cache.enabled else None,
        )

    def _extract(self, url: str, *, process: bool) -> dict[str, Any] | None:
        with yt_dlp.YoutubeDL(self._options) as ydl:
            return ydl.extract_info(url, download=False, process=process)

    async def resolve_id(self, url: str) -> str | None:
        try:
            info = await asyncio.to_thread(self._extract, url, process=False)
        except DownloadError as exc:
            log.info("resolve_id_failed", url=url, error=str(exc))
            return None
        except Exception:
            log.warning("resolve_id_error", url=url, exc_info=True)
            return None

        video_id = _video_id_from_info(info) if info else None
        if video_id is None:
            log.info("resolve_id_empty", url=url)
            return None
        log.info("resolve_id_complete", url=url, video_id=video_id)
        return video_id

    async def fetch_manifest(self, video_id: str) -> str | None:
        try:
            info = await asyncio.to_thread(self._extract, watch_url(video_id), process=True)
        except DownloadError as exc:
            log.info("fetch_manifest_failed", video_id=video_id, error=str(exc))
            return None
        except Exception:
            log.warning("fetch_manifest_error", video_id=video_id, exc_info=True)
            return None

        if not info or not info.get("is_live"):
            log.info("fetch_manifest_not_live", video_id=video_id)
            return None

        manifest_url = _manifest_from_info(info)
        if manifest_url is None:
            log.info("fetch_manifest_missing", video_id=video_id)
            return None
        log.info("fetch_manifest_complete", video_id=video_id)
        return manifest_url
