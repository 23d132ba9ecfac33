"""Collectors that fetch the current live streams from each platform."""

from __future__ import annotations

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Iterable

import requests

from .model import KickStream, Stream, YtStream

logger = logging.getLogger(__name__)

TWITCH_STREAMS_URL = "https://api.twitch.tv/helix/streams"
KICK_STREAMS_URL = "https://api.kick.com/public/v1/livestreams"
TWITCH_PAGE_SIZE = 100

YT_DLP_COMMAND = [
    "yt-dlp",
    "--dump-json",
    "--cookies",
    "cookies.txt",
    "--sleep-requests",
    "2",
    "--sleep-interval",
    "2",
    "--max-sleep-interval",
    "5",
    "https://www.youtube.com/results?search_query=live&sp=EgJAAQ%253D%253D",
]


class ScraperError(Exception):
    """Raised when a platform cannot be queried or its answer cannot be read."""


class StreamCollector(ABC):
    """A source of live streams for one platform."""

    @abstractmethod
    def get_live_streams(self, limit: int) -> list[Stream]:
        """Fetch live streams, up to ``limit`` where the platform allows it."""

    @abstractmethod
    def platform(self) -> str:
        """Name of the platform."""


def _decode_json(response: requests.Response, what: str) -> dict:
    try:
        return response.json()
    except ValueError as exc:
        raise ScraperError(f"error decoding {what} JSON: {exc}") from exc


def fetch_twitch_streams(
    client_id: str,
    access_token: str,
    max_streams: int,
    session: requests.Session | None = None,
) -> list[Stream]:
    """Page through Twitch's live streams until ``max_streams`` are collected."""
    http = session if session is not None else requests.Session()
    headers = {"Client-ID": client_id, "Authorization": f"Bearer {access_token}"}
    streams: list[Stream] = []
    cursor = ""
    while len(streams) < max_streams:
        params = {"type": "live", "first": str(TWITCH_PAGE_SIZE)}
        if cursor:
            params["after"] = cursor
        try:
            response = http.get(TWITCH_STREAMS_URL, params=params, headers=headers)
        except requests.RequestException as exc:
            raise ScraperError(f"failed to fetch twitch streams: {exc}") from exc
        if response.status_code != 200:
            raise ScraperError(
                f"failed to get streams: {response.status_code} {response.reason}"
            )
        payload = _decode_json(response, "twitch streams")

        for item in payload.get("data") or []:
            stream = Stream.from_dict(item)
            stream.thumbnail_url = stream.thumbnail_url.replace("{width}", "320").replace(
                "{height}", "180"
            )
            streams.append(stream)
            if len(streams) >= max_streams:
                break

        cursor = (payload.get("pagination") or {}).get("cursor") or ""
        if not cursor:
            break
    return streams


def fetch_kick_streams(
    access_token: str,
    max_streams: int,
    session: requests.Session | None = None,
) -> list[Stream]:
    """Fetch one page of Kick livestreams sorted by viewer count.

    The request always asks for 100 streams; ``max_streams`` does not change it.
    """
    http = session if session is not None else requests.Session()
    headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
    params = {"limit": "100", "sort": "viewer_count"}
    try:
        response = http.get(KICK_STREAMS_URL, params=params, headers=headers)
    except requests.RequestException as exc:
        raise ScraperError(f"failed to fetch kick streams: {exc}") from exc
    if response.status_code != 200:
        raise ScraperError(
            f"kick API error ({response.status_code}): "
            f"{response.status_code} {response.reason}"
        )
    payload = _decode_json(response, "kick streams")
    return [KickStream.from_dict(item).to_stream() for item in payload.get("data") or []]


def parse_youtube_output(lines: Iterable[str]) -> list[Stream]:
    """Turn yt-dlp's one-object-per-line JSON into streams, keeping only live ones."""
    streams = []
    for line in lines:
        if not line.strip():
            continue
        try:
            entry = YtStream.from_dict(json.loads(line))
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("Error decoding youtube Lives JSON: %s", exc)
            continue
        if entry.live_status:
            streams.append(entry.to_stream())
    return streams


def scrape_youtube_livestreams() -> list[Stream]:
    """Run yt-dlp against YouTube's live search and collect the live streams."""
    try:
        result = subprocess.run(YT_DLP_COMMAND, capture_output=True, text=True)
    except OSError as exc:
        raise ScraperError(f"failed to start yt-dlp command: {exc}") from exc
    streams = parse_youtube_output(result.stdout.splitlines())
    if result.returncode != 0:
        raise ScraperError(
            f"yt-dlp command failed: exit status {result.returncode} | stderr: {result.stderr}"
        )
    return streams


class YoutubeScraper(StreamCollector):
    """Collector for YouTube; the number of results is set by the search page."""

    def get_live_streams(self, limit: int) -> list[Stream]:
        return scrape_youtube_livestreams()

    def platform(self) -> str:
        return "youtube"