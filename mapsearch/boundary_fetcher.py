"""On-demand district boundaries from the boundary provider."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import aiohttp

from .entities import BoundaryFeature, FetchError, normalize_name
from .osm import overpass_to_features

logger = logging.getLogger(__name__)

__all__ = ["BoundaryFetcher", "FetchError", "FetchResult", "select_matching_feature"]

DEFAULT_TIMEOUT = 15.0


@dataclass(frozen=True, slots=True)
class FetchResult:
    feature: Optional[BoundaryFeature] = None
    error: Optional[FetchError] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.feature is not None


def select_matching_feature(features: list[dict], name: str) -> Optional[dict]:
    """First feature whose ``properties.name`` equals ``name`` after case-folding and trimming."""
    wanted = normalize_name(name)
    for feature in features:
        props = feature.get("properties") or {}
        if normalize_name(props.get("name")) == wanted:
            return feature
    return None


class BoundaryFetcher:
    """Fetch Overpass JSON for a place name and pick the matching polygon.

    ``url_template`` is formatted with the URL-encoded name as ``{name}``.
    Pass a shared ``aiohttp.ClientSession`` to reuse connections; otherwise a
    session is opened per fetch.
    """

    def __init__(
        self,
        url_template: str,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if "{name}" not in url_template:
            raise ValueError("url_template must contain a '{name}' placeholder")
        self.url_template = url_template
        self.session = session
        self.timeout = timeout

    def url_for(self, name: str) -> str:
        return self.url_template.format(name=quote(name, safe=""))

    async def _get_json(self, session: aiohttp.ClientSession, url: str) -> Any:
        async with session.get(url) as r:
            r.raise_for_status()
            return await r.json(content_type=None)

    async def _request(self, url: str) -> Any:
        if self.session is not None:
            return await self._get_json(self.session, url)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            return await self._get_json(session, url)

    async def fetch(self, name: str) -> FetchResult:
        url = self.url_for(name)
        try:
            payload = await self._request(url)
            features = overpass_to_features(payload)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.error(
                "boundary_fetcher.fetch_failed name=%r url=%s error=%s", name, url, exc
            )
            return FetchResult(
                error=FetchError.FETCH_FAILED, message="Error fetching boundary"
            )

        if not features:
            logger.info("boundary_fetcher.no_features name=%r", name)
            return FetchResult(
                error=FetchError.NO_FEATURES_RETURNED, message="No features found"
            )

        matched = select_matching_feature(features, name)
        if matched is None:
            logger.info(
                "boundary_fetcher.not_found name=%r candidates=%d", name, len(features)
            )
            return FetchResult(
                error=FetchError.BOUNDARY_NOT_FOUND, message="Boundary not found"
            )

        try:
            feature = BoundaryFeature.from_geojson(matched)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "boundary_fetcher.unusable_feature name=%r error=%s", name, exc
            )
            return FetchResult(
                error=FetchError.BOUNDARY_NOT_FOUND, message="Boundary not found"
            )
        logger.info(
            "boundary_fetcher.matched name=%r feature=%s", name, matched.get("id")
        )
        return FetchResult(feature=feature)
