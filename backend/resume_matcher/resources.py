"""
Learning-resource link validation.

Video links suggested by the model are checked against the public oEmbed
endpoint. A dead link is sent back to the model for a replacement, bounded
by `max_link_regenerations`; a resource that never validates is dropped.
Non-video links are passed through unchecked.
"""

import json
import logging
import re
from typing import List, Optional, Set

import httpx

from .config import Settings
from .decoder import decode_free_resource
from .errors import MalformedResponseError
from .models import FreeResource, LearningResources
from .prompts import build_replacement_prompt
from .retry import regenerate_until_valid

logger = logging.getLogger(__name__)

_VIDEO_URL_RE = re.compile(
    r"^https?://(www\.|m\.)?(youtube\.com/(watch\?|embed/|shorts/)|youtu\.be/)",
    re.IGNORECASE,
)


def is_video_url(url: str) -> bool:
    return bool(url and _VIDEO_URL_RE.match(url.strip()))


class LinkValidator:

    def __init__(self, settings: Settings, llm, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.llm = llm
        self._http = http_client
        self._replace = regenerate_until_valid(
            validate=self.is_available,
            max_retries=settings.max_link_regenerations,
        )(self._request_replacement)

    async def is_available(self, resource: FreeResource) -> bool:
        if not is_video_url(resource.url):
            return True
        params = {"url": resource.url, "format": "json"}
        try:
            if self._http is not None:
                resp = await self._http.get(self.settings.oembed_url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.settings.link_check_timeout_seconds) as client:
                    resp = await client.get(self.settings.oembed_url, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"oEmbed check failed for {resource.url}: {e}")
            return False
        if resp.status_code != 200:
            logger.info(f"Video unavailable ({resp.status_code}): {resource.url}")
            return False
        return True

    async def _request_replacement(self, rejected: FreeResource, attempt: int,
                                   topic: str = "", excluded: Optional[Set[str]] = None) -> FreeResource:
        excluded = excluded if excluded is not None else set()
        excluded.add(rejected.url)
        prompt = build_replacement_prompt(
            json.dumps(rejected.model_dump()), topic or rejected.title, sorted(excluded)
        )
        reply = await self.llm.complete(prompt)
        decoded = decode_free_resource(reply)
        if not decoded.ok:
            raise MalformedResponseError(f"Replacement resource unreadable: {decoded.reason}")
        replacement = decoded.value
        if replacement.url in excluded:
            raise MalformedResponseError("Replacement repeats an excluded link")
        logger.info(f"Replacement #{attempt} for '{rejected.title}': {replacement.url}")
        return replacement

    async def filter_resources(self, resources: LearningResources, topic: str = "") -> LearningResources:
        excluded: Set[str] = {r.url for r in resources.free_resources if r.url}
        kept: List[FreeResource] = []
        for resource in resources.free_resources:
            valid = await self._replace(resource, topic=topic, excluded=excluded)
            if valid is None:
                logger.info(f"Dropped unavailable resource '{resource.title}'")
                continue
            excluded.add(valid.url)
            kept.append(valid)
        return resources.model_copy(update={"free_resources": kept})
