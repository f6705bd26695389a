import logging
from typing import Literal

from httpx import AsyncClient, codes
from sentry_sdk import trace

from config import OPENSTREETMAP_API_URL
from models.bbox import BBox
from utils import HTTP, retry_exponential

ElementKind = Literal['node', 'way', 'relation']


class OpenStreetMap:
    def __init__(self, http: AsyncClient = HTTP, api_url: str = OPENSTREETMAP_API_URL):
        self.http = http
        self.api_url = api_url

    @retry_exponential(30)
    @trace
    async def get_map(self, bbox: BBox) -> bytes:
        """
        Download all elements inside the bounding box as OSM XML.

        Relations in the response may reference members outside the box.
        """
        logging.info('Downloading map data for bbox %s', bbox.to_query())
        r = await self.http.get(f'{self.api_url}map', params={'bbox': bbox.to_query()})
        r.raise_for_status()
        return r.content

    @retry_exponential(10)
    @trace
    async def get_full(self, kind: ElementKind, id: int) -> bytes | None:
        """
        Download an element together with everything it references, or None if it does not exist.
        """
        path = f'{kind}/{id}' if kind == 'node' else f'{kind}/{id}/full'
        r = await self.http.get(f'{self.api_url}{path}')
        if r.status_code in (codes.NOT_FOUND, codes.GONE):
            return None
        r.raise_for_status()
        return r.content
