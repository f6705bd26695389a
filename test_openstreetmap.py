from unittest import IsolatedAsyncioTestCase

from httpx import AsyncClient, MockTransport, Request, Response

from models.bbox import BBox
from openstreetmap import OpenStreetMap
from osm_reader import parse_osm
from testing import SAMPLE_OSM

_API_URL = 'https://api.example.org/api/0.6/'


class TestOpenStreetMap(IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.requests: list[Request] = []

        def handler(request: Request) -> Response:
            self.requests.append(request)
            if request.url.path.endswith('/404'):
                return Response(404)
            if request.url.path.endswith('/410/full'):
                return Response(410)
            return Response(200, content=SAMPLE_OSM)

        self.http = AsyncClient(transport=MockTransport(handler))
        self.osm = OpenStreetMap(self.http, _API_URL)

    async def asyncTearDown(self):
        await self.http.aclose()

    async def test_get_map(self):
        content = await self.osm.get_map(BBox.from_tuple((12.0, 55.0, 12.1, 55.1)))

        self.assertEqual(len(parse_osm(content).nodes), 3)
        self.assertEqual(self.requests[0].url.path, '/api/0.6/map')
        self.assertEqual(self.requests[0].url.params['bbox'], '12.0000000,55.0000000,12.1000000,55.1000000')

    async def test_get_full(self):
        self.assertEqual(await self.osm.get_full('relation', 100), SAMPLE_OSM)
        self.assertEqual(await self.osm.get_full('node', 1), SAMPLE_OSM)

        self.assertEqual(
            [r.url.path for r in self.requests],
            ['/api/0.6/relation/100/full', '/api/0.6/node/1'],
        )

    async def test_get_full_missing(self):
        self.assertIsNone(await self.osm.get_full('node', 404))
        self.assertIsNone(await self.osm.get_full('way', 410))
