from tempfile import TemporaryDirectory
from unittest import IsolatedAsyncioTestCase

from db import configure_engine, get_engine
from models.element import OSMMember, OSMNode, OSMRelation, OSMWay
from models.member_ref import MemberRef
from services.store_service import StoreService

SAMPLE_OSM = b"""<?xml version="1.0" encoding="UTF-8"?>
<osm version="0.6" generator="osm-store tests">
  <bounds minlat="55.0" minlon="12.0" maxlat="55.1" maxlon="12.1"/>
  <node id="1" lat="55.01" lon="12.01" version="1" timestamp="2024-05-10T12:34:56Z" changeset="100" uid="42" user="alice"/>
  <node id="2" lat="55.02" lon="12.02" version="2" timestamp="2024-05-10T12:36:56Z" changeset="120" uid="41" user="bob">
    <tag k="amenity" v="bench"/>
    <tag k="backrest" v="yes"/>
  </node>
  <node id="3" lat="55.03" lon="12.03" version="1" timestamp="2024-05-10T12:40:00Z" changeset="100" uid="42" user="alice"/>
  <way id="10" version="3" timestamp="2024-05-11T08:00:00Z" changeset="130" uid="42" user="alice">
    <nd ref="1"/>
    <nd ref="2"/>
    <nd ref="3"/>
    <nd ref="1"/>
    <tag k="highway" v="footway"/>
  </way>
  <relation id="100" version="1" timestamp="2024-05-12T09:00:00Z" changeset="140" uid="41" user="bob">
    <member type="way" ref="10" role="outer"/>
    <member type="relation" ref="101" role="subarea"/>
    <member type="changeset" ref="5" role=""/>
    <tag k="type" v="multipolygon"/>
  </relation>
  <relation id="101" version="1" timestamp="2024-05-12T09:05:00Z" changeset="140" uid="41" user="bob">
    <member type="node" ref="2" role="stop"/>
    <member type="relation" ref="100" role=""/>
  </relation>
</osm>
"""


def make_node(id: int, *, tags: dict[str, str] | None = None, **kwargs) -> OSMNode:
    return OSMNode(
        id=id,
        lat=kwargs.pop('lat', 52.52),
        lon=kwargs.pop('lon', 13.405),
        version=kwargs.pop('version', 1),
        timestamp=kwargs.pop('timestamp', '2024-05-10 12:34:56'),
        changeset=kwargs.pop('changeset', 100),
        uid=kwargs.pop('uid', 42),
        user=kwargs.pop('user', 'username'),
        tags=tags or {},
    )


def make_way(id: int, node_refs: tuple[int, ...] = (), *, tags: dict[str, str] | None = None) -> OSMWay:
    return OSMWay(
        id=id,
        version=1,
        timestamp='2024-05-10 12:34:56',
        changeset=100,
        uid=42,
        user='username',
        node_refs=node_refs,
        tags=tags or {},
    )


def make_relation(
    id: int,
    members: tuple[tuple[MemberRef, str], ...] = (),
    *,
    tags: dict[str, str] | None = None,
) -> OSMRelation:
    return OSMRelation(
        id=id,
        version=1,
        timestamp='2024-05-10 12:34:56',
        changeset=100,
        uid=42,
        user='username',
        members=tuple(OSMMember(ref=ref, role=role) for ref, role in members),
        tags=tags or {},
    )


class StoreTestCase(IsolatedAsyncioTestCase):
    """
    Runs every test against empty tables in a fresh sqlite database.
    """

    async def asyncSetUp(self):
        self._tmp_dir = TemporaryDirectory()
        await configure_engine(f'sqlite+aiosqlite:///{self._tmp_dir.name}/test.db')
        await StoreService.create_tables()

    async def asyncTearDown(self):
        await get_engine().dispose()
        self._tmp_dir.cleanup()
