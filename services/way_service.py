import logging
from collections.abc import Iterable, Sequence

from sentry_sdk import trace
from sqlalchemy import func, insert, select

from db import db_read, db_write
from models.db.tag import WayTag
from models.db.way import Way, WayNode
from models.element import OSMWay
from services.tag_service import load_tags, tag_rows


def way_row(way: OSMWay) -> dict:
    return {
        'id': way.id,
        'version': way.version,
        'timestamp': way.timestamp,
        'changeset': way.changeset,
        'uid': way.uid,
        'user': way.user,
    }


def way_node_rows(way_id: int, node_refs: Iterable[int]) -> list[dict]:
    """
    Rows for way_nodes, keyed by (way_id, ref_id).

    A node repeated within the way (e.g. the closing node of a closed way) keeps its first position only.
    """
    seen: set[int] = set()
    rows: list[dict] = []

    for sequence, ref_id in enumerate(node_refs):
        if ref_id in seen:
            logging.debug('Way %d repeats node %d at position %d', way_id, ref_id, sequence)
            continue
        seen.add(ref_id)
        rows.append({'way_id': way_id, 'ref_id': ref_id, 'sequence': sequence})

    return rows


async def _load_node_refs(session, way_ids: Iterable[int] | None = None) -> dict[int, tuple[int, ...]]:
    stmt = select(WayNode.way_id, WayNode.ref_id).order_by(WayNode.way_id, WayNode.sequence)
    if way_ids is not None:
        stmt = stmt.where(WayNode.way_id.in_(tuple(way_ids)))

    result: dict[int, list[int]] = {}
    for way_id, ref_id in await session.execute(stmt):
        result.setdefault(way_id, []).append(ref_id)
    return {way_id: tuple(refs) for way_id, refs in result.items()}


def _to_element(way: Way, node_refs: tuple[int, ...], tags: dict[str, str]) -> OSMWay:
    return OSMWay(
        id=way.id,
        version=way.version,
        timestamp=way.timestamp,
        changeset=way.changeset,
        uid=way.uid,
        user=way.user,
        node_refs=node_refs,
        tags=tags,
    )


class WayService:
    @staticmethod
    @trace
    async def insert(way: OSMWay) -> None:
        async with db_write() as session:
            await session.execute(insert(Way.__table__), [way_row(way)])
            if way.tags:
                await session.execute(insert(WayTag.__table__), tag_rows('way', way.id, way.tags))
            if way.node_refs:
                await session.execute(insert(WayNode.__table__), way_node_rows(way.id, way.node_refs))

    @staticmethod
    @trace
    async def add_node(way_id: int, node_id: int, sequence: int) -> None:
        async with db_write() as session:
            await session.execute(
                insert(WayNode.__table__),
                [{'way_id': way_id, 'ref_id': node_id, 'sequence': sequence}],
            )

    @staticmethod
    @trace
    async def get_by_id(id: int) -> OSMWay | None:
        async with db_read() as session:
            way = await session.get(Way, id)
            if way is None:
                return None
            node_refs = await _load_node_refs(session, (id,))
            tags = await load_tags(session, 'way', (id,))
            return _to_element(way, node_refs.get(id, ()), tags.get(id, {}))

    @staticmethod
    @trace
    async def get_all() -> Sequence[OSMWay]:
        async with db_read() as session:
            ways = (await session.scalars(select(Way).order_by(Way.id))).all()
            node_refs = await _load_node_refs(session)
            tags = await load_tags(session, 'way')
            return tuple(_to_element(way, node_refs.get(way.id, ()), tags.get(way.id, {})) for way in ways)

    @staticmethod
    @trace
    async def count() -> int:
        async with db_read() as session:
            return (await session.execute(select(func.count()).select_from(Way))).scalar_one()
