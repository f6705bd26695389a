from collections.abc import Sequence

from sentry_sdk import trace
from sqlalchemy import func, insert, select

from db import db_read, db_write
from models.db.node import Node
from models.db.tag import NodeTag
from models.element import OSMNode
from services.tag_service import load_tags, tag_rows


def node_row(node: OSMNode) -> dict:
    return {
        'id': node.id,
        'lat': node.lat,
        'lon': node.lon,
        'version': node.version,
        'timestamp': node.timestamp,
        'changeset': node.changeset,
        'uid': node.uid,
        'user': node.user,
    }


def _to_element(node: Node, tags: dict[str, str]) -> OSMNode:
    return OSMNode(
        id=node.id,
        lat=node.lat,
        lon=node.lon,
        version=node.version,
        timestamp=node.timestamp,
        changeset=node.changeset,
        uid=node.uid,
        user=node.user,
        tags=tags,
    )


class NodeService:
    @staticmethod
    @trace
    async def insert(node: OSMNode) -> None:
        async with db_write() as session:
            await session.execute(insert(Node.__table__), [node_row(node)])
            if node.tags:
                await session.execute(insert(NodeTag.__table__), tag_rows('node', node.id, node.tags))

    @staticmethod
    @trace
    async def get_by_id(id: int) -> OSMNode | None:
        async with db_read() as session:
            node = await session.get(Node, id)
            if node is None:
                return None
            tags = await load_tags(session, 'node', (id,))
            return _to_element(node, tags.get(id, {}))

    @staticmethod
    @trace
    async def get_all() -> Sequence[OSMNode]:
        async with db_read() as session:
            nodes = (await session.scalars(select(Node).order_by(Node.id))).all()
            tags = await load_tags(session, 'node')
            return tuple(_to_element(node, tags.get(node.id, {})) for node in nodes)

    @staticmethod
    @trace
    async def count() -> int:
        async with db_read() as session:
            return (await session.execute(select(func.count()).select_from(Node))).scalar_one()
