from collections.abc import Iterable, Mapping
from typing import Literal

from sentry_sdk import trace
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from db import db_read, db_write
from models.db.tag import NodeTag, RelationTag, WayTag

TagKind = Literal['node', 'way', 'relation']

_TAG_TABLES: dict[str, tuple[type[NodeTag | WayTag | RelationTag], str]] = {
    'node': (NodeTag, 'node_id'),
    'way': (WayTag, 'way_id'),
    'relation': (RelationTag, 'relation_id'),
}


def _tag_table(kind: str) -> tuple[type[NodeTag | WayTag | RelationTag], InstrumentedAttribute]:
    try:
        model, owner_column = _TAG_TABLES[kind]
    except KeyError:
        raise ValueError(f'Unknown tag kind: {kind!r}') from None
    return model, getattr(model, owner_column)


def tag_rows(kind: TagKind, owner_id: int, tags: Mapping[str, str]) -> list[dict]:
    _, owner_column = _TAG_TABLES[kind]
    return [{owner_column: owner_id, 'key': k, 'value': v} for k, v in tags.items()]


async def load_tags(
    session: AsyncSession,
    kind: TagKind,
    owner_ids: Iterable[int] | None = None,
) -> dict[int, dict[str, str]]:
    """
    Load tags grouped by owner id, either for the given owners or for all of them.
    """
    model, owner_column = _tag_table(kind)
    stmt = select(owner_column, model.key, model.value)
    if owner_ids is not None:
        stmt = stmt.where(owner_column.in_(tuple(owner_ids)))

    result: dict[int, dict[str, str]] = {}
    for owner_id, key, value in await session.execute(stmt):
        result.setdefault(owner_id, {})[key] = value
    return result


class TagService:
    @staticmethod
    @trace
    async def insert(kind: TagKind, owner_id: int, key: str, value: str) -> None:
        model, _ = _tag_table(kind)
        async with db_write() as session:
            await session.execute(insert(model.__table__), tag_rows(kind, owner_id, {key: value}))

    @staticmethod
    @trace
    async def get(kind: TagKind, owner_id: int) -> dict[str, str]:
        async with db_read() as session:
            return (await load_tags(session, kind, (owner_id,))).get(owner_id, {})
