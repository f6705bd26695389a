import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from itertools import batched
from pathlib import Path

from anyio import to_thread
from sentry_sdk import start_span, trace
from sqlalchemy import Table, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from config import IMPORT_BATCH_SIZE
from db import db_write
from models.db.node import Node
from models.db.relation import Member, Relation
from models.db.tag import NodeTag, RelationTag, WayTag
from models.db.way import Way, WayNode
from models.element import OSMData
from osm_reader import read_osm_file
from services.node_service import node_row
from services.relation_service import member_rows, relation_row
from services.tag_service import tag_rows
from services.way_service import way_node_rows, way_row
from utils import abbreviate, insert_rows_stmt


@dataclass(slots=True)
class ImportStats:
    nodes: int = 0
    ways: int = 0
    relations: int = 0
    tags: int = 0
    way_nodes: int = 0
    members: int = 0
    dropped_way_nodes: int = 0
    dropped_members: int = 0


class ImportService:
    @classmethod
    @trace
    async def import_file(cls, path: str | Path, **kwargs) -> ImportStats:
        data = await to_thread.run_sync(read_osm_file, path)
        return await cls.import_data(data, **kwargs)

    @staticmethod
    @trace
    async def import_data(
        data: OSMData,
        *,
        skip_existing: bool = False,
        drop_dangling: bool = False,
    ) -> ImportStats:
        """
        Insert parsed OSM data in a single transaction.

        Tables are filled in dependency order; members go last so that relations
        may reference relations appearing later in the data.

        With skip_existing, rows whose key already exists are left untouched.
        With drop_dangling, way nodes and members referencing elements present
        neither in the data nor in the store are dropped instead of failing the import.
        """
        stats = ImportStats()
        known_ids = {
            'node': {n.id for n in data.nodes},
            'way': {w.id for w in data.ways},
            'relation': {r.id for r in data.relations},
        }

        async with db_write() as session:
            importer = _Importer(session, skip_existing=skip_existing)

            with start_span(description=f'Importing {len(data.nodes)} nodes'):
                for batch in batched(data.nodes, IMPORT_BATCH_SIZE):
                    stats.nodes += await importer.insert(Node.__table__, [node_row(n) for n in batch])
                    stats.tags += await importer.insert(
                        NodeTag.__table__,
                        [row for n in batch for row in tag_rows('node', n.id, n.tags)],
                    )
                logging.info('Imported %s nodes', abbreviate(stats.nodes))

            with start_span(description=f'Importing {len(data.ways)} ways'):
                for batch in batched(data.ways, IMPORT_BATCH_SIZE):
                    stats.ways += await importer.insert(Way.__table__, [way_row(w) for w in batch])
                    stats.tags += await importer.insert(
                        WayTag.__table__,
                        [row for w in batch for row in tag_rows('way', w.id, w.tags)],
                    )

                    rows = [row for w in batch for row in way_node_rows(w.id, w.node_refs)]
                    if drop_dangling:
                        dangling = await _find_dangling(session, Node.id, known_ids['node'], (r['ref_id'] for r in rows))
                        kept = [r for r in rows if r['ref_id'] not in dangling]
                        stats.dropped_way_nodes += len(rows) - len(kept)
                        rows = kept
                    stats.way_nodes += await importer.insert(WayNode.__table__, rows)
                logging.info('Imported %s ways', abbreviate(stats.ways))

            with start_span(description=f'Importing {len(data.relations)} relations'):
                for batch in batched(data.relations, IMPORT_BATCH_SIZE):
                    stats.relations += await importer.insert(Relation.__table__, [relation_row(r) for r in batch])
                    stats.tags += await importer.insert(
                        RelationTag.__table__,
                        [row for r in batch for row in tag_rows('relation', r.id, r.tags)],
                    )

                for batch in batched(data.relations, IMPORT_BATCH_SIZE):
                    rows = [row for r in batch for row in member_rows(r)]
                    if drop_dangling:
                        kept = await _drop_dangling_members(session, known_ids, rows)
                        stats.dropped_members += len(rows) - len(kept)
                        rows = kept
                    stats.members += await importer.insert(Member.__table__, rows)
                logging.info('Imported %s relations', abbreviate(stats.relations))

        if stats.dropped_way_nodes or stats.dropped_members:
            logging.warning(
                'Dropped %d way nodes and %d members referencing missing elements',
                stats.dropped_way_nodes,
                stats.dropped_members,
            )

        logging.info('Import finished: %s', asdict(stats))
        return stats


class _Importer:
    def __init__(self, session: AsyncSession, *, skip_existing: bool):
        self._session = session
        self._skip_existing = skip_existing

    async def insert(self, table: Table, rows: list[dict]) -> int:
        if not rows:
            return 0
        stmt = insert_rows_stmt(self._session, table, skip_existing=self._skip_existing)
        await self._session.execute(stmt, rows)
        return len(rows)


async def _find_dangling(
    session: AsyncSession,
    id_column: InstrumentedAttribute,
    known_ids: set[int],
    ref_ids: Iterable[int],
) -> set[int]:
    """
    Return the referenced ids that exist neither in known_ids nor in the store.
    """
    missing = set(ref_ids) - known_ids
    if not missing:
        return missing

    for batch in batched(tuple(missing), IMPORT_BATCH_SIZE):
        stmt = select(id_column).where(id_column.in_(batch))
        missing.difference_update(await session.scalars(stmt))

    return missing


_MEMBER_TARGETS = (
    ('node', 'node_id', Node.id),
    ('way', 'way_id', Way.id),
    ('relation', 'relation_ref_id', Relation.id),
)


async def _drop_dangling_members(
    session: AsyncSession,
    known_ids: dict[str, set[int]],
    rows: list[dict],
) -> list[dict]:
    kept = rows

    for member_type, column, id_column in _MEMBER_TARGETS:
        refs = (r[column] for r in kept if r['member_type'] == member_type)
        dangling = await _find_dangling(session, id_column, known_ids[member_type], refs)
        if dangling:
            kept = [r for r in kept if not (r['member_type'] == member_type and r[column] in dangling)]

    return kept
