import logging
from typing import NamedTuple

from sentry_sdk import trace
from sqlalchemy import delete, exists, func, not_, select

from db import db_read, db_write, get_engine
from models.db import Base
from models.db.node import Node
from models.db.relation import Member, Relation, member_type_consistent
from models.db.tag import NodeTag, RelationTag, WayTag
from models.db.way import Way, WayNode

# referencing tables come before the tables they reference
CLEAR_ORDER = (
    'member',
    'node_tags',
    'relation_tags',
    'way_tags',
    'way_nodes',
    'way',
    'relation',
    'node',
)


class IntegrityIssue(NamedTuple):
    table: str
    key: tuple
    message: str


# (table, key columns, referencing column, referenced column)
_REFERENCES = (
    ('way_nodes', (WayNode.way_id, WayNode.ref_id), WayNode.way_id, Way.id),
    ('way_nodes', (WayNode.way_id, WayNode.ref_id), WayNode.ref_id, Node.id),
    ('member', (Member.id,), Member.relation_id, Relation.id),
    ('member', (Member.id,), Member.node_id, Node.id),
    ('member', (Member.id,), Member.way_id, Way.id),
    ('member', (Member.id,), Member.relation_ref_id, Relation.id),
    ('node_tags', (NodeTag.node_id, NodeTag.key), NodeTag.node_id, Node.id),
    ('way_tags', (WayTag.way_id, WayTag.key), WayTag.way_id, Way.id),
    ('relation_tags', (RelationTag.relation_id, RelationTag.key), RelationTag.relation_id, Relation.id),
)


class StoreService:
    @staticmethod
    @trace
    async def create_tables() -> None:
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @staticmethod
    @trace
    async def delete_all(table_name: str) -> int:
        """
        Delete every row of a single table.

        Deleting a table that is still referenced raises ReferentialIntegrityViolation.
        """
        table = Base.metadata.tables.get(table_name)
        if table is None:
            raise ValueError(f'Unknown table: {table_name!r}')

        async with db_write() as session:
            result = await session.execute(delete(table))
            return result.rowcount

    @staticmethod
    @trace
    async def clear_all() -> None:
        async with db_write() as session:
            for table_name in CLEAR_ORDER:
                result = await session.execute(delete(Base.metadata.tables[table_name]))
                logging.debug('Deleted %d rows from %s', result.rowcount, table_name)
        logging.info('Cleared all tables')

    @staticmethod
    @trace
    async def counts() -> dict[str, int]:
        async with db_read() as session:
            return {
                table_name: (
                    await session.execute(select(func.count()).select_from(Base.metadata.tables[table_name]))
                ).scalar_one()
                for table_name in reversed(CLEAR_ORDER)
            }

    @staticmethod
    @trace
    async def check_integrity() -> list[IntegrityIssue]:
        """
        Audit the stored rows for dangling references and inconsistent members.

        Engines enforcing foreign keys never report anything here.
        """
        issues: list[IntegrityIssue] = []

        async with db_read() as session:
            for table_name, key_columns, column, referenced in _REFERENCES:
                stmt = select(*key_columns, column.label('ref')).where(
                    column.is_not(None),
                    not_(exists().where(referenced == column)),
                )
                for *key, ref in await session.execute(stmt):
                    issues.append(
                        IntegrityIssue(
                            table_name,
                            tuple(key),
                            f'{column.key}={ref} references missing {referenced.class_.__tablename__}',
                        )
                    )

            stmt = select(Member.id, Member.member_type).where(~member_type_consistent())
            for id, member_type in await session.execute(stmt):
                issues.append(
                    IntegrityIssue('member', (id,), f'member_type={member_type!r} disagrees with populated target')
                )

        if issues:
            logging.warning('Integrity check found %d issues', len(issues))
        return issues
