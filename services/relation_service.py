from collections import deque
from collections.abc import Iterable, Sequence
from hashlib import sha256

from sentry_sdk import trace
from sqlalchemy import func, insert, select

from db import db_read, db_write
from models.db.relation import Member, Relation
from models.db.tag import RelationTag
from models.element import OSMMember, OSMRelation
from models.member_ref import MemberRef, RelationRef, member_columns, member_ref_from_columns
from services.tag_service import load_tags, tag_rows


def member_id(relation_id: int, sequence: int) -> int:
    """
    Surrogate member id, stable across imports of the same relation.
    """
    digest = sha256(f'{relation_id}:{sequence}'.encode()).digest()
    return int.from_bytes(digest[:8], 'big') & 0x7FFF_FFFF_FFFF_FFFF


def relation_row(relation: OSMRelation) -> dict:
    return {
        'id': relation.id,
        'version': relation.version,
        'timestamp': relation.timestamp,
        'changeset': relation.changeset,
        'uid': relation.uid,
        'user': relation.user,
    }


def member_row(relation_id: int, ref: MemberRef, role: str, sequence: int) -> dict:
    return {
        'id': member_id(relation_id, sequence),
        'relation_id': relation_id,
        'role': role,
        'sequence': sequence,
        **member_columns(ref),
    }


def member_rows(relation: OSMRelation) -> list[dict]:
    return [member_row(relation.id, m.ref, m.role, sequence) for sequence, m in enumerate(relation.members)]


def _to_member(member: Member) -> OSMMember:
    ref = member_ref_from_columns(member.member_type, member.node_id, member.way_id, member.relation_ref_id)
    return OSMMember(ref=ref, role=member.role)


async def _load_members(session, relation_ids: Iterable[int] | None = None) -> dict[int, tuple[OSMMember, ...]]:
    stmt = select(Member).order_by(Member.relation_id, Member.sequence)
    if relation_ids is not None:
        stmt = stmt.where(Member.relation_id.in_(tuple(relation_ids)))

    result: dict[int, list[OSMMember]] = {}
    for member in await session.scalars(stmt):
        result.setdefault(member.relation_id, []).append(_to_member(member))
    return {relation_id: tuple(members) for relation_id, members in result.items()}


def _to_element(relation: Relation, members: tuple[OSMMember, ...], tags: dict[str, str]) -> OSMRelation:
    return OSMRelation(
        id=relation.id,
        version=relation.version,
        timestamp=relation.timestamp,
        changeset=relation.changeset,
        uid=relation.uid,
        user=relation.user,
        members=members,
        tags=tags,
    )


class RelationService:
    @staticmethod
    @trace
    async def insert(relation: OSMRelation) -> None:
        async with db_write() as session:
            await session.execute(insert(Relation.__table__), [relation_row(relation)])
            if relation.tags:
                await session.execute(
                    insert(RelationTag.__table__),
                    tag_rows('relation', relation.id, relation.tags),
                )
            if relation.members:
                await session.execute(insert(Member.__table__), member_rows(relation))

    @staticmethod
    @trace
    async def add_member(relation_id: int, ref: MemberRef, role: str, sequence: int) -> int:
        row = member_row(relation_id, ref, role, sequence)
        async with db_write() as session:
            await session.execute(insert(Member.__table__), [row])
        return row['id']

    @classmethod
    @trace
    async def add_member_row(
        cls,
        relation_id: int,
        member_type: str,
        node_id: int | None,
        way_id: int | None,
        relation_ref_id: int | None,
        role: str,
        sequence: int,
    ) -> int:
        ref = member_ref_from_columns(member_type, node_id, way_id, relation_ref_id)
        return await cls.add_member(relation_id, ref, role, sequence)

    @staticmethod
    @trace
    async def get_by_id(id: int) -> OSMRelation | None:
        async with db_read() as session:
            relation = await session.get(Relation, id)
            if relation is None:
                return None
            members = await _load_members(session, (id,))
            tags = await load_tags(session, 'relation', (id,))
            return _to_element(relation, members.get(id, ()), tags.get(id, {}))

    @staticmethod
    @trace
    async def get_all() -> Sequence[OSMRelation]:
        async with db_read() as session:
            relations = (await session.scalars(select(Relation).order_by(Relation.id))).all()
            members = await _load_members(session)
            tags = await load_tags(session, 'relation')
            return tuple(
                _to_element(relation, members.get(relation.id, ()), tags.get(relation.id, {}))
                for relation in relations
            )

    @staticmethod
    @trace
    async def get_descendants(relation_id: int) -> Sequence[MemberRef]:
        """
        Get all direct and indirect members of a relation, breadth first.

        Every relation is expanded at most once, so membership cycles terminate.
        """
        visited = {relation_id}
        queue = deque((relation_id,))
        seen: set[MemberRef] = set()
        result: list[MemberRef] = []

        async with db_read() as session:
            while queue:
                current = queue.popleft()
                members = (await _load_members(session, (current,))).get(current, ())

                for member in members:
                    ref = member.ref
                    if ref not in seen:
                        seen.add(ref)
                        result.append(ref)
                    if isinstance(ref, RelationRef) and ref.ref not in visited:
                        visited.add(ref.ref)
                        queue.append(ref.ref)

        return tuple(result)

    @staticmethod
    @trace
    async def count() -> int:
        async with db_read() as session:
            return (await session.execute(select(func.count()).select_from(Relation))).scalar_one()
