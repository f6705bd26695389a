from sqlalchemy import CheckConstraint, ColumnElement, ForeignKey, Integer, and_, or_
from sqlalchemy.orm import Mapped, mapped_column

from models.db.base import Base

MEMBER_TYPE_CHECK = (
    "(member_type = 'node' AND node_id IS NOT NULL AND way_id IS NULL AND relation_ref_id IS NULL) OR "
    "(member_type = 'way' AND way_id IS NOT NULL AND node_id IS NULL AND relation_ref_id IS NULL) OR "
    "(member_type = 'relation' AND relation_ref_id IS NOT NULL AND node_id IS NULL AND way_id IS NULL)"
)


class Relation(Base):
    __tablename__ = 'relation'

    id: Mapped[int] = mapped_column(
        nullable=False,
        primary_key=True,
        autoincrement=False,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[str] = mapped_column(nullable=False)
    changeset: Mapped[int] = mapped_column(nullable=False)
    uid: Mapped[int] = mapped_column(nullable=False)
    user: Mapped[str] = mapped_column(nullable=False)


class Member(Base):
    __tablename__ = 'member'

    id: Mapped[int] = mapped_column(
        nullable=False,
        primary_key=True,
        autoincrement=False,
    )

    relation_id: Mapped[int] = mapped_column(ForeignKey(Relation.id), nullable=False)
    member_type: Mapped[str] = mapped_column(nullable=False)
    role: Mapped[str] = mapped_column(nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    node_id: Mapped[int | None] = mapped_column(ForeignKey('node.id'), nullable=True, default=None)
    way_id: Mapped[int | None] = mapped_column(ForeignKey('way.id'), nullable=True, default=None)
    relation_ref_id: Mapped[int | None] = mapped_column(ForeignKey(Relation.id), nullable=True, default=None)

    __table_args__ = (CheckConstraint(MEMBER_TYPE_CHECK, name='member_type_check'),)


def member_type_consistent() -> ColumnElement[bool]:
    """
    Column expression true when exactly the target column named by member_type is populated.
    """
    targets = {
        'node': Member.node_id,
        'way': Member.way_id,
        'relation': Member.relation_ref_id,
    }
    return or_(
        *(
            and_(
                Member.member_type == member_type,
                *(column.is_not(None) if t == member_type else column.is_(None) for t, column in targets.items()),
            )
            for member_type in targets
        )
    )
