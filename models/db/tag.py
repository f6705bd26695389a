from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from models.db.base import Base


class NodeTag(Base):
    __tablename__ = 'node_tags'

    node_id: Mapped[int] = mapped_column(ForeignKey('node.id'), nullable=False, primary_key=True)
    key: Mapped[str] = mapped_column(nullable=False, primary_key=True)
    value: Mapped[str] = mapped_column(nullable=False)


class WayTag(Base):
    __tablename__ = 'way_tags'

    way_id: Mapped[int] = mapped_column(ForeignKey('way.id'), nullable=False, primary_key=True)
    key: Mapped[str] = mapped_column(nullable=False, primary_key=True)
    value: Mapped[str] = mapped_column(nullable=False)


class RelationTag(Base):
    __tablename__ = 'relation_tags'

    relation_id: Mapped[int] = mapped_column(ForeignKey('relation.id'), nullable=False, primary_key=True)
    key: Mapped[str] = mapped_column(nullable=False, primary_key=True)
    value: Mapped[str] = mapped_column(nullable=False)
