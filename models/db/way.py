from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from models.db.base import Base


class Way(Base):
    __tablename__ = 'way'

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


class WayNode(Base):
    __tablename__ = 'way_nodes'

    way_id: Mapped[int] = mapped_column(
        ForeignKey(Way.id),
        nullable=False,
        primary_key=True,
    )
    ref_id: Mapped[int] = mapped_column(
        ForeignKey('node.id'),
        nullable=False,
        primary_key=True,
    )

    # position of the node within the way, (way_id, ref_id) alone loses the order
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
