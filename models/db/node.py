from sqlalchemy import Float, Integer
from sqlalchemy.orm import Mapped, mapped_column

from models.db.base import Base


class Node(Base):
    __tablename__ = 'node'

    id: Mapped[int] = mapped_column(
        nullable=False,
        primary_key=True,
        autoincrement=False,
    )

    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lon: Mapped[float] = mapped_column(Float, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[str] = mapped_column(nullable=False)
    changeset: Mapped[int] = mapped_column(nullable=False)
    uid: Mapped[int] = mapped_column(nullable=False)
    user: Mapped[str] = mapped_column(nullable=False)
