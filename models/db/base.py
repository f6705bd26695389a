from sqlalchemy import BigInteger, Unicode
from sqlalchemy.orm import DeclarativeBase, MappedAsDataclass

from config import TEXT_LENGTH


class Base(MappedAsDataclass, DeclarativeBase, kw_only=True):
    type_annotation_map = {
        int: BigInteger,
        str: Unicode(TEXT_LENGTH),
    }
