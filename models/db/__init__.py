from models.db.base import Base
from models.db.node import Node
from models.db.relation import Member, Relation
from models.db.tag import NodeTag, RelationTag, WayTag
from models.db.way import Way, WayNode

__all__ = (
    'Base',
    'Member',
    'Node',
    'NodeTag',
    'Relation',
    'RelationTag',
    'Way',
    'WayNode',
    'WayTag',
)
