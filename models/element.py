from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

from models.member_ref import MemberRef


class OSMMember(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    ref: MemberRef
    role: str = ''


class OSMNode(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    id: int
    lat: float
    lon: float
    version: int
    timestamp: str
    changeset: int
    uid: int
    user: str
    tags: dict[str, str] = {}


class OSMWay(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    id: int
    version: int
    timestamp: str
    changeset: int
    uid: int
    user: str
    node_refs: tuple[int, ...] = ()
    tags: dict[str, str] = {}


class OSMRelation(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    id: int
    version: int
    timestamp: str
    changeset: int
    uid: int
    user: str
    members: tuple[OSMMember, ...] = ()
    tags: dict[str, str] = {}


@dataclass(slots=True)
class OSMData:
    nodes: list[OSMNode] = field(default_factory=list)
    ways: list[OSMWay] = field(default_factory=list)
    relations: list[OSMRelation] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes) + len(self.ways) + len(self.relations)
