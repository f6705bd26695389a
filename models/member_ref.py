from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from exceptions import MemberTypeConsistencyViolation


class NodeRef(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    type: Literal['node'] = 'node'
    ref: int


class WayRef(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    type: Literal['way'] = 'way'
    ref: int


class RelationRef(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    type: Literal['relation'] = 'relation'
    ref: int


MemberRef = Annotated[NodeRef | WayRef | RelationRef, Field(discriminator='type')]

_REF_TYPES: dict[str, type[NodeRef | WayRef | RelationRef]] = {
    'node': NodeRef,
    'way': WayRef,
    'relation': RelationRef,
}


def make_member_ref(member_type: str, ref: int) -> NodeRef | WayRef | RelationRef:
    ref_type = _REF_TYPES.get(member_type)
    if ref_type is None:
        raise ValueError(f'Unknown member type: {member_type!r}')
    return ref_type(ref=ref)


def member_ref_from_columns(
    member_type: str,
    node_id: int | None,
    way_id: int | None,
    relation_ref_id: int | None,
) -> NodeRef | WayRef | RelationRef:
    """
    Build a member reference from the three nullable target columns.

    Exactly the column matching member_type must be populated.
    """
    columns = {'node': node_id, 'way': way_id, 'relation': relation_ref_id}

    if member_type not in columns:
        raise MemberTypeConsistencyViolation(f'Unknown member type: {member_type!r}')

    populated = [t for t, value in columns.items() if value is not None]
    if populated != [member_type]:
        raise MemberTypeConsistencyViolation(
            f'Member type {member_type!r} does not match populated columns {populated!r}'
        )

    return make_member_ref(member_type, columns[member_type])


def member_columns(ref: NodeRef | WayRef | RelationRef) -> dict[str, str | int | None]:
    return {
        'member_type': ref.type,
        'node_id': ref.ref if ref.type == 'node' else None,
        'way_id': ref.ref if ref.type == 'way' else None,
        'relation_ref_id': ref.ref if ref.type == 'relation' else None,
    }
