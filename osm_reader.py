import bz2
import gzip
import logging
from pathlib import Path
from typing import BinaryIO

import xmltodict
from sentry_sdk import trace

from models.element import OSMData, OSMMember, OSMNode, OSMRelation, OSMWay
from models.member_ref import make_member_ref

_INT_ATTRIBUTES = frozenset(('@id', '@ref', '@changeset', '@uid', '@version'))
_FLOAT_ATTRIBUTES = frozenset(('@lon', '@lat'))
_FORCE_LIST = ('tag', 'nd', 'member')


def _postprocessor(_, key: str, value):
    if key in _INT_ATTRIBUTES:
        return key, int(value)

    if key in _FLOAT_ATTRIBUTES:
        return key, float(value)

    return key, value


def _convert_attributes(attrs: dict[str, str] | None) -> dict:
    # attributes of depth-2 elements only reach the callback unprocessed, via the path
    if not attrs:
        return {}
    return dict(_postprocessor(None, f'@{k}', v) for k, v in attrs.items())


def _parse_tags(item: dict) -> dict[str, str]:
    return {tag['@k']: tag['@v'] for tag in item.get('tag', ())}


def _parse_provenance(attrs: dict) -> dict:
    return {
        'id': attrs['@id'],
        'version': attrs.get('@version', 0),
        'timestamp': attrs.get('@timestamp', ''),
        'changeset': attrs.get('@changeset', 0),
        'uid': attrs.get('@uid', 0),
        'user': attrs.get('@user', ''),
    }


def _parse_node(attrs: dict, item: dict) -> OSMNode:
    return OSMNode(
        **_parse_provenance(attrs),
        lat=attrs['@lat'],
        lon=attrs['@lon'],
        tags=_parse_tags(item),
    )


def _parse_way(attrs: dict, item: dict) -> OSMWay:
    return OSMWay(
        **_parse_provenance(attrs),
        node_refs=tuple(nd['@ref'] for nd in item.get('nd', ())),
        tags=_parse_tags(item),
    )


def _parse_relation(attrs: dict, item: dict) -> OSMRelation:
    members: list[OSMMember] = []

    for member in item.get('member', ()):
        try:
            ref = make_member_ref(member.get('@type', ''), member['@ref'])
        except ValueError:
            logging.debug('Skipping member of relation %d: %r', attrs['@id'], member)
            continue
        members.append(OSMMember(ref=ref, role=member.get('@role', '')))

    return OSMRelation(
        **_parse_provenance(attrs),
        members=tuple(members),
        tags=_parse_tags(item),
    )


_PARSERS = {
    'node': _parse_node,
    'way': _parse_way,
    'relation': _parse_relation,
}


@trace
def parse_osm(source: bytes | str | BinaryIO) -> OSMData:
    """
    Parse an OSM XML document into nodes, ways and relations, preserving document order.

    Children of <osm> other than node, way and relation (bounds, note, meta) are ignored.
    """
    data = OSMData()
    targets = {
        'node': data.nodes,
        'way': data.ways,
        'relation': data.relations,
    }

    def item_callback(path: list, item: dict | str | None) -> bool:
        name, attrs = path[-1]
        parser = _PARSERS.get(name)
        if parser is not None:
            targets[name].append(parser(_convert_attributes(attrs), item if isinstance(item, dict) else {}))
        return True

    xmltodict.parse(
        source,
        item_depth=2,
        item_callback=item_callback,
        postprocessor=_postprocessor,
        force_list=_FORCE_LIST,
    )

    logging.info(
        'Parsed %d nodes, %d ways and %d relations',
        len(data.nodes),
        len(data.ways),
        len(data.relations),
    )
    return data


def read_osm_file(path: str | Path) -> OSMData:
    """
    Read an .osm file, optionally gzip or bzip2 compressed.
    """
    path = Path(path)
    logging.info('Reading %s', path)

    if path.suffix == '.gz':
        opener = gzip.open
    elif path.suffix == '.bz2':
        opener = bz2.open
    else:
        opener = open

    with opener(path, 'rb') as f:
        return parse_osm(f)
