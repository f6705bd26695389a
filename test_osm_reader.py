import gzip
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import TestCase

from models.member_ref import NodeRef, RelationRef, WayRef
from osm_reader import parse_osm, read_osm_file
from testing import SAMPLE_OSM


class TestParseOSM(TestCase):
    def test_counts(self):
        data = parse_osm(SAMPLE_OSM)

        self.assertEqual(len(data.nodes), 3)
        self.assertEqual(len(data.ways), 1)
        self.assertEqual(len(data.relations), 2)
        self.assertEqual(len(data), 6)

    def test_node_attributes(self):
        node = parse_osm(SAMPLE_OSM).nodes[0]

        self.assertEqual(node.id, 1)
        self.assertEqual(node.lat, 55.01)
        self.assertEqual(node.lon, 12.01)
        self.assertEqual(node.version, 1)
        self.assertEqual(node.timestamp, '2024-05-10T12:34:56Z')
        self.assertEqual(node.changeset, 100)
        self.assertEqual(node.uid, 42)
        self.assertEqual(node.user, 'alice')
        self.assertEqual(node.tags, {})

    def test_node_tags(self):
        node = parse_osm(SAMPLE_OSM).nodes[1]

        self.assertEqual(node.tags, {'amenity': 'bench', 'backrest': 'yes'})

    def test_way_node_order(self):
        way = parse_osm(SAMPLE_OSM).ways[0]

        self.assertEqual(way.node_refs, (1, 2, 3, 1))
        self.assertEqual(way.tags, {'highway': 'footway'})

    def test_relation_members(self):
        relations = parse_osm(SAMPLE_OSM).relations

        self.assertEqual(
            [(m.ref, m.role) for m in relations[0].members],
            [(WayRef(ref=10), 'outer'), (RelationRef(ref=101), 'subarea')],
        )
        self.assertEqual(
            [(m.ref, m.role) for m in relations[1].members],
            [(NodeRef(ref=2), 'stop'), (RelationRef(ref=100), '')],
        )

    def test_missing_provenance(self):
        xml = '<osm version="0.6"><node id="7" lat="1.5" lon="2.5"/></osm>'
        node = parse_osm(xml).nodes[0]

        self.assertEqual(node.id, 7)
        self.assertEqual(node.version, 0)
        self.assertEqual(node.uid, 0)
        self.assertEqual(node.user, '')
        self.assertEqual(node.timestamp, '')

    def test_empty_document(self):
        data = parse_osm('<osm version="0.6"></osm>')

        self.assertEqual(len(data), 0)


class TestReadOSMFile(TestCase):
    def test_plain_and_gzip(self):
        with TemporaryDirectory() as tmp_dir:
            plain = Path(tmp_dir) / 'sample.osm'
            plain.write_bytes(SAMPLE_OSM)
            compressed = Path(tmp_dir) / 'sample.osm.gz'
            compressed.write_bytes(gzip.compress(SAMPLE_OSM))

            self.assertEqual(read_osm_file(plain), read_osm_file(compressed))
