import bz2
from pathlib import Path
from tempfile import TemporaryDirectory

from exceptions import ReferentialIntegrityViolation, UniqueConstraintViolation
from models.member_ref import NodeRef, RelationRef, WayRef
from osm_reader import parse_osm
from services.import_service import ImportService
from services.node_service import NodeService
from services.relation_service import RelationService
from services.store_service import StoreService
from services.way_service import WayService
from testing import SAMPLE_OSM, StoreTestCase, make_node, make_relation, make_way

_EXPECTED_COUNTS = {
    'node': 3,
    'relation': 2,
    'way': 1,
    'way_nodes': 3,
    'way_tags': 1,
    'relation_tags': 1,
    'node_tags': 2,
    'member': 4,
}


class TestImportService(StoreTestCase):
    async def test_import_sample(self):
        stats = await ImportService.import_data(parse_osm(SAMPLE_OSM))

        self.assertEqual((stats.nodes, stats.ways, stats.relations), (3, 1, 2))
        self.assertEqual(stats.tags, 4)
        self.assertEqual(stats.way_nodes, 3)
        self.assertEqual(stats.members, 4)
        self.assertEqual(await StoreService.counts(), _EXPECTED_COUNTS)
        self.assertEqual(await StoreService.check_integrity(), [])

    async def test_imported_elements(self):
        await ImportService.import_data(parse_osm(SAMPLE_OSM))

        node = await NodeService.get_by_id(2)
        self.assertEqual(node.tags, {'amenity': 'bench', 'backrest': 'yes'})
        self.assertEqual(node.user, 'bob')

        way = await WayService.get_by_id(10)
        self.assertEqual(way.node_refs, (1, 2, 3))

        # relation 100 references relation 101, which appears later in the file
        relation = await RelationService.get_by_id(100)
        self.assertEqual(
            [(m.ref, m.role) for m in relation.members],
            [(WayRef(ref=10), 'outer'), (RelationRef(ref=101), 'subarea')],
        )
        self.assertEqual(
            await RelationService.get_descendants(100),
            (WayRef(ref=10), RelationRef(ref=101), NodeRef(ref=2), RelationRef(ref=100)),
        )

    async def test_import_twice(self):
        data = parse_osm(SAMPLE_OSM)
        await ImportService.import_data(data)

        with self.assertRaises(UniqueConstraintViolation):
            await ImportService.import_data(data)

        await ImportService.import_data(data, skip_existing=True)
        self.assertEqual(await StoreService.counts(), _EXPECTED_COUNTS)

    async def test_failed_import_is_rolled_back(self):
        data = parse_osm(SAMPLE_OSM)
        data.ways.append(make_way(11, (1, 999)))

        with self.assertRaises(ReferentialIntegrityViolation):
            await ImportService.import_data(data)

        self.assertEqual(sum((await StoreService.counts()).values()), 0)

    async def test_drop_dangling(self):
        data = parse_osm(SAMPLE_OSM)
        data.ways.append(make_way(11, (1, 999, 3)))
        data.relations.append(make_relation(102, ((NodeRef(ref=998), ''), (WayRef(ref=11), 'inner'))))

        stats = await ImportService.import_data(data, drop_dangling=True)

        self.assertEqual(stats.dropped_way_nodes, 1)
        self.assertEqual(stats.dropped_members, 1)
        self.assertEqual((await WayService.get_by_id(11)).node_refs, (1, 3))
        self.assertEqual(
            [m.ref for m in (await RelationService.get_by_id(102)).members],
            [WayRef(ref=11)],
        )

    async def test_drop_dangling_uses_stored_elements(self):
        await NodeService.insert(make_node(500))
        data = parse_osm(SAMPLE_OSM)
        data.ways.append(make_way(11, (1, 500)))

        stats = await ImportService.import_data(data, drop_dangling=True)

        self.assertEqual(stats.dropped_way_nodes, 0)
        self.assertEqual((await WayService.get_by_id(11)).node_refs, (1, 500))

    async def test_import_file(self):
        with TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / 'sample.osm.bz2'
            path.write_bytes(bz2.compress(SAMPLE_OSM))

            stats = await ImportService.import_file(path)

        self.assertEqual(stats.nodes, 3)
        self.assertEqual(await StoreService.counts(), _EXPECTED_COUNTS)
