from unittest import TestCase

from exceptions import MemberTypeConsistencyViolation
from models.member_ref import (
    NodeRef,
    RelationRef,
    WayRef,
    make_member_ref,
    member_columns,
    member_ref_from_columns,
)


class TestMemberRef(TestCase):
    def test_make_member_ref(self):
        self.assertEqual(make_member_ref('node', 1), NodeRef(ref=1))
        self.assertEqual(make_member_ref('way', 2), WayRef(ref=2))
        self.assertEqual(make_member_ref('relation', 3), RelationRef(ref=3))

    def test_make_member_ref__unknown_type(self):
        with self.assertRaises(ValueError):
            make_member_ref('changeset', 1)

    def test_refs_are_hashable(self):
        self.assertEqual(len({NodeRef(ref=1), NodeRef(ref=1), WayRef(ref=1)}), 2)

    def test_member_columns(self):
        self.assertEqual(
            member_columns(WayRef(ref=5)),
            {'member_type': 'way', 'node_id': None, 'way_id': 5, 'relation_ref_id': None},
        )

    def test_from_columns(self):
        self.assertEqual(member_ref_from_columns('node', 1, None, None), NodeRef(ref=1))
        self.assertEqual(member_ref_from_columns('relation', None, None, 9), RelationRef(ref=9))

    def test_from_columns__type_mismatch(self):
        with self.assertRaises(MemberTypeConsistencyViolation):
            member_ref_from_columns('node', None, 5, None)

    def test_from_columns__two_targets(self):
        with self.assertRaises(MemberTypeConsistencyViolation):
            member_ref_from_columns('way', 1, 5, None)

    def test_from_columns__no_target(self):
        with self.assertRaises(MemberTypeConsistencyViolation):
            member_ref_from_columns('relation', None, None, None)

    def test_from_columns__unknown_type(self):
        with self.assertRaises(MemberTypeConsistencyViolation):
            member_ref_from_columns('area', 1, None, None)
