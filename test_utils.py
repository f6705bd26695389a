from unittest import TestCase
from unittest.mock import Mock

from sqlalchemy.dialects import postgresql, sqlite

from models.db.node import Node
from utils import abbreviate, insert_ignoring_conflicts, insert_rows_stmt


def _session(dialect: str) -> Mock:
    session = Mock()
    session.get_bind.return_value.dialect.name = dialect
    return session


class TestInsertIgnoringConflicts(TestCase):
    def test_sqlite(self):
        stmt = insert_ignoring_conflicts(_session('sqlite'), Node.__table__)

        self.assertIn('ON CONFLICT DO NOTHING', str(stmt.compile(dialect=sqlite.dialect())))

    def test_postgresql(self):
        stmt = insert_ignoring_conflicts(_session('postgresql'), Node.__table__)

        self.assertIn('ON CONFLICT DO NOTHING', str(stmt.compile(dialect=postgresql.dialect())))

    def test_unsupported_dialect(self):
        with self.assertRaises(ValueError):
            insert_ignoring_conflicts(_session('mysql'), Node.__table__)

    def test_plain_insert(self):
        stmt = insert_rows_stmt(_session('mysql'), Node.__table__, skip_existing=False)

        self.assertNotIn('ON CONFLICT', str(stmt))


class TestAbbreviate(TestCase):
    def test_abbreviate(self):
        self.assertEqual(abbreviate(999), '999')
        self.assertEqual(abbreviate(1_500), '1.5k')
        self.assertEqual(abbreviate(2_000_000), '2.0m')
