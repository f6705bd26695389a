from unittest import TestCase

from sqlalchemy.exc import IntegrityError

from exceptions import (
    MemberTypeConsistencyViolation,
    ReferentialIntegrityViolation,
    StoreError,
    UniqueConstraintViolation,
    translate_integrity_error,
)


class _DriverError(Exception):
    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


def _integrity_error(message: str, sqlstate: str | None = None) -> IntegrityError:
    return IntegrityError('INSERT INTO node ...', {}, _DriverError(message, sqlstate))


class TestTranslateIntegrityError(TestCase):
    def test_sqlite_unique(self):
        error = translate_integrity_error(_integrity_error('UNIQUE constraint failed: node.id'))
        self.assertIsInstance(error, UniqueConstraintViolation)

    def test_sqlite_foreign_key(self):
        error = translate_integrity_error(_integrity_error('FOREIGN KEY constraint failed'))
        self.assertIsInstance(error, ReferentialIntegrityViolation)

    def test_sqlite_check(self):
        error = translate_integrity_error(_integrity_error('CHECK constraint failed: member_type_check'))
        self.assertIsInstance(error, MemberTypeConsistencyViolation)

    def test_postgres_sqlstate(self):
        cases = (
            ('23505', UniqueConstraintViolation),
            ('23503', ReferentialIntegrityViolation),
            ('23514', MemberTypeConsistencyViolation),
        )
        for sqlstate, expected in cases:
            with self.subTest(sqlstate=sqlstate):
                error = translate_integrity_error(_integrity_error('violation', sqlstate))
                self.assertIsInstance(error, expected)

    def test_unknown(self):
        error = translate_integrity_error(_integrity_error('NOT NULL constraint failed: node.lat'))
        self.assertIs(type(error), StoreError)
        self.assertIn('node.lat', str(error))
