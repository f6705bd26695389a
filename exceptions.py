from sqlalchemy.exc import IntegrityError

# SQLSTATE codes reported by PostgreSQL drivers
_PG_UNIQUE_VIOLATION = '23505'
_PG_FOREIGN_KEY_VIOLATION = '23503'
_PG_CHECK_VIOLATION = '23514'


class StoreError(Exception):
    """
    Base class of errors raised when a write breaks a constraint of the store.
    """


class UniqueConstraintViolation(StoreError):
    pass


class ReferentialIntegrityViolation(StoreError):
    pass


class MemberTypeConsistencyViolation(StoreError):
    pass


def translate_integrity_error(exc: IntegrityError) -> StoreError:
    """
    Map an IntegrityError raised by the engine to the matching store error.

    PostgreSQL drivers expose the SQLSTATE, sqlite only the message text.
    """
    orig = exc.orig
    message = str(orig)
    code = getattr(orig, 'sqlstate', None) or getattr(orig, 'pgcode', None)

    if code == _PG_UNIQUE_VIOLATION or message.startswith('UNIQUE constraint failed'):
        return UniqueConstraintViolation(message)
    if code == _PG_FOREIGN_KEY_VIOLATION or message.startswith('FOREIGN KEY constraint failed'):
        return ReferentialIntegrityViolation(message)
    if code == _PG_CHECK_VIOLATION or message.startswith('CHECK constraint failed'):
        return MemberTypeConsistencyViolation(message)

    return StoreError(message)
