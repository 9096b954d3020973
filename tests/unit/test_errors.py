import sqlite3

import pytest

from news_engine.domain.errors import (
    Forbidden,
    InvalidTransition,
    NewsEngineError,
    NotFound,
    StorageUnavailable,
    storage_call,
)


class TestTaxonomy:
    def test_forbidden_is_a_permission_error(self):
        error = Forbidden("User olivia cannot edit a1", "a1")

        assert isinstance(error, PermissionError)
        assert isinstance(error, NewsEngineError)
        assert str(error) == "User olivia cannot edit a1"
        assert error.object_id == "a1"

    def test_builtin_bases(self):
        assert issubclass(NotFound, LookupError)
        assert issubclass(InvalidTransition, ValueError)

    def test_caught_as_permission_error(self):
        with pytest.raises(PermissionError):
            raise Forbidden("denied")


class TestStorageCall:
    def test_store_error_is_wrapped(self):
        with pytest.raises(StorageUnavailable, match="save page failed") as info:
            with storage_call("save page", "a1"):
                raise sqlite3.OperationalError("database is locked")

        assert info.value.object_id == "a1"
        assert isinstance(info.value.__cause__, sqlite3.OperationalError)

    def test_engine_errors_pass_through(self):
        with pytest.raises(Forbidden):
            with storage_call("save page"):
                raise Forbidden("denied")
