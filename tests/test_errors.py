"""
Tests for farm database failure classification.
"""

from sqlalchemy.exc import DBAPIError, OperationalError, ProgrammingError

from fincafe.database.errors import (
    FarmErrorKind,
    FarmNotProvisionedError,
    MigrationError,
    classify_farm_error,
    get_sqlstate,
    is_duplicate_database_error,
    is_not_provisioned_error,
)
from fincafe.database.tenant_migrations import MigrationResult


class InvalidCatalogNameError(Exception):
    """Stand-in for asyncpg.exceptions.InvalidCatalogNameError."""


class UndefinedTableError(Exception):
    """Stand-in for asyncpg.exceptions.UndefinedTableError."""


class DuplicateDatabaseError(Exception):
    """Stand-in for asyncpg.exceptions.DuplicateDatabaseError."""


def driver_error(message: str, sqlstate: str | None = None, cls: type = Exception) -> Exception:
    error = cls(message)
    if sqlstate is not None:
        error.sqlstate = sqlstate
    return error


def wrapped(orig: Exception, wrapper: type = ProgrammingError) -> DBAPIError:
    return wrapper("SELECT * FROM roles", {}, orig)


class TestClassifyFarmError:
    """Tests for classify_farm_error."""

    def test_missing_database_sqlstate_is_not_provisioned(self):
        error = wrapped(driver_error('database "customer_x" does not exist', "3D000"))
        assert classify_farm_error(error) is FarmErrorKind.NOT_PROVISIONED

    def test_missing_table_sqlstate_is_not_provisioned(self):
        error = wrapped(driver_error('relation "roles" does not exist', "42P01"))
        assert classify_farm_error(error) is FarmErrorKind.NOT_PROVISIONED

    def test_pgcode_attribute_is_read(self):
        orig = Exception("boom")
        orig.pgcode = "42P01"
        assert classify_farm_error(wrapped(orig)) is FarmErrorKind.NOT_PROVISIONED

    def test_structured_code_wins_over_message_text(self):
        # Undefined column also says "does not exist" but is a real bug
        error = wrapped(driver_error('column "nmae" does not exist', "42703"))
        assert classify_farm_error(error) is FarmErrorKind.UNKNOWN

    def test_authentication_failure_is_unknown(self):
        error = wrapped(
            driver_error('password authentication failed for user "postgres"', "28P01"),
            OperationalError,
        )
        assert classify_farm_error(error) is FarmErrorKind.UNKNOWN

    def test_driver_class_name_without_sqlstate(self):
        error = wrapped(UndefinedTableError("missing relation"))
        assert classify_farm_error(error) is FarmErrorKind.NOT_PROVISIONED

        error = wrapped(InvalidCatalogNameError("missing database"), OperationalError)
        assert classify_farm_error(error) is FarmErrorKind.NOT_PROVISIONED

    def test_sqlite_missing_table_text(self):
        error = wrapped(Exception("no such table: roles"), OperationalError)
        assert classify_farm_error(error) is FarmErrorKind.NOT_PROVISIONED

    def test_unrelated_error_is_unknown(self):
        error = wrapped(Exception("connection refused"), OperationalError)
        assert classify_farm_error(error) is FarmErrorKind.UNKNOWN
        assert classify_farm_error(ValueError("bad input")) is FarmErrorKind.UNKNOWN

    def test_cause_chain_is_followed(self):
        inner = wrapped(driver_error("missing", "3D000"))
        try:
            try:
                raise inner
            except DBAPIError as e:
                raise RuntimeError("query failed") from e
        except RuntimeError as outer:
            assert classify_farm_error(outer) is FarmErrorKind.NOT_PROVISIONED

    def test_farm_not_provisioned_error(self):
        error = FarmNotProvisionedError("customer_demo_farm")
        assert classify_farm_error(error) is FarmErrorKind.NOT_PROVISIONED
        assert is_not_provisioned_error(error)
        assert error.database_name == "customer_demo_farm"
        assert "customer_demo_farm" in str(error)

    def test_get_sqlstate_returns_none_without_code(self):
        assert get_sqlstate(ValueError("nothing here")) is None


class TestIsDuplicateDatabaseError:
    """Tests for is_duplicate_database_error."""

    def test_duplicate_database_sqlstate(self):
        error = wrapped(driver_error('database "customer_x" already exists', "42P04"))
        assert is_duplicate_database_error(error)

    def test_other_sqlstate_is_not_duplicate(self):
        error = wrapped(driver_error("permission denied to create database", "42501"))
        assert not is_duplicate_database_error(error)

    def test_duplicate_class_name(self):
        assert is_duplicate_database_error(wrapped(DuplicateDatabaseError("exists")))

    def test_message_fallback(self):
        error = wrapped(Exception('database "customer_x" already exists'))
        assert is_duplicate_database_error(error)
        assert not is_duplicate_database_error(wrapped(Exception("disk full")))


class TestMigrationError:
    """Tests for MigrationError diagnostics."""

    def test_diagnostics_from_result(self):
        result = MigrationResult(
            database_name="customer_demo_farm",
            returncode=1,
            stdout="INFO  [alembic] Will assume transactional DDL.",
            stderr="sqlalchemy.exc.ProgrammingError: relation already exists",
            duration_seconds=0.5,
        )
        error = MigrationError("customer_demo_farm", "Migrations failed", result)

        assert error.result is result
        assert error.diagnostics.startswith("sqlalchemy.exc.ProgrammingError")
        assert "transactional DDL" in error.diagnostics

    def test_diagnostics_without_result(self):
        error = MigrationError("customer_demo_farm", "Could not start migration tool 'alembic'")
        assert error.result is None
        assert error.diagnostics == "Could not start migration tool 'alembic'"

    def test_empty_output_falls_back_to_status(self):
        result = MigrationResult("customer_demo_farm", 2, "", "  ", 0.1)
        assert result.diagnostics == "migration tool exited with status 2"
        assert not result.succeeded

    def test_zero_status_succeeded(self):
        assert MigrationResult("customer_demo_farm", 0, "", "", 0.1).succeeded
