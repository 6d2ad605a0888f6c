"""
Farm database error taxonomy and failure classification.

Farm databases move through three observable states: absent, created but not
migrated, and ready. There is no cheap way to ask which state a database is in,
so callers find out by running a query and classifying the error it raises.

Taxonomy:
    - AlreadyExists: raised by CREATE DATABASE; expected and treated as success
      by the provisioner (see is_duplicate_database_error).
    - NotProvisioned: the farm database or one of its tables is missing. The
      fix is to initialize the farm, not to retry the query.
    - MigrationError: the migration tool exited with a non-zero status. Carries
      the captured tool output.
    - Anything else: propagated unchanged.

Classification order:
    1. PostgreSQL SQLSTATE found anywhere on the exception chain
       (3D000 invalid_catalog_name, 42P01 undefined_table).
    2. asyncpg exception class names for the same conditions.
    3. Substring match on the error text. This is a last resort for drivers
       that expose neither of the above (SQLite reports "no such table").

Example:
    ```python
    from fincafe.database.errors import FarmErrorKind, classify_farm_error

    try:
        await session.execute(select(Role))
    except SQLAlchemyError as e:
        if classify_farm_error(e) is FarmErrorKind.NOT_PROVISIONED:
            ...
    ```
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fincafe.database.tenant_migrations import MigrationResult

SQLSTATE_INVALID_CATALOG_NAME = "3D000"
SQLSTATE_UNDEFINED_TABLE = "42P01"
SQLSTATE_DUPLICATE_DATABASE = "42P04"

NOT_PROVISIONED_SQLSTATES = frozenset({SQLSTATE_INVALID_CATALOG_NAME, SQLSTATE_UNDEFINED_TABLE})
NOT_PROVISIONED_CLASS_NAMES = frozenset({"InvalidCatalogNameError", "UndefinedTableError"})
NOT_PROVISIONED_PATTERNS = (
    re.compile(r"\bdoes not exist\b", re.IGNORECASE),
    re.compile(r"\bno such table\b", re.IGNORECASE),
)

DUPLICATE_DATABASE_CLASS_NAMES = frozenset({"DuplicateDatabaseError"})
DUPLICATE_DATABASE_PATTERN = re.compile(r"\balready exists\b", re.IGNORECASE)


class FarmErrorKind(str, Enum):
    NOT_PROVISIONED = "not_provisioned"
    UNKNOWN = "unknown"


class FarmDatabaseError(Exception):
    """Base class for farm database lifecycle errors."""


class InvalidFarmIdentifierError(FarmDatabaseError, ValueError):
    """A farm code or database name is not safe to use as an identifier."""


class FarmNotProvisionedError(FarmDatabaseError):
    """
    The farm database (or a table inside it) does not exist yet.

    Attributes:
        database_name: Name of the farm database that was queried.
    """

    def __init__(self, database_name: str, message: str | None = None) -> None:
        self.database_name = database_name
        super().__init__(
            message
            or f"Farm database '{database_name}' is not initialized. "
            "Run the farm initialization first."
        )


class MigrationError(FarmDatabaseError):
    """
    The migration tool failed for a farm database.

    Attributes:
        database_name: Name of the farm database being migrated.
        result: The captured process result, or None when the tool could not
            be started at all.
    """

    def __init__(
        self,
        database_name: str,
        message: str,
        result: MigrationResult | None = None,
    ) -> None:
        self.database_name = database_name
        self.result = result
        super().__init__(message)

    @property
    def diagnostics(self) -> str:
        if self.result is None:
            return str(self)
        return self.result.diagnostics


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield exc, its DBAPI ``orig`` and every cause/context, each once."""
    seen: set[int] = set()
    pending: list[BaseException | None] = [exc]
    while pending:
        current = pending.pop(0)
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.append(getattr(current, "orig", None))
        pending.append(current.__cause__)
        pending.append(current.__context__)


def get_sqlstate(exc: BaseException) -> str | None:
    """Return the first SQLSTATE found on the exception chain, if any."""
    for current in _exception_chain(exc):
        for attribute in ("sqlstate", "pgcode"):
            code = getattr(current, attribute, None)
            if isinstance(code, str) and code:
                return code
    return None


def _class_names(exc: BaseException) -> set[str]:
    return {type(current).__name__ for current in _exception_chain(exc)}


def classify_farm_error(exc: BaseException) -> FarmErrorKind:
    """
    Classify an error raised by a farm-scoped query.

    Args:
        exc: Any exception, typically a sqlalchemy.exc.DBAPIError wrapping the
            driver error.

    Returns:
        FarmErrorKind.NOT_PROVISIONED when the database or table is missing,
        FarmErrorKind.UNKNOWN otherwise.
    """
    if isinstance(exc, FarmNotProvisionedError):
        return FarmErrorKind.NOT_PROVISIONED

    sqlstate = get_sqlstate(exc)
    if sqlstate is not None:
        if sqlstate in NOT_PROVISIONED_SQLSTATES:
            return FarmErrorKind.NOT_PROVISIONED
        return FarmErrorKind.UNKNOWN

    if _class_names(exc) & NOT_PROVISIONED_CLASS_NAMES:
        return FarmErrorKind.NOT_PROVISIONED

    # Last resort: driver text
    text = " ".join(str(current) for current in _exception_chain(exc))
    if any(pattern.search(text) for pattern in NOT_PROVISIONED_PATTERNS):
        return FarmErrorKind.NOT_PROVISIONED
    return FarmErrorKind.UNKNOWN


def is_not_provisioned_error(exc: BaseException) -> bool:
    return classify_farm_error(exc) is FarmErrorKind.NOT_PROVISIONED


def is_duplicate_database_error(exc: BaseException) -> bool:
    """True when exc reports that CREATE DATABASE hit an existing database."""
    sqlstate = get_sqlstate(exc)
    if sqlstate is not None:
        return sqlstate == SQLSTATE_DUPLICATE_DATABASE
    if _class_names(exc) & DUPLICATE_DATABASE_CLASS_NAMES:
        return True
    text = " ".join(str(current) for current in _exception_chain(exc))
    return bool(DUPLICATE_DATABASE_PATTERN.search(text))
