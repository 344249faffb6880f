"""
Dialect adapters for the two supported database families.

Queries are written once in a canonical form, with ``$1, $2, ...`` value
placeholders and bare identifiers passed through ``bracket_identifier``.
Each adapter turns that into text and parameters its Python driver accepts:

    PostgreSQL (psycopg2, pyformat):  $1       -> %(param1)s   dict binding
    SQL Server (mssql-python, qmark): $1       -> @param1      -> ?   tuple binding

``BoundQuery.bindings`` keeps the logical plan (``$N`` or ``@paramN`` with its
value, in placeholder order) so both dialects can be compared and logged the
same way.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

from scanner_shared.config import DatabaseKind
from scanner_shared.exceptions import ConfigurationError
from scanner_shared.validators import validate_identifier

PLACEHOLDER_RE = re.compile(r'\$(\d+)')


@dataclass(frozen=True)
class BoundQuery:
    """A query ready for ``cursor.execute(sql, parameters)``."""
    sql: str
    parameters: Any
    bindings: Tuple[Tuple[str, Any], ...]


def _check_identifier(name) -> str:
    if name is None or (isinstance(name, str) and not name.strip()):
        raise ConfigurationError("Table or column name is not configured")
    if not validate_identifier(name):
        raise ConfigurationError(
            f"Invalid table or column name {name!r}: only letters, digits and '_' are allowed"
        )
    return name


def _placeholder_numbers(sql_template: str, params: Sequence[Any]):
    """Validate that placeholders and values line up; return occurrence order."""
    numbers = [int(n) for n in PLACEHOLDER_RE.findall(sql_template)]
    for n in numbers:
        if n < 1 or n > len(params):
            raise ConfigurationError(
                f"Placeholder ${n} has no matching parameter ({len(params)} given)"
            )
    unused = set(range(1, len(params) + 1)) - set(numbers)
    if unused:
        raise ConfigurationError(
            f"Parameters without a placeholder: {', '.join('$%d' % n for n in sorted(unused))}"
        )
    return numbers


class DialectAdapter:
    """Strategy interface; one instance per database family."""

    kind: DatabaseKind
    name: str
    probe_query: str

    def bracket_identifier(self, name: str) -> str:
        raise NotImplementedError

    def quote_alias(self, alias: str) -> str:
        raise NotImplementedError

    def result_key(self, alias: str) -> str:
        """Key under which an unquoted column or alias comes back in a row."""
        raise NotImplementedError

    def translate(self, sql_template: str, params: Sequence[Any] = ()) -> BoundQuery:
        raise NotImplementedError

    def __repr__(self):
        return f"<{type(self).__name__}>"


class PostgresDialect(DialectAdapter):
    kind = DatabaseKind.POSTGRES
    name = 'PostgreSQL'
    probe_query = 'SELECT NOW() AS server_time'

    def bracket_identifier(self, name: str) -> str:
        # Unquoted identifiers fold to lower case, which result_key mirrors
        return _check_identifier(name)

    def quote_alias(self, alias: str) -> str:
        return f'"{_check_identifier(alias)}"'

    def result_key(self, alias: str) -> str:
        return _check_identifier(alias).lower()

    def translate(self, sql_template: str, params: Sequence[Any] = ()) -> BoundQuery:
        params = tuple(params or ())
        _placeholder_numbers(sql_template, params)
        # psycopg2 treats a bare % as a format marker once parameters are passed
        sql = sql_template.replace('%', '%%')
        sql = PLACEHOLDER_RE.sub(lambda m: f"%(param{m.group(1)})s", sql)
        parameters: Dict[str, Any] = {f"param{i}": value for i, value in enumerate(params, 1)}
        bindings = tuple((f"${i}", value) for i, value in enumerate(params, 1))
        return BoundQuery(sql=sql, parameters=parameters, bindings=bindings)


class SqlServerDialect(DialectAdapter):
    kind = DatabaseKind.SQL_SERVER
    name = 'SQL Server'
    probe_query = 'SELECT GETDATE() AS currentTime'

    def bracket_identifier(self, name: str) -> str:
        if isinstance(name, str) and len(name) > 2 and name.startswith('[') and name.endswith(']'):
            # Already quoted once; never wrap twice
            return f"[{_check_identifier(name[1:-1])}]"
        return f"[{_check_identifier(name)}]"

    def quote_alias(self, alias: str) -> str:
        return f"[{_check_identifier(alias)}]"

    def result_key(self, alias: str) -> str:
        return _check_identifier(alias)

    def named_sql(self, sql_template: str) -> str:
        """Canonical text with ``$N`` rewritten to ``@paramN``."""
        return PLACEHOLDER_RE.sub(lambda m: f"@param{m.group(1)}", sql_template)

    def translate(self, sql_template: str, params: Sequence[Any] = ()) -> BoundQuery:
        params = tuple(params or ())
        _placeholder_numbers(sql_template, params)
        named = self.named_sql(sql_template)
        # mssql-python only binds positionally, so @paramN becomes one ? per occurrence
        order = [int(n) for n in re.findall(r'@param(\d+)\b', named)]
        sql = re.sub(r'@param\d+\b', '?', named)
        parameters = tuple(params[n - 1] for n in order)
        bindings = tuple((f"@param{i}", value) for i, value in enumerate(params, 1))
        return BoundQuery(sql=sql, parameters=parameters, bindings=bindings)


_ADAPTERS = {
    DatabaseKind.POSTGRES: PostgresDialect(),
    DatabaseKind.SQL_SERVER: SqlServerDialect(),
}


def get_dialect(kind) -> DialectAdapter:
    """Return the adapter for a ``DatabaseKind`` or one of its string aliases."""
    return _ADAPTERS[DatabaseKind.parse(kind)]
