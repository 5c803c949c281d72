"""
ValidatorAgent: safety gate for model-generated SQL.

This module performs rule-based validation on untrusted SQL:
- Lexical hardening (ASCII only, no comments)
- Single statement, SELECT-only, forbidden keywords and functions
- No system catalog access, no UNION
- Table whitelist (sqlparse token tree, subqueries included)
- Mandatory tenant predicate on every table of every SELECT scope
- Row limit enforcement (append default / clamp to maximum)

NO database access and NO LLM calls - pure text analysis, safe to run on
fully untrusted input.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable

import sqlparse
from sqlparse.sql import Function, Identifier, IdentifierList, Parenthesis, Statement, Where
from sqlparse.tokens import DML, Comment, Keyword, Number, String

from storechat.agents.base import BaseAgent
from storechat.models import (
    Err,
    ErrorKind,
    Ok,
    Result,
    ValidationResult,
    ValidatorAgentInput,
)

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000
DEFAULT_ALLOWED_TABLES = ("orders", "order_items", "products", "customers", "categories", "coupons")

FORBIDDEN_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "CREATE",
    "TRUNCATE",
    "GRANT",
    "REVOKE",
    "EXEC",
    "EXECUTE",
    "COPY",
    "SET",
    "RESET",
    "CALL",
    "RETURNING",
)

DANGEROUS_FUNCTIONS = (
    "pg_read_file",
    "pg_read_binary_file",
    "pg_write_file",
    "pg_ls_dir",
    "pg_stat_file",
    "pg_sleep",
    "pg_terminate_backend",
    "pg_cancel_backend",
    "pg_reload_conf",
    "pg_rotate_logfile",
    "set_config",
    "dblink",
    "dblink_connect",
    "dblink_exec",
    "lo_import",
    "lo_export",
    "lo_get",
    "lo_put",
    "query_to_xml",
    "query_to_json",
)

_FORBIDDEN_KEYWORD_PATTERNS = [
    (kw, re.compile(rf"\b{kw}\b", re.IGNORECASE)) for kw in FORBIDDEN_KEYWORDS
]
_DANGEROUS_FUNCTION_PATTERNS = [
    (fn, re.compile(rf"\b{fn}\b", re.IGNORECASE)) for fn in DANGEROUS_FUNCTIONS
]
_CATALOG_PATTERN = re.compile(r"\b(information_schema|pg_[a-z0-9_]*)", re.IGNORECASE)

# Always-true disjunctions that neutralise a tenant filter
_ALWAYS_TRUE_PATTERNS = [
    re.compile(r"\bOR\s+1\s*=\s*1\b", re.IGNORECASE),
    re.compile(r"\bOR\s+'([^']*)'\s*=\s*'\1'", re.IGNORECASE),
    re.compile(r"\bOR\s+TRUE\b", re.IGNORECASE),
]

_NON_ASCII = re.compile(r"[^\x20-\x7E\t\n\r]")
_TRAILING_SEMICOLON = re.compile(r";\s*$")
_STARTS_WITH_SELECT = re.compile(r"^SELECT\b", re.IGNORECASE)
_STARTS_WITH_WITH = re.compile(r"^WITH\b", re.IGNORECASE)
_SELECT_INTO = re.compile(r"\bSELECT\b[\s\S]+\bINTO\b", re.IGNORECASE)
_UNION = re.compile(r"\bUNION\b", re.IGNORECASE)
_CONDITION_TOKENS = re.compile(r"\(|\)|\b(?:AND|OR|BETWEEN)\b", re.IGNORECASE)
_ANY_LIMIT = re.compile(r"\bLIMIT\b", re.IGNORECASE)

# An ON condition of these joins restricts the joined table's rows
_FILTERING_JOINS = frozenset({"JOIN", "INNER JOIN", "LEFT JOIN", "LEFT OUTER JOIN"})
_CLAUSE_KEYWORDS = frozenset(
    {
        "GROUP BY",
        "ORDER BY",
        "HAVING",
        "LIMIT",
        "OFFSET",
        "WINDOW",
        "FETCH",
        "FOR",
        "UNION",
        "UNION ALL",
        "EXCEPT",
        "INTERSECT",
    }
)


@dataclass
class TableRef:
    """A table (or other row source) named after FROM/JOIN."""

    name: str
    schema: str | None = None
    alias: str | None = None

    @property
    def display(self) -> str:
        return f"{self.schema}.{self.name}" if self.schema else self.name

    @property
    def label(self) -> str:
        """Name the rest of the scope refers to this source by."""
        return self.alias or self.name


@dataclass
class _Scope:
    """
    One SELECT scope (statement or subquery) and what it reads.

    ``join_conditions`` pairs each ON condition with the label of the table
    it filters, or ``None`` when the join keeps unmatched rows of that table.
    """

    is_root: bool
    tables: list[TableRef] = field(default_factory=list)
    where_texts: list[str] = field(default_factory=list)
    join_conditions: list[tuple[str | None, str]] = field(default_factory=list)


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def _is_subquery(paren: Parenthesis) -> bool:
    for token in paren.tokens[1:]:
        if token.is_whitespace:
            continue
        return token.ttype is DML and token.normalized == "SELECT"
    return False


def _keyword(token) -> str | None:
    if token.ttype not in Keyword:
        return None
    return " ".join(token.normalized.upper().split())


def _introduces_table(token) -> bool:
    keyword = _keyword(token)
    return keyword is not None and (keyword == "FROM" or keyword.endswith("JOIN"))


def _closing_paren(text: str) -> int:
    depth = 0
    for index, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1


def _strip_parens(text: str) -> str:
    text = text.strip()
    while text.startswith("(") and _closing_paren(text) == len(text) - 1:
        text = text[1:-1].strip()
    return text


def _split_conjuncts(text: str) -> tuple[list[str], bool]:
    """
    Split a condition on AND at parenthesis depth 0.

    The AND of ``x BETWEEN a AND b`` does not split. Returns the parts and
    whether an OR appears at depth 0, in which case no part holds on its own.
    """
    parts: list[str] = []
    depth = 0
    start = 0
    in_between = False
    has_or = False
    for match in _CONDITION_TOKENS.finditer(text):
        word = match.group().upper()
        if word == "(":
            depth += 1
        elif word == ")":
            depth -= 1
        elif depth > 0:
            continue
        elif word == "OR":
            has_or = True
        elif word == "BETWEEN":
            in_between = True
        elif in_between:
            in_between = False
        else:
            parts.append(text[start : match.start()])
            start = match.end()
    parts.append(text[start:])
    return parts, has_or


def _conjuncts(text: str) -> list[str]:
    """Every condition the whole of ``text`` requires to hold, normalised."""
    text = _strip_parens(text)
    parts, has_or = _split_conjuncts(text)
    if has_or:
        return []
    if len(parts) == 1:
        return [" ".join(text.split())]
    return [conjunct for part in parts for conjunct in _conjuncts(part)]


def _has_top_level_or(text: str) -> bool:
    return _split_conjuncts(_strip_parens(text))[1]


def _equality_sides(conjunct: str) -> tuple[str, str] | None:
    left, sep, right = conjunct.partition("=")
    if not sep or "=" in right or left.endswith(("<", ">", "!")):
        return None
    return left.strip(), right.strip()


class SQLValidator:
    """
    Pure SQL validator.

    Attributes:
        allowed_tables: Tables generated SQL may read from
        tenant_column: Column that must be bound to the tenant placeholder
        default_limit: LIMIT appended when the query has none
        max_limit: Upper bound a LIMIT is clamped to
    """

    def __init__(
        self,
        allowed_tables: Iterable[str] = DEFAULT_ALLOWED_TABLES,
        tenant_column: str = "store_id",
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ):
        if default_limit > max_limit:
            raise ValueError("default_limit must not exceed max_limit")
        self.allowed_tables = frozenset(t.lower() for t in allowed_tables)
        self.tenant_column = tenant_column
        self.default_limit = default_limit
        self.max_limit = max_limit

    def validate(self, sql: str, tenant_placeholder_index: int = 1) -> ValidationResult:
        """
        Validate candidate SQL and return the sanitized, limit-bounded text.

        Every violated rule is reported, not just the first one.

        Args:
            sql: Untrusted SQL text
            tenant_placeholder_index: Placeholder number bound to the tenant id

        Returns:
            ValidationResult with validity, sanitized SQL and violations
        """
        if not sql or not sql.strip():
            return ValidationResult(valid=False, sql="", errors=["SQL query is empty"])

        normalized = sql.strip()
        errors: list[str] = []

        errors.extend(self._check_lexical(normalized))

        # A single trailing semicolon is common in model output
        normalized = _TRAILING_SEMICOLON.sub("", normalized).rstrip()
        statements = [s for s in sqlparse.parse(normalized) if s.value.strip()]

        errors.extend(self._check_single_statement(normalized, statements))
        errors.extend(self._check_verbs(normalized))
        errors.extend(self._check_catalog_access(normalized))
        if _UNION.search(normalized):
            errors.append("UNION queries are not allowed")

        scopes = self._collect_scopes(statements)
        errors.extend(self._check_tables(scopes))
        errors.extend(self._check_tenant_filter(normalized, scopes, tenant_placeholder_index))

        sanitized = self._enforce_limit(normalized, statements)
        errors = _dedupe(errors)

        return ValidationResult(valid=not errors, sql=sanitized, errors=errors)

    # ------------------------------------------------------------------
    # Lexical and keyword rules
    # ------------------------------------------------------------------

    def _check_lexical(self, sql: str) -> list[str]:
        errors = []
        if _NON_ASCII.search(sql):
            errors.append("SQL must contain only ASCII characters")
        if "--" in sql or "/*" in sql:
            errors.append("SQL comments are not allowed")
        return errors

    def _check_single_statement(self, sql: str, statements: list[Statement]) -> list[str]:
        if ";" in sql or len(statements) > 1:
            return ["Multi-statement SQL is not allowed"]
        return []

    def _check_verbs(self, sql: str) -> list[str]:
        errors = []
        if not _STARTS_WITH_SELECT.search(sql):
            errors.append("Only SELECT queries are allowed")
        if _STARTS_WITH_WITH.search(sql):
            errors.append("CTE (WITH) queries are not allowed")
        if _SELECT_INTO.search(sql):
            errors.append("SELECT INTO is not allowed")
        for keyword, pattern in _FORBIDDEN_KEYWORD_PATTERNS:
            if pattern.search(sql):
                errors.append(f"Forbidden keyword detected: {keyword}")
        for name, pattern in _DANGEROUS_FUNCTION_PATTERNS:
            if pattern.search(sql):
                errors.append(f"Dangerous function detected: {name}")
        return errors

    def _check_catalog_access(self, sql: str) -> list[str]:
        names = _dedupe(match.lower() for match in _CATALOG_PATTERN.findall(sql))
        return [f"System catalog access is not allowed: {name}" for name in names]

    # ------------------------------------------------------------------
    # Structural rules (sqlparse token tree)
    # ------------------------------------------------------------------

    def _collect_scopes(self, statements: list[Statement]) -> list[_Scope]:
        scopes: list[_Scope] = []
        for statement in statements:
            root = _Scope(is_root=True)
            scopes.append(root)
            self._walk(statement.tokens, root, scopes)
        return scopes

    def _walk(self, tokens, scope: _Scope | None, scopes: list[_Scope]) -> None:
        """
        Walk a token list, recording table sources for ``scope``.

        Only direct children of a scope container can introduce tables;
        nested groups are walked with no scope, to find subqueries only.
        """
        expecting_source = False
        join_kind = None
        joined: TableRef | None = None
        on_label: str | None = None
        on_parts: list[str] | None = None

        for token in tokens:
            if token.ttype in Comment:
                continue
            if token.is_whitespace:
                if on_parts is not None:
                    on_parts.append(" ")
                continue

            if on_parts is not None and (
                _introduces_table(token)
                or isinstance(token, Where)
                or _keyword(token) in _CLAUSE_KEYWORDS
            ):
                scope.join_conditions.append((on_label, "".join(on_parts)))
                on_parts = None

            if scope is not None and _introduces_table(token):
                expecting_source = True
                join_kind = _keyword(token)
                continue

            if expecting_source:
                if _keyword(token) in ("LATERAL", "ONLY"):
                    continue
                expecting_source = False
                recorded = len(scope.tables)
                self._record_source(token, scope, scopes)
                added = scope.tables[recorded:]
                joined = added[0] if len(added) == 1 and join_kind in _FILTERING_JOINS else None
                continue

            if scope is not None and _keyword(token) == "ON":
                on_label = joined.label if joined is not None else None
                on_parts = []
                continue

            if on_parts is not None:
                on_parts.append(self._condition_text(token))

            if isinstance(token, Where):
                if scope is not None:
                    scope.where_texts.append(
                        "".join(self._condition_text(t) for t in token.tokens[1:])
                    )
                self._walk(token.tokens, None, scopes)
            elif isinstance(token, Parenthesis) and _is_subquery(token):
                self._walk_subquery(token, scopes)
            elif token.is_group:
                self._walk(token.tokens, None, scopes)

        if on_parts is not None:
            scope.join_conditions.append((on_label, "".join(on_parts)))

    def _walk_subquery(self, paren: Parenthesis, scopes: list[_Scope]) -> None:
        scope = _Scope(is_root=False)
        scopes.append(scope)
        self._walk(paren.tokens, scope, scopes)

    def _record_source(self, token, scope: _Scope, scopes: list[_Scope]) -> None:
        if isinstance(token, IdentifierList):
            for item in token.get_identifiers():
                self._record_source(item, scope, scopes)
            return

        if isinstance(token, Parenthesis):
            self._walk_subquery(token, scopes)
            return

        if isinstance(token, Identifier):
            derived = next((t for t in token.tokens if isinstance(t, Parenthesis)), None)
            if derived is not None:
                self._walk_subquery(derived, scopes)
                return
            name = token.get_real_name() or token.value
            alias = token.get_alias()
            scope.tables.append(
                TableRef(
                    name=name.lower(),
                    schema=token.get_parent_name(),
                    alias=alias.lower() if alias else None,
                )
            )
            return

        if isinstance(token, Function):
            # Set-returning functions are never an allowed source
            scope.tables.append(TableRef(name=(token.get_name() or token.value).lower()))
            return

        scope.tables.append(TableRef(name=token.value.lower()))

    def _condition_text(self, token) -> str:
        """
        Flatten a condition token to text.

        Subqueries collapse to an opaque ``(?)`` and string literals to
        ``''``, so neither can contribute a tenant predicate.
        """
        if isinstance(token, Parenthesis) and _is_subquery(token):
            return " (?) "
        if token.ttype in String:
            return " '' "
        if token.is_group:
            return "".join(self._condition_text(t) for t in token.tokens)
        return token.value

    def _check_tables(self, scopes: list[_Scope]) -> list[str]:
        refs = [ref for scope in scopes for ref in scope.tables]
        if not refs:
            return ["Query must read from at least one allowed table"]

        errors = []
        for ref in refs:
            schema_ok = ref.schema is None or ref.schema.lower() == "public"
            if not schema_ok or ref.name not in self.allowed_tables:
                errors.append(f"Table not allowed: {ref.display}")
        return errors

    def _unfiltered_tables(self, scope: _Scope, placeholder_index: int) -> list[str]:
        """
        Labels of the scope's tables that no conjunct binds to the tenant.

        A table is filtered by ``label.column = $n`` in WHERE or in its own
        ON clause (unqualified only when the scope reads one table), or by
        ``label.column = other.column`` where ``other`` is filtered.
        """
        column = re.compile(
            rf"(?:([A-Za-z_]\w*)\s*\.\s*)?{re.escape(self.tenant_column)}", re.IGNORECASE
        )
        placeholder = re.compile(rf"\${placeholder_index}(?:\s*::\s*\w+)?")
        single = scope.tables[0].label if len(scope.tables) == 1 else None

        filtered: set[str] = set()
        links: list[tuple[str, str]] = []
        bound = False

        conditions = [(None, text) for text in scope.where_texts]
        conditions += [(label, text) for label, text in scope.join_conditions if label]
        for joined, text in conditions:
            for conjunct in _conjuncts(text):
                sides = _equality_sides(conjunct)
                if sides is None:
                    continue
                for column_side, other_side in (sides, sides[::-1]):
                    match = column.fullmatch(column_side)
                    if match is None:
                        continue
                    qualifier = match.group(1).lower() if match.group(1) else None
                    if placeholder.fullmatch(other_side):
                        bound = True
                        target = qualifier or single
                        if target and joined in (None, target):
                            filtered.add(target)
                        continue
                    other = column.fullmatch(other_side)
                    if qualifier and other and other.group(1) and joined in (None, qualifier):
                        links.append((qualifier, other.group(1).lower()))

        changed = True
        while changed:
            changed = False
            for label, source in links:
                if source in filtered and label not in filtered:
                    filtered.add(label)
                    changed = True

        if not scope.tables:
            return [] if bound else ["query"]
        return [ref.label for ref in scope.tables if ref.label not in filtered]

    def _check_tenant_filter(
        self, sql: str, scopes: list[_Scope], placeholder_index: int
    ) -> list[str]:
        target = f"{self.tenant_column} = ${placeholder_index}"
        errors = []

        for pattern in _ALWAYS_TRUE_PATTERNS:
            if pattern.search(sql):
                errors.append("Always-true OR conditions are not allowed")
                break

        for scope in scopes:
            if not scope.is_root and not scope.tables:
                continue
            missing = self._unfiltered_tables(scope, placeholder_index)
            if not missing:
                continue
            if len(missing) < len(scope.tables):
                errors.append(
                    f"Every table must be filtered by {target} on its own alias: "
                    f"{', '.join(missing)}"
                )
            elif any(_has_top_level_or(text) for text in scope.where_texts):
                errors.append(
                    f"Tenant filter {target} must not be combined with OR "
                    "at the top level of a WHERE clause"
                )
            elif scope.is_root:
                errors.append(f"Query must filter by {target} for tenant isolation")
            else:
                errors.append(f"Every subquery must filter by {target} for tenant isolation")
        return errors

    # ------------------------------------------------------------------
    # Row limit
    # ------------------------------------------------------------------

    def _enforce_limit(self, sql: str, statements: list[Statement]) -> str:
        """Append the default LIMIT or clamp a top-level LIMIT to the maximum."""
        if len(statements) != 1:
            if _ANY_LIMIT.search(sql):
                return sql
            return f"{sql} LIMIT {self.default_limit}"

        tokens = list(statements[0].tokens)
        limit_index = next(
            (
                i
                for i, token in enumerate(tokens)
                if token.ttype in Keyword and token.normalized == "LIMIT"
            ),
            None,
        )
        if limit_index is None:
            return f"{sql} LIMIT {self.default_limit}"

        value_index = next(
            (i for i in range(limit_index + 1, len(tokens)) if not tokens[i].is_whitespace),
            None,
        )
        if value_index is None:
            return f"{sql} {self.max_limit}"

        value = tokens[value_index]
        if value.ttype in Number.Integer and int(value.value) <= self.max_limit:
            return sql

        parts = [token.value for token in tokens]
        parts[value_index] = str(self.max_limit)
        return "".join(parts).strip()


def validate_sql(
    sql: str,
    tenant_placeholder_index: int = 1,
    *,
    allowed_tables: Iterable[str] = DEFAULT_ALLOWED_TABLES,
    tenant_column: str = "store_id",
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> ValidationResult:
    """Validate SQL with a one-off SQLValidator (see SQLValidator.validate)."""
    validator = SQLValidator(
        allowed_tables=allowed_tables,
        tenant_column=tenant_column,
        default_limit=default_limit,
        max_limit=max_limit,
    )
    return validator.validate(sql, tenant_placeholder_index)


class ValidatorAgent(BaseAgent):
    """
    Pipeline stage wrapping SQLValidator.

    Rejections become ``Err(SAFETY)``; the violation list is logged but the
    user only ever sees the generic safety message.
    """

    def __init__(
        self,
        validator: SQLValidator | None = None,
        logger: logging.Logger | None = None,
    ):
        super().__init__(name="ValidatorAgent", logger=logger)
        self.validator = validator or SQLValidator()

    async def execute(self, input: ValidatorAgentInput) -> Result[ValidationResult]:
        candidate_sql = input.candidate.sql
        validation = self.validator.validate(candidate_sql, input.tenant_placeholder_index)

        if not validation.valid:
            self.logger.warning(
                f"[{self.name}] SQL validation failed",
                extra={
                    "tenant_id": input.tenant_id,
                    "violations": validation.errors,
                    "sql_preview": candidate_sql[:200],
                },
            )
            return Err(
                kind=ErrorKind.SAFETY,
                detail="; ".join(validation.errors),
                context={"violations": validation.errors},
            )

        self.logger.info(
            f"[{self.name}] Query validated",
            extra={"tenant_id": input.tenant_id, "sql_length": len(validation.sql)},
        )
        return Ok(validation)
