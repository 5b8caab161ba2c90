"""Compile list filters into a single parameterized SQL query.

The list endpoint accepts a sparse set of optional audience filters.  This
module turns them into one SQL statement over the three targeting tables::

    advertisement            AS a
    advertisement_condition  AS ac   (joined when any audience filter is set)
    condition_country        AS cc   (joined when a country filter is set)

Design notes
------------
- Query text and arguments are built in the same pass by
  :class:`_QueryBuilder`.  Each call to ``bind()`` appends one value and
  returns the matching ``:arg_<n>`` placeholder, so placeholder order and the
  argument list can never drift apart.
- Every audience predicate is evaluated against the *same* joined condition
  row.  An advertisement therefore matches only when a single one of its
  conditions satisfies all supplied filters; filters are not satisfied
  independently by different conditions.
- Conditions with ``unlimited_country`` have no ``condition_country`` rows.
  The default inner join hides them from country-filtered queries.  Setting
  ``match_unlimited_country`` switches to an outer join that also accepts
  them.
- The active window is evaluated against the database clock
  (``CURRENT_TIMESTAMP``) and is exclusive at both ends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import sqlalchemy as sa

from ad_targeting.targeting.encoder import Gender, platform_mask

#: Gender code a condition must *not* carry to match a gender filter.
_EXCLUDED_GENDER: dict[Gender, str] = {
    Gender.MALE: Gender.FEMALE.value,
    Gender.FEMALE: Gender.MALE.value,
}


@dataclass(frozen=True)
class ListFilter:
    """Normalized list-request filters.

    Attributes:
        offset: Zero-based number of rows to skip.
        limit: Maximum number of rows to return (1-100).
        age: Audience age, or ``None`` for no age filter.
        gender: ``"M"`` / ``"F"``, or ``None`` for no gender filter.
        country: ISO 3166-1 alpha-2 code, or ``None``.
        platform: Platform name, or ``None``.
        match_unlimited_country: Let conditions without a country restriction
            satisfy a country filter.
    """

    offset: int = 0
    limit: int = 5
    age: int | None = None
    gender: str | None = None
    country: str | None = None
    platform: str | None = None
    match_unlimited_country: bool = False

    @property
    def targets_audience(self) -> bool:
        return any(
            value is not None
            for value in (self.age, self.gender, self.country, self.platform)
        )


@dataclass(frozen=True)
class CompiledQuery:
    """SQL text with ``:arg_<n>`` placeholders and its ordered arguments."""

    sql: str
    args: list[Any] = field(default_factory=list)

    @property
    def params(self) -> dict[str, Any]:
        """Bind parameters keyed by placeholder name."""
        return {_placeholder_name(i): value for i, value in enumerate(self.args)}

    def statement(self) -> sa.TextualSelect:
        """Return an executable text clause with typed result columns."""
        return (
            sa.text(self.sql)
            .bindparams(**self.params)
            .columns(
                sa.column("id", sa.Integer),
                sa.column("title", sa.String),
                sa.column("end_at", sa.DateTime(timezone=True)),
            )
        )


def _placeholder_name(index: int) -> str:
    return f"arg_{index}"


class _QueryBuilder:
    """Accumulates SQL fragments and their bind values side by side."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._args: list[Any] = []

    def bind(self, value: Any) -> str:
        placeholder = f":{_placeholder_name(len(self._args))}"
        self._args.append(value)
        return placeholder

    def add(self, fragment: str) -> None:
        self._parts.append(fragment)

    def build(self) -> CompiledQuery:
        return CompiledQuery(sql="\n".join(self._parts), args=list(self._args))


def compile_list_query(filters: ListFilter) -> CompiledQuery:
    """Compile *filters* into a query listing active, matching advertisements.

    Predicates are appended in a fixed order (age, gender, country,
    platform), followed by ``ORDER BY`` end time and the ``LIMIT`` /
    ``OFFSET`` arguments, which are always the last two arguments.

    Args:
        filters: Normalized filters.  ``platform`` must be a known platform
            name when set.

    Returns:
        The compiled query.

    Raises:
        TargetingEncodingError: If ``filters.platform`` is not a known
            platform name.
        ValueError: If ``filters.gender`` is not ``"M"`` or ``"F"``.
    """
    qb = _QueryBuilder()
    joined = filters.targets_audience

    select = "SELECT DISTINCT" if joined else "SELECT"
    qb.add(f"{select} a.id, a.title, a.end_at FROM advertisement AS a")

    if joined:
        qb.add("INNER JOIN advertisement_condition AS ac ON a.id = ac.advertisement_id")

    if filters.country is not None:
        join = "LEFT OUTER JOIN" if filters.match_unlimited_country else "INNER JOIN"
        qb.add(f"{join} condition_country AS cc ON ac.id = cc.condition_id")

    qb.add("WHERE a.start_at < CURRENT_TIMESTAMP AND CURRENT_TIMESTAMP < a.end_at")

    if filters.age is not None:
        qb.add(f"AND {qb.bind(filters.age)} BETWEEN ac.age_start AND ac.age_end")

    if filters.gender is not None:
        excluded = _EXCLUDED_GENDER[Gender(filters.gender)]
        qb.add(f"AND ac.gender <> {qb.bind(excluded)}")

    if filters.country is not None:
        country = qb.bind(filters.country)
        if filters.match_unlimited_country:
            qb.add(f"AND (cc.country_code = {country} OR ac.unlimited_country = TRUE)")
        else:
            qb.add(f"AND cc.country_code = {country}")

    if filters.platform is not None:
        mask = platform_mask(filters.platform)
        qb.add(f"AND (ac.platform & {qb.bind(mask)}) = {qb.bind(mask)}")

    qb.add("ORDER BY a.end_at ASC, a.id ASC")
    qb.add(f"LIMIT {qb.bind(filters.limit)} OFFSET {qb.bind(filters.offset)}")

    return qb.build()
