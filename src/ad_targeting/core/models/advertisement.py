"""Advertisement ORM models.

Covers the three-level targeting graph:
- Advertisement: a titled creative with an active window.
- AdvertisementCondition: one audience rule set attached to an advertisement.
  An advertisement is eligible for a list request when any single one of
  its conditions matches every filter of that request.
- ConditionCountry: one allowed country of a condition.  Conditions flagged
  ``unlimited_country`` have no rows here.

Rows are only ever inserted (see ``storage.graph_writer``); there is no
update or delete path.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ad_targeting.core.models.base import Base


class Advertisement(Base):
    """An advertisement, eligible for listing while ``start_at < now < end_at``."""

    __tablename__ = "advertisement"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    start_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    end_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    conditions: Mapped[list["AdvertisementCondition"]] = relationship(
        "AdvertisementCondition",
        back_populates="advertisement",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Advertisement id={self.id} title={self.title!r}>"


class AdvertisementCondition(Base):
    """Audience rule set of an advertisement.

    ``gender`` holds ``"M"``, ``"F"`` or ``"MF"``; ``platform`` holds a
    bitmask (android=1, ios=2, web=4).  Both are produced by
    :mod:`ad_targeting.targeting.encoder`.
    """

    __tablename__ = "advertisement_condition"
    __table_args__ = (
        sa.CheckConstraint("age_start BETWEEN 0 AND 100", name="age_start_range"),
        sa.CheckConstraint("age_end BETWEEN 0 AND 100", name="age_end_range"),
        sa.CheckConstraint("gender IN ('M', 'F', 'MF')", name="gender_code"),
        sa.CheckConstraint("platform BETWEEN 0 AND 7", name="platform_mask"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    advertisement_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("advertisement.id"),
        nullable=False,
        index=True,
    )
    age_start: Mapped[Optional[int]] = mapped_column(sa.SmallInteger, nullable=True)
    age_end: Mapped[Optional[int]] = mapped_column(sa.SmallInteger, nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(sa.String(2), nullable=True)
    unlimited_country: Mapped[bool] = mapped_column(sa.Boolean, nullable=False)
    platform: Mapped[int] = mapped_column(sa.SmallInteger, nullable=False)

    advertisement: Mapped["Advertisement"] = relationship(
        "Advertisement",
        back_populates="conditions",
        lazy="raise",
    )
    countries: Mapped[list["ConditionCountry"]] = relationship(
        "ConditionCountry",
        back_populates="condition",
        lazy="raise",
    )


class ConditionCountry(Base):
    """One allowed country of a condition, unique per (condition, country)."""

    __tablename__ = "condition_country"

    condition_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("advertisement_condition.id"),
        primary_key=True,
    )
    country_code: Mapped[str] = mapped_column(sa.String(2), primary_key=True)

    condition: Mapped["AdvertisementCondition"] = relationship(
        "AdvertisementCondition",
        back_populates="countries",
        lazy="raise",
    )
