from __future__ import annotations

from sqlalchemy import Column, Integer, String

from shoplog.database import Base


class KnownUser(Base):
    """
    Optional users source for deployments that keep a separate list of
    names instead of deriving them from the ledger.
    """

    __tablename__ = "known_users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=True)
