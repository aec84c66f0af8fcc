from sqlalchemy import Column, String, Text, DateTime, Index
from shortlink_app.database.connection import Base


class URL(Base):
    """
    URL model for the relational store.

    One row per short link, keyed by code:
    - code is the primary key, so a racing duplicate insert fails
      with IntegrityError instead of overwriting
    - owner has a secondary index for per-user listings
    - rows are insert-only (no update/delete in this service)
    """
    __tablename__ = "urls"

    code = Column(String(20), primary_key=True)
    url = Column(Text, nullable=False)
    owner = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_urls_owner", "owner"),
    )
