from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, DateTime, String

from ..records import utcnow

Base = declarative_base()

class TimestampedModel:
    id = Column(String(64), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
