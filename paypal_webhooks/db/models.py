from datetime import datetime
from datetime import timezone as tz

from sqlalchemy import Column, DateTime, Index, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now():
    return datetime.now(tz.utc)


class ProcessedEvent(Base):
    __tablename__ = "processed_events"
    id = Column(Integer, primary_key=True)
    event_id = Column(String, unique=True, nullable=False)
    event_type = Column(String, nullable=False)
    processed_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (Index("ix_processed_events_processed_at", "processed_at"),)

    def __repr__(self):
        return f"<ProcessedEvent {self.event_id} {self.event_type}>"
