from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime

from quizgame.database import Base


class StoredValue(Base):
    """One namespaced key of the persisted key space.

    Per-user fields live under ``zsb_v2_<user_id>_<field>``; the user registry
    lives under its own global key. Values are stored as raw text exactly as
    they appear in export bundles.
    """
    __tablename__ = "stored_values"

    key = Column(String, primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
