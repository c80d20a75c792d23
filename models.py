from sqlalchemy import Column, String, DateTime, Integer
from db import Base
from datetime import datetime

class UrlMapping(Base):
    __tablename__ = "urls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    short_code = Column(String(16), unique=True, index=True, nullable=False)
    original_url = Column(String(2048), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    hits = Column(Integer, default=0, nullable=False)
