from sqlalchemy import Column, String, Text, DateTime, Integer, JSON
from sqlalchemy.sql import func
from app.core.database import Base

class SearchResultsCache(Base):
    __tablename__ = "search_results_cache"

    cache_key = Column(String(512), primary_key=True)
    query = Column(String(255), nullable=False, index=True)
    results = Column(JSON, nullable=False)
    suggestions = Column(JSON, nullable=False, default=list)
    result_count = Column(Integer, nullable=False, default=0)
    cursor = Column(Text, nullable=True)
    hit_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
