
# Read models maintained by the projection builder outside this service.
# The search path only ever SELECTs from these tables.

from sqlalchemy import Column, String, Text, Integer, Float
from app.core.database import Base

class UserSearchProjection(Base):
    __tablename__ = "user_search_projection"

    user_id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    avatar = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    role = Column(String(50), nullable=True)
    follower_count = Column(Integer, nullable=False, default=0)
    campaign_count = Column(Integer, nullable=False, default=0)


class CampaignSearchProjection(Base):
    __tablename__ = "campaign_search_projection"

    campaign_id = Column(String(64), primary_key=True)
    slug = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False)
    summary = Column(Text, nullable=True)
    story_text = Column(Text, nullable=True)
    category_name = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    status = Column(String(32), nullable=False, index=True)
    visibility = Column(String(32), nullable=False, index=True)
    beneficiary_name = Column(String(255), nullable=True)


class OrganizationSearchProjection(Base):
    __tablename__ = "organization_search_projection"

    org_id = Column(String(64), primary_key=True)
    legal_name = Column(String(255), nullable=False)
    dba_name = Column(String(255), nullable=True)
    website = Column(String(500), nullable=True)
    country = Column(String(2), nullable=True)
    verification_status = Column(String(32), nullable=True)


class SearchSuggestionProjection(Base):
    __tablename__ = "search_suggestions_projection"

    id = Column(String(64), primary_key=True)
    suggestion = Column(String(255), nullable=False, index=True)
    relevance_score = Column(Float, nullable=False, default=0.0)
    usage_count = Column(Integer, nullable=False, default=0)
