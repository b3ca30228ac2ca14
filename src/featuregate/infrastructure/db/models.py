import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import declarative_base, relationship

Base: Any = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


class FeatureFlagModel(Base):
    __tablename__ = "feature_flags"
    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String, nullable=False, unique=True)
    description = Column(String, nullable=False, default="")
    enabled = Column(Boolean, nullable=False, default=True)
    percentage = Column(Integer, nullable=False, default=100)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    rules = relationship(
        "FeatureFlagRuleModel",
        back_populates="feature_flag",
        order_by="FeatureFlagRuleModel.created_at",
        lazy="selectin",
    )


class FeatureFlagRuleModel(Base):
    __tablename__ = "feature_flag_rules"
    id = Column(String(32), primary_key=True, default=_new_id)
    feature_flag_id = Column(String(32), ForeignKey("feature_flags.id"), nullable=False)
    attribute = Column(String, nullable=False)
    operator = Column(String, nullable=False)
    value = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    feature_flag = relationship("FeatureFlagModel", back_populates="rules")

    __table_args__ = (Index("idx_feature_flag_rules_flag_id", "feature_flag_id"),)
