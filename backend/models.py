from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, JSON, ForeignKey
from database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    full_name = Column(String)
    is_active = Column(Boolean, default=True)
    # Out-of-band payment handles used to build deep links
    venmo_username = Column(String, nullable=True)
    cashapp_tag = Column(String, nullable=True)
    paypal_username = Column(String, nullable=True)
    points_balance = Column(Integer, default=0)
    points_lifetime = Column(Integer, default=0)

class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    token_hash = Column(String, unique=True, index=True)
    expires_at = Column(DateTime)
    revoked = Column(Boolean, default=False)

class Tab(Base):
    """One bill-split session. items and people are stored whole, as one document."""
    __tablename__ = "tabs"

    id = Column(String, primary_key=True, index=True)
    restaurant_name = Column(String, nullable=True)
    status = Column(String, default="setup")  # setup, open, locked, completed
    items = Column(JSON, default=list)
    people = Column(JSON, default=list)
    subtotal = Column(Float, default=0)
    tax = Column(Float, default=0)
    tip = Column(Float, default=0)
    tip_percentage = Column(Float, default=20)
    split_tax_tip_method = Column(String, default="equal")  # equal, proportional
    created_by_id = Column(Integer, ForeignKey("users.id"), index=True)
    receipt_image_path = Column(String, nullable=True)
    points_awarded = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

class PointsHistory(Base):
    __tablename__ = "points_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    tab_id = Column(String, index=True)
    tab_name = Column(String)
    subtotal = Column(Float)
    points_earned = Column(Integer)
    earned_at = Column(String)  # ISO timestamp
