"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hotels_api.database import Base


class Hotel(Base):
    """
    Hotel listing.
    Owns an ordered gallery of pictures; deleting a hotel deletes its pictures.
    """
    __tablename__ = "hotels"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    address1 = Column(String(500), nullable=False)
    address2 = Column(String(500), nullable=True)
    zipcode = Column(String(20), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    country = Column(String(100), nullable=False)
    lat = Column(Numeric(10, 7), nullable=False)
    lng = Column(Numeric(10, 7), nullable=False)
    description = Column(Text, nullable=False)
    max_capacity = Column(Integer, nullable=False)
    price_per_night = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    pictures = relationship(
        "HotelPicture",
        back_populates="hotel",
        order_by=lambda: [HotelPicture.position, HotelPicture.id],
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class HotelPicture(Base):
    """
    Picture in a hotel gallery.
    filepath is relative to the public storage root; position defines display order.
    """
    __tablename__ = "hotels_pictures"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False, index=True)
    filepath = Column(String(255), nullable=False)
    filesize = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    hotel = relationship("Hotel", back_populates="pictures")
