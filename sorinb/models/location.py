"""ORM model for device geolocation readings."""

from sqlalchemy import BigInteger, Column, DateTime, Float, ForeignKey, Integer, func

from sorinb.models.base import Base


class LocationReading(Base):
    """
    One position observation. Rows are append-only.

    user_id is NULL for readings from the anonymous /gps ingestion path.
    client_timestamp is the device clock in epoch milliseconds, as sent.
    """

    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    accuracy = Column(Float, nullable=True)
    altitude = Column(Float, nullable=True)
    altitude_accuracy = Column(Float, nullable=True)
    heading = Column(Float, nullable=True)
    speed = Column(Float, nullable=True)
    client_timestamp = Column(BigInteger, nullable=True)
    recorded_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
