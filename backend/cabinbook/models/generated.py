from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    false,
    func,
    text,
    true,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata

SHIFT_CHECK = "shift IN ('morning', 'afternoon', 'evening')"

# Statuses that occupy a slot; everything else frees it
ACTIVE_STATUS_SQL = "status IN ('pending', 'payment_pending', 'confirmed')"


class Locations(Base):
    __tablename__ = 'locations'

    id = Column(Integer, primary_key=True)
    owner_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    city = Column(Text)
    is_active = Column(Boolean, nullable=False, server_default=true())
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    cabins = relationship('Cabins', back_populates='location')


class Cabins(Base):
    __tablename__ = 'cabins'
    __table_args__ = (
        UniqueConstraint('location_id', 'name'),
        CheckConstraint('default_price > 0', name='ck_cabins_default_price_positive'),
    )

    id = Column(Integer, primary_key=True)
    location_id = Column(ForeignKey('locations.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text)
    default_price = Column(Float, nullable=False)
    morning_enabled = Column(Boolean, nullable=False, server_default=true())
    afternoon_enabled = Column(Boolean, nullable=False, server_default=true())
    evening_enabled = Column(Boolean, nullable=False, server_default=true())
    is_active = Column(Boolean, nullable=False, server_default=true())
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    location = relationship('Locations', back_populates='cabins')
    manual_overrides = relationship('ManualOverrides', back_populates='cabin')
    price_overrides = relationship('PriceOverrides', back_populates='cabin')
    bookings = relationship('Bookings', back_populates='cabin')


class ManualOverrides(Base):
    __tablename__ = 'manual_overrides'
    __table_args__ = (
        UniqueConstraint('cabin_id', 'date', 'shift'),
        CheckConstraint(SHIFT_CHECK, name='ck_manual_overrides_shift'),
    )

    id = Column(Integer, primary_key=True)
    cabin_id = Column(ForeignKey('cabins.id', ondelete='CASCADE'), nullable=False)
    date = Column(Date, nullable=False)
    shift = Column(Text, nullable=False)
    is_closed = Column(Boolean, nullable=False, server_default=false())
    updated_by = Column(Text)
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    cabin = relationship('Cabins', back_populates='manual_overrides')


class PriceOverrides(Base):
    __tablename__ = 'price_overrides'
    __table_args__ = (
        UniqueConstraint('cabin_id', 'date', 'shift'),
        CheckConstraint(SHIFT_CHECK, name='ck_price_overrides_shift'),
        CheckConstraint('price > 0', name='ck_price_overrides_price_positive'),
    )

    id = Column(Integer, primary_key=True)
    cabin_id = Column(ForeignKey('cabins.id', ondelete='CASCADE'), nullable=False)
    date = Column(Date, nullable=False)
    shift = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    updated_by = Column(Text)
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    cabin = relationship('Cabins', back_populates='price_overrides')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        CheckConstraint(SHIFT_CHECK, name='ck_bookings_shift'),
        CheckConstraint('price > 0', name='ck_bookings_price_positive'),
        CheckConstraint(
            "status IN ('pending', 'payment_pending', 'confirmed', 'cancelled')",
            name='ck_bookings_status',
        ),
        # At most one active booking per (cabin, date, shift)
        Index(
            'uq_bookings_active_slot',
            'cabin_id', 'date', 'shift',
            unique=True,
            sqlite_where=text(ACTIVE_STATUS_SQL),
            postgresql_where=text(ACTIVE_STATUS_SQL),
        ),
        Index('ix_bookings_professional_date', 'professional_id', 'date'),
    )

    id = Column(Integer, primary_key=True)
    cabin_id = Column(ForeignKey('cabins.id'), nullable=False)
    professional_id = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    shift = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    cancel_reason = Column(Text)
    cancelled_by = Column(Text)
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
    )

    cabin = relationship('Cabins', back_populates='bookings')
