import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, Numeric, String

from plantnet.database import Base


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus:
    PENDING = "Pending"
    DELIVERED = "Delivered"


class Plant(Base):
    __tablename__ = "plants"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    category = Column(String)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    image = Column(String)
    description = Column(String)
    seller = Column(JSON, nullable=False, default=dict)     # {"email", "name", "image"}
    seller_email = Column(String, index=True)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=new_id)
    plant_id = Column(String(32), index=True, nullable=False)
    # Checkout session id until payment is confirmed, then the PaymentIntent id
    transaction_id = Column(String, index=True, nullable=False)
    customer = Column(String, index=True, nullable=False)
    seller = Column(JSON, nullable=False, default=dict)
    seller_email = Column(String, index=True)
    name = Column(String)
    category = Column(String)
    image = Column(String)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # unit price
    status = Column(String, nullable=False, default=OrderStatus.PENDING)
    address = Column(String)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(32), primary_key=True, default=new_id)
    session_id = Column(String, unique=True, nullable=False)
    payment_intent_id = Column(String, unique=True, index=True, nullable=False)
    customer = Column(String, index=True, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String, nullable=False)
    status = Column(String, nullable=False)        # gateway payment_status, e.g. "paid"
    items = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String)
    image = Column(String)
    role = Column(String, nullable=False, default="customer")  # customer | seller | admin
    address = Column(String)
    status = Column(String)                                     # e.g. "Requested" for seller upgrade
    timestamp = Column(DateTime(timezone=True), default=utcnow)
