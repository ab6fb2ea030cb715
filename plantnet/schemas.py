from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Seller(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    image: Optional[str] = None


class PlantIn(BaseModel):
    name: str
    category: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=0)
    image: Optional[str] = None
    description: Optional[str] = None
    seller: Seller


class PlantUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    image: Optional[str] = None
    description: Optional[str] = None


class PlantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: Optional[str] = None
    price: float
    quantity: int
    image: Optional[str] = None
    description: Optional[str] = None
    seller: dict


class CartItem(BaseModel):
    plantId: str
    name: str
    image: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    seller: Seller


class Customer(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    address: Optional[str] = None


class CheckoutRequest(BaseModel):
    items: List[CartItem] = Field(..., min_length=1)
    customer: Customer


class CheckoutResponse(BaseModel):
    url: Optional[str] = None
    sessionId: str


class PaymentSuccessRequest(BaseModel):
    sessionId: str = Field(..., min_length=1)


class PaymentSuccessResponse(BaseModel):
    transactionId: str
    orderIds: List[str]
    alreadyProcessed: bool


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    plant_id: str
    transaction_id: str
    customer: str
    seller: dict
    name: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    quantity: int
    price: float
    status: str
    address: Optional[str] = None
    created_at: Optional[datetime] = None


class OrderStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    payment_intent_id: str
    customer: str
    amount: float
    currency: str
    status: str
    items: list
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserIn(BaseModel):
    name: Optional[str] = None
    image: Optional[str] = None
    address: Optional[str] = None
    status: Optional[str] = None


class UserUpdate(BaseModel):
    role: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    address: Optional[str] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    role: str
    address: Optional[str] = None
    status: Optional[str] = None
    timestamp: Optional[datetime] = None


class AdminStats(BaseModel):
    totalUsers: int
    totalPlants: int
    totalOrders: int
    revenue: float
