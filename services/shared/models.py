"""Pydantic models for the demo service request/response payloads."""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class OrderItem(BaseModel):
    """Line item in an order request."""
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    price: float = 0.0


class CreateOrderRequest(BaseModel):
    """POST /orders payload."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, alias="userId")
    items: Optional[List[OrderItem]] = None


class User(BaseModel):
    id: str
    name: str
    email: str


class Payment(BaseModel):
    """Result of the simulated payment step."""
    model_config = ConfigDict(populate_by_name=True)

    transaction_id: str = Field(alias="transactionId")
    amount: float
    status: str


class Order(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: Optional[str] = Field(None, alias="userId")
    items: List[OrderItem]
    payment: Payment
    created_at: str = Field(alias="createdAt")
