from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class PaymentStatus(str, Enum):
    PAID = "paid"
    UNPAID = "unpaid"


class SaleItemIn(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(..., gt=0)
    total: float = Field(..., ge=0)


class SaleCreate(BaseModel):
    business_id: int
    customer_id: int
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    items: List[SaleItemIn] = Field(..., min_length=1)


class SaleItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: float
    total: float

    class Config:
        from_attributes = True


class SaleResponse(BaseModel):
    id: int
    reference: str
    business_id: int
    customer_id: int
    customer: str
    payment_status: str
    total_amount: float
    items: List[SaleItemResponse]

    @classmethod
    def from_sale(cls, sale) -> "SaleResponse":
        return cls(
            id=sale.id,
            reference=sale.reference,
            business_id=sale.business_id,
            customer_id=sale.customer_id,
            customer=sale.customer.full_name if sale.customer else "",
            payment_status=sale.payment_status,
            total_amount=sale.total_amount,
            items=[SaleItemResponse.model_validate(item) for item in sale.items],
        )
