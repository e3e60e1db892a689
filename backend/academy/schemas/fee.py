from datetime import date, datetime

from pydantic import BaseModel, Field

from academy.models.fee import BillingCycle, Currency, InvoiceStatus, PaymentMethod


class FeeStructureBase(BaseModel):
    course_id: str = Field(min_length=1, max_length=36)
    amount: float = Field(gt=0)
    currency: Currency
    billing_cycle: BillingCycle


class FeeStructureCreate(FeeStructureBase):
    pass


class FeeStructureUpdate(BaseModel):
    amount: float | None = Field(default=None, gt=0)
    currency: Currency | None = None
    billing_cycle: BillingCycle | None = None


class FeeStructureOut(FeeStructureBase):
    id: str
    course_name: str

    model_config = {"from_attributes": True}


class PaymentDetails(BaseModel):
    payment_method: PaymentMethod
    payment_date: date
    reference_number: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=2000)


class InvoiceOut(BaseModel):
    id: str
    student_id: str
    fee_structure_id: str
    course_name: str
    amount: float
    currency: Currency
    issue_date: date
    due_date: date
    billing_period: str
    status: InvoiceStatus
    payment_details: PaymentDetails | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class InvoiceGenerateRequest(BaseModel):
    issue_date: date | None = None


class InvoiceGenerateOut(BaseModel):
    created: int
    skipped: int
    invoices: list[InvoiceOut]
