"""Core domain models for mail jobs, delivery log records and notification payloads.

This module defines the data structures used throughout the service:
- JobStatus / MailJob: the unit of work owned by the mail queue
- QueueStats: snapshot of queue counters
- DeliveryLogRecord: persisted mirror of a job's lifecycle
- Customer, Order, TrackingInfo, PaymentDetails: validated notification payloads
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, EmailStr, Field, field_validator

from mailqueue.utils.timestamps import ensure_utc, utc_now


class JobStatus(str, Enum):
    """Lifecycle states of a mail job."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    RETRYING = "retrying"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


def new_job_id() -> str:
    """Generate a fresh job identifier."""
    return str(uuid.uuid4())


@dataclass
class MailJob:
    """A queued email.

    Created by MailQueue.add() and mutated only by the queue's dispatch loop.
    The id never changes and keys exactly one delivery log record.

    Attributes:
        id: Unique job identifier
        to: Recipient address or list of addresses
        subject: Final rendered subject line
        template: Underlying template identifier (e.g. "order-confirmation")
        data: Template data payload
        html: Rendered HTML body handed to the transport
        priority: Higher values are dispatched first
        max_retries: Retry budget; the job fails after max_retries + 1 attempts
        attempts: Number of send attempts started so far
        status: Current lifecycle state
        error: Last transport error message
        result: Transport acknowledgement of the successful send
        metadata: Free-form caller metadata
    """

    to: Union[str, List[str]]
    subject: str
    template: str
    data: Dict[str, Any] = field(default_factory=dict)
    html: Optional[str] = None
    priority: int = 0
    max_retries: int = 3
    id: str = field(default_factory=new_job_id)
    attempts: int = 0
    status: JobStatus = JobStatus.QUEUED
    error: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    next_attempt_at: Optional[datetime] = None

    @property
    def recipients(self) -> List[str]:
        """Recipients as a list."""
        if isinstance(self.to, str):
            return [self.to]
        return list(self.to)

    @property
    def recipient_display(self) -> str:
        """Recipients joined for headers and log records."""
        return ", ".join(self.recipients)

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_ready(self, now: Optional[datetime] = None) -> bool:
        """Check whether the job's retry backoff (if any) has elapsed."""
        if self.next_attempt_at is None:
            return True
        return self.next_attempt_at <= (now or utc_now())


@dataclass
class QueueStats:
    """Running counters plus live queue state.

    Attributes:
        total: Jobs ever added
        success: Jobs completed
        failed: Jobs that exhausted their retry budget
        retries: Retry re-queues performed
        queued: Jobs currently pending (not yet dispatched)
        in_progress: Jobs currently being sent
        is_paused: Whether dispatch is paused
    """

    total: int = 0
    success: int = 0
    failed: int = 0
    retries: int = 0
    queued: int = 0
    in_progress: int = 0
    is_paused: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DeliveryLogRecord(BaseModel):
    """Persisted snapshot of one mail job's lifecycle."""

    job_id: str = Field(..., description="Queue job identifier (unique)")
    to: str = Field(..., description="Recipient address(es), comma separated")
    subject: str = Field(..., description="Subject at enqueue time")
    template: str = Field(..., description="Template identifier")
    status: JobStatus = Field(..., description="Last observed job status")
    priority: int = Field(0, description="Priority at enqueue time")
    attempts: int = Field(0, ge=0, description="Send attempts so far")
    max_retries: int = Field(3, ge=0, description="Retry budget at enqueue time")
    error: Optional[str] = Field(None, description="Last error message")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Caller metadata")
    sent_at: Optional[datetime] = Field(None, description="Last non-terminal activity (UTC)")
    completed_at: Optional[datetime] = Field(None, description="Successful delivery (UTC)")
    created_at: datetime = Field(..., description="First observation of the job (UTC)")
    updated_at: datetime = Field(..., description="Last update (UTC)")

    @field_validator("sent_at", "completed_at", "created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure timestamps are timezone-aware UTC."""
        return ensure_utc(v)


# Notification payloads


class Customer(BaseModel):
    """Recipient of a notification."""

    id: Optional[str] = None
    name: Optional[str] = None
    email: EmailStr

    @property
    def display_name(self) -> str:
        return self.name or self.email.split("@")[0]


class Address(BaseModel):
    """Postal address on an order."""

    address: str
    city: str
    postal_code: Optional[str] = None
    country: Optional[str] = None

    def one_line(self) -> str:
        parts = [self.address, self.city, self.postal_code, self.country]
        return ", ".join(part for part in parts if part)


class OrderItem(BaseModel):
    """A line item on an order."""

    name: str
    quantity: int = Field(1, ge=1)
    price: float = Field(..., ge=0)
    product_id: Optional[str] = None

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


class Order(BaseModel):
    """The subset of an order that notifications render."""

    id: str = Field(..., min_length=1, description="Internal order identifier")
    order_number: Optional[str] = Field(None, description="Customer-facing order number")
    items: List[OrderItem] = Field(default_factory=list)
    items_price: Optional[float] = None
    tax_price: float = 0.0
    shipping_price: float = 0.0
    total_price: float = 0.0
    currency: str = "USD"
    payment_method: str = "Credit Card"
    status: str = "processing"
    created_at: datetime = Field(default_factory=utc_now)
    shipping_address: Optional[Address] = None

    @field_validator("created_at")
    @classmethod
    def ensure_created_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def display_number(self) -> str:
        """Order number, or the upper-cased tail of the internal id."""
        return display_order_number(self.order_number, self.id)

    @property
    def subtotal(self) -> float:
        if self.items_price is not None:
            return round(self.items_price, 2)
        return round(self.total_price - self.tax_price - self.shipping_price, 2)


class TrackingInfo(BaseModel):
    """Carrier tracking details for shipping notifications."""

    number: str = Field(..., min_length=1)
    carrier: str = Field(..., min_length=1)
    url: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    status: Optional[str] = None


class PaymentDetails(BaseModel):
    """Payment provider result for payment confirmations."""

    id: str
    status: str = "succeeded"
    amount: Optional[float] = None
    method: Optional[str] = None
    paid_at: Optional[datetime] = None


def display_order_number(order_number: Optional[str], order_id: Optional[str]) -> str:
    """Customer-facing order reference.

    Falls back to the last six characters of the internal identifier,
    upper-cased, when no order number has been assigned.
    """
    if order_number:
        return str(order_number)
    if order_id:
        return str(order_id)[-6:].upper()
    return ""
