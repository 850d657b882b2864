"""Domain models for the mail queue."""

from .models import (
    Address,
    Customer,
    DeliveryLogRecord,
    JobStatus,
    MailJob,
    Order,
    OrderItem,
    PaymentDetails,
    QueueStats,
    TrackingInfo,
    display_order_number,
)

__all__ = [
    "JobStatus",
    "MailJob",
    "QueueStats",
    "DeliveryLogRecord",
    "Customer",
    "Address",
    "OrderItem",
    "Order",
    "TrackingInfo",
    "PaymentDetails",
    "display_order_number",
]
