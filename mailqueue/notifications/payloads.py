"""Payload builders for notification templates.

Turns validated domain models (Order, Customer, TrackingInfo, PaymentDetails)
into the plain dictionaries that email templates render. Every key a
template reads is always present, with None for absent optional values.
"""

from typing import Any, Dict, Optional

from mailqueue.domain.models import Customer, Order, PaymentDetails, TrackingInfo


def build_user_payload(user: Customer) -> Dict[str, Any]:
    """Build the ``user`` block for a template."""
    return {
        "id": user.id,
        "name": user.display_name,
        "email": user.email,
    }


def build_order_payload(order: Order) -> Dict[str, Any]:
    """Build the ``order`` block with display number, totals and line items.

    Args:
        order: Validated order

    Returns:
        Dictionary with order_number, items (including line_total), subtotal,
        price fields, currency and the shipping address (or None)
    """
    address = None
    if order.shipping_address is not None:
        address = {
            **order.shipping_address.model_dump(),
            "one_line": order.shipping_address.one_line(),
        }

    return {
        "id": order.id,
        "order_number": order.display_number,
        "items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "price": item.price,
                "line_total": item.line_total,
                "product_id": item.product_id,
            }
            for item in order.items
        ],
        "subtotal": order.subtotal,
        "tax_price": order.tax_price,
        "shipping_price": order.shipping_price,
        "total_price": order.total_price,
        "currency": order.currency,
        "payment_method": order.payment_method,
        "status": order.status,
        "created_at": order.created_at.isoformat(),
        "shipping_address": address,
    }


def build_tracking_payload(tracking: TrackingInfo) -> Dict[str, Any]:
    data = tracking.model_dump()
    if tracking.estimated_delivery is not None:
        data["estimated_delivery"] = tracking.estimated_delivery.isoformat()
    return data


def build_payment_payload(payment: PaymentDetails) -> Dict[str, Any]:
    data = payment.model_dump()
    if payment.paid_at is not None:
        data["paid_at"] = payment.paid_at.isoformat()
    return data


def build_order_context(
    order: Order,
    user: Customer,
    tracking: Optional[TrackingInfo] = None,
    payment: Optional[PaymentDetails] = None,
) -> Dict[str, Any]:
    """Build template data for the order-centric templates.

    Args:
        order: Validated order
        user: Recipient
        tracking: Tracking details for shipping templates
        payment: Payment details for payment confirmations

    Returns:
        Template data with ``order`` and ``user`` blocks, plus
        ``tracking_info`` / ``payment_details`` when given
    """
    context: Dict[str, Any] = {
        "order": build_order_payload(order),
        "user": build_user_payload(user),
    }
    if tracking is not None:
        context["tracking_info"] = build_tracking_payload(tracking)
    if payment is not None:
        context["payment_details"] = build_payment_payload(payment)
    return context


def build_link(base_url: str, path: str) -> str:
    """Join the site URL with an absolute path."""
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"
