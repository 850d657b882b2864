"""Sample template data for previews and test sends."""

from datetime import timedelta
from typing import Any, Dict, Optional

from mailqueue.config.models import SiteConfig
from mailqueue.domain.models import (
    Address,
    Customer,
    Order,
    OrderItem,
    PaymentDetails,
    TrackingInfo,
)
from mailqueue.utils.timestamps import utc_now

from .models import UnknownTemplateError
from .payloads import build_link, build_order_context, build_user_payload
from .templates import TEMPLATES


def sample_customer(email: str) -> Customer:
    return Customer(id="user_123", name="Test User", email=email)


def sample_order() -> Order:
    return Order(
        id="64f1c2a9e4b0c1d2e3f4a5b6",
        order_number="ORD-12345",
        items=[
            OrderItem(name="Wireless Headphones", quantity=1, price=99.99, product_id="prod_1"),
            OrderItem(name="USB-C Cable", quantity=2, price=14.99, product_id="prod_2"),
        ],
        items_price=129.97,
        tax_price=10.40,
        shipping_price=5.99,
        total_price=146.36,
        payment_method="Credit Card",
        shipping_address=Address(
            address="123 Main St", city="Springfield", postal_code="12345", country="USA"
        ),
    )


def sample_tracking() -> TrackingInfo:
    return TrackingInfo(
        number="1Z999AA10123456784",
        carrier="UPS",
        url="https://www.ups.com/track?tracknum=1Z999AA10123456784",
        estimated_delivery=utc_now() + timedelta(days=3),
        status="In transit",
    )


def build_sample_data(template_name: str, email: str, site: Optional[SiteConfig] = None) -> Dict[str, Any]:
    """
    Build realistic template data for a registered template.

    Args:
        template_name: Registered template name
        email: Recipient address placed in the user block
        site: Site settings used for links

    Raises:
        UnknownTemplateError: If the template is not registered
    """
    if template_name not in TEMPLATES:
        raise UnknownTemplateError(template_name)

    site = site or SiteConfig()
    user = sample_customer(email)
    order = sample_order()

    if template_name == "PASSWORD_RESET":
        return {
            "user": build_user_payload(user),
            "reset_url": build_link(site.url, "/reset-password?token=sample-reset-token"),
        }
    if template_name == "ACCOUNT_VERIFICATION":
        return {
            "user": build_user_payload(user),
            "verification_url": build_link(site.url, "/verify-email?token=sample-verify-token"),
        }
    if template_name == "PAYMENT_FAILED":
        return {
            **build_order_context(order, user),
            "error": {"message": "Your card was declined."},
            "retry_url": build_link(site.url, f"/orders/{order.id}/payment"),
        }
    if template_name == "PAYMENT_CONFIRMATION":
        payment = PaymentDetails(
            id="pi_sample_123", amount=order.total_price, method="card", paid_at=utc_now()
        )
        return build_order_context(order, user, payment=payment)
    if template_name in ("ORDER_SHIPPED", "SHIPPING_UPDATE"):
        return build_order_context(order, user, tracking=sample_tracking())
    return build_order_context(order, user)
