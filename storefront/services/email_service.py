# storefront/services/email_service.py
from storefront.core.celery_app import celery_app
from storefront.core.config import settings
from storefront.core.logging import order_logger
from storefront.models.order import OrderShop


def _enqueue_email(to_email: str, subject: str, body: str) -> None:
    task = celery_app.tasks.get("email.send_plain")
    if task is None:
        raise RuntimeError("Email task not registered")
    task.apply_async((to_email, subject, body), queue=settings.EMAIL_QUEUE, ignore_result=True)


def send_password_reset_email(to_email: str, reset_url: str) -> None:
    subject = f"{settings.PROJECT_NAME} - Reset your password"
    body = (
        "Hello,\n\n"
        f"Use the following link to choose a new password:\n{reset_url}\n\n"
        f"The link expires in {settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES} minutes. "
        "If you did not request it, ignore this message."
    )
    _enqueue_email(to_email, subject, body)


def _order_body(order: OrderShop) -> str:
    lines = [
        f"  {item.quantity} x {item.product_name} ({item.product_sku}) - {item.subtotal:.2f}"
        for item in order.items
    ]
    return (
        "Hello,\n\n"
        f"Thank you for your order {order.id}.\n\n"
        + "\n".join(lines)
        + f"\n\nTotal: {order.total_amount:.2f}\n\n"
        f"Thanks for shopping at {settings.PROJECT_NAME}."
    )


def send_order_confirmation(order: OrderShop, to_email: str) -> bool:
    """Best-effort: failures are logged on the order channel and never raised."""
    try:
        _enqueue_email(to_email, f"{settings.PROJECT_NAME} - Order confirmation", _order_body(order))
    except Exception:
        order_logger().exception(
            "Order confirmation email failed",
            extra={"order_id": str(order.id), "email": to_email},
        )
        return False
    order_logger().info("Order confirmation email queued", extra={"order_id": str(order.id), "email": to_email})
    return True
