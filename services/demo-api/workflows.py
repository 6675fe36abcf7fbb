"""Simulated backend steps for the demo endpoints, each under its own span."""

import asyncio
import time
from typing import List, Optional

from opentelemetry import trace

from shared.models import Order, OrderItem, Payment, User
from shared.records import utc_timestamp
from shared.service_logger import ServiceLogger
from shared.telemetry import create_span

# Simulated latencies, in seconds
DB_QUERY_DELAY = 0.1
VALIDATION_DELAY = 0.05
PAYMENT_DELAY = 0.2
DB_WRITE_DELAY = 0.1

KNOWN_USERS = {
    "123": User(id="123", name="John Doe", email="john@example.com"),
}


class OrderValidationError(ValueError):
    """Raised when an order cannot be accepted."""


def _now_ms() -> int:
    return int(time.time() * 1000)


async def simulate_database_call(
    tracer: trace.Tracer, logger: ServiceLogger, user_id: str
) -> Optional[User]:
    with create_span(tracer, "database-query", {
        "db.system": "postgresql",
        "db.operation": "SELECT",
        "db.sql.table": "users",
    }):
        logger.debug("Querying database for user", userId=user_id)
        await asyncio.sleep(DB_QUERY_DELAY)
        return KNOWN_USERS.get(user_id)


async def validate_order(
    tracer: trace.Tracer, logger: ServiceLogger, user_id: Optional[str], items: Optional[List[OrderItem]]
) -> None:
    with create_span(tracer, "validate-order"):
        logger.debug("Validating order", userId=user_id, itemCount=len(items) if items else None)
        if not items:
            raise OrderValidationError("Order must contain at least one item")
        await asyncio.sleep(VALIDATION_DELAY)


async def process_payment(
    tracer: trace.Tracer, logger: ServiceLogger, user_id: Optional[str], items: List[OrderItem]
) -> Payment:
    with create_span(tracer, "process-payment") as span:
        total = sum(item.price or 0 for item in items)
        span.set_attribute("payment.amount", total)

        logger.info("Processing payment", userId=user_id, amount=total)
        await asyncio.sleep(PAYMENT_DELAY)

        return Payment(transaction_id=f"txn_{_now_ms()}", amount=total, status="completed")


async def create_order_record(
    tracer: trace.Tracer,
    logger: ServiceLogger,
    user_id: Optional[str],
    items: List[OrderItem],
    payment: Payment,
) -> Order:
    with create_span(tracer, "create-order-record"):
        logger.debug("Creating order record in database")
        await asyncio.sleep(DB_WRITE_DELAY)

        return Order(
            id=f"order_{_now_ms()}",
            user_id=user_id,
            items=items,
            payment=payment,
            created_at=utc_timestamp(),
        )
