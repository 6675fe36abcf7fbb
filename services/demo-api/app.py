"""Demo API - shows logs, traces and metrics flowing to SigNoz together."""

import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from opentelemetry.trace import Status, StatusCode

from shared.models import CreateOrderRequest
from shared.settings import Settings
from shared.telemetry import Telemetry, create_span, mark_span_error, setup_telemetry
from workflows import (
    create_order_record,
    process_payment,
    simulate_database_call,
    validate_order,
)


def create_app(settings: Settings, **telemetry_options) -> FastAPI:
    """Build the FastAPI app with telemetry wired in.

    ``telemetry_options`` are passed through to ``setup_telemetry`` (for
    example in-memory exporters in tests).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Server started on port {settings.port}")
        yield
        telemetry.shutdown()

    app = FastAPI(title="SigNoz Logging Demo", lifespan=lifespan)

    telemetry: Telemetry = setup_telemetry(settings, app=app, **telemetry_options)
    tracer, meter, logger = telemetry.tracer, telemetry.meter, telemetry.logger
    app.state.telemetry = telemetry

    request_counter = meter.create_counter("demo_requests_total")
    orders_counter = meter.create_counter("demo_orders_created_total")
    payment_histogram = meter.create_histogram("demo_payment_amount")

    # --------------- Health endpoints ---------------
    @app.get("/health")
    async def health():
        """Liveness check."""
        logger.info("Health check requested")
        request_counter.add(1, {"route": "/health", "status": "success"})
        return {"status": "healthy", "service": settings.service_name}

    @app.get("/")
    async def root():
        logger.info("Root endpoint accessed")
        request_counter.add(1, {"route": "/", "status": "success"})
        return {"message": "Welcome to OpenTelemetry + structured logging example!"}

    @app.get("/users/{user_id}")
    async def get_user(user_id: str, request: Request):
        """Look up a user; only user 123 exists."""
        with create_span(tracer, "get-user-details", {
            "user.id": user_id,
            "http.method": request.method,
            "http.url": str(request.url),
        }) as span:
            try:
                logger.info("Fetching user details", userId=user_id)
                logger.debug("Processing user request", step="validation")

                user = await simulate_database_call(tracer, logger, user_id)

                if user is None:
                    logger.warn("User not found", userId=user_id)
                    span.set_status(Status(StatusCode.ERROR, "User not found"))
                    request_counter.add(1, {"route": "/users", "status": "not_found"})
                    return JSONResponse(status_code=404, content={"error": "User not found"})

                logger.info("User retrieved successfully", userId=user_id, userName=user.name)
                request_counter.add(1, {"route": "/users", "status": "success"})
                return user.model_dump()

            except Exception as e:
                logger.error("Error fetching user", userId=user_id, error=str(e))
                mark_span_error(span, e)
                request_counter.add(1, {"route": "/users", "status": "error"})
                return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.post("/orders")
    async def create_order(order_request: CreateOrderRequest):
        """Validate, charge and persist an order, each step in a child span."""
        user_id = order_request.user_id
        items = order_request.items

        with create_span(tracer, "create-order", {
            "order.user_id": user_id or "",
            "order.item_count": len(items or []),
        }) as span:
            try:
                logger.info("Creating new order", userId=user_id,
                            itemCount=len(items) if items is not None else None)

                await validate_order(tracer, logger, user_id, items)
                payment = await process_payment(tracer, logger, user_id, items)
                order = await create_order_record(tracer, logger, user_id, items, payment)

                logger.info("Order created successfully", orderId=order.id, userId=user_id)
                orders_counter.add(1)
                payment_histogram.record(payment.amount)
                request_counter.add(1, {"route": "/orders", "status": "success"})
                return order.model_dump(by_alias=True)

            except Exception as e:
                logger.error("Order creation failed", error=str(e))
                mark_span_error(span, e)
                request_counter.add(1, {"route": "/orders", "status": "error"})
                return JSONResponse(status_code=500, content={"error": str(e)})

    # Error handlers
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.error(
            "Unhandled error",
            error=str(exc),
            stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            url=str(request.url),
            method=request.method,
        )
        return JSONResponse(status_code=500, content={"error": "Something went wrong!"})

    return app
