import atexit
import logging
from typing import Optional

from opentelemetry import trace, propagate
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

from catalog.core.config import settings
from catalog.config.database import engine

logger = logging.getLogger(__name__)

_tracer_provider: Optional[TracerProvider] = None


def get_global_tracer_provider() -> Optional[TracerProvider]:
    return _tracer_provider


def setup_telemetry() -> Optional[TracerProvider]:
    """
    OpenTelemetry 트레이싱 설정

    OTEL_ENABLED 가 꺼져 있으면 아무것도 하지 않는다. (이 경우 서비스 코드의 span 은 no-op)
    """
    global _tracer_provider

    if not settings.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled.", extra={"service_name": settings.OTEL_SERVICE_NAME})
        return None

    if _tracer_provider is not None:
        return _tracer_provider

    try:
        # 1. 리소스 설정
        resource = Resource.create({
            "service.name": settings.OTEL_SERVICE_NAME,
            "deployment.environment": settings.ENVIRONMENT,
        })

        # 2. 트레이싱 설정
        tracer_provider = TracerProvider(resource=resource)
        otlp_span_exporter = OTLPSpanExporter(endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT, insecure=True)
        tracer_provider.add_span_processor(BatchSpanProcessor(otlp_span_exporter))
        trace.set_tracer_provider(tracer_provider)

        # 3. W3C Trace Context 전파기
        propagate.set_global_textmap(TraceContextTextMapPropagator())

        # 4. SQLAlchemy 자동 계측
        SQLAlchemyInstrumentor().instrument(engine=engine, tracer_provider=tracer_provider)
        logger.info("SQLAlchemyInstrumentor applied.")

        atexit.register(tracer_provider.shutdown)
        _tracer_provider = tracer_provider

        logger.info(
            "OpenTelemetry setup completed.",
            extra={"service_name": settings.OTEL_SERVICE_NAME, "endpoint": settings.OTEL_EXPORTER_OTLP_ENDPOINT},
        )
        return tracer_provider
    except Exception as e:
        logger.error("Failed to setup OpenTelemetry.", extra={"service_name": settings.OTEL_SERVICE_NAME, "error": str(e)}, exc_info=True)
        raise


def instrument_fastapi_app(app):
    """FastAPI 앱을 OpenTelemetry로 계측"""
    tracer_provider = get_global_tracer_provider()
    if tracer_provider is None:
        logger.debug("TracerProvider not configured, skipping FastAPI instrumentation.")
        return

    FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider)
    logger.info("FastAPI application instrumented by OpenTelemetry.", extra={"service_name": settings.OTEL_SERVICE_NAME})
