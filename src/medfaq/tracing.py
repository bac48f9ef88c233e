"""OpenTelemetry tracing helpers for the medication FAQ pipeline.

Spans are recorded for each retrieval call, each answer-composition call and
the end-to-end request that contains them. The retrieval span also records
which path produced the matches (`remote`, `local-vector` or `keyword`), which
makes fallbacks visible in the trace view.

Usage with an OTLP backend:

    from medfaq.tracing import configure_tracing, get_tracer, build_traced_faq_pipeline

    configure_tracing(endpoint="http://localhost:6006/v1/traces", service_name="medfaq")
    pipeline = build_traced_faq_pipeline(orchestrator, composer, get_tracer("medfaq"))
    response = pipeline("Can I take ibuprofen with warfarin?")

Without a backend, `configure_tracing()` prints spans to stdout.
"""
from __future__ import annotations

from typing import Callable

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)

from .pipeline import validate_query
from .qa import AnswerComposer
from .retrieval import RetrievalOrchestrator
from .schema import FAQResponse, Match

# OpenInference semantic-convention attribute names
ATTR_INPUT_VALUE = "input.value"
ATTR_OUTPUT_VALUE = "output.value"
ATTR_LLM_MODEL_NAME = "llm.model_name"
ATTR_RETRIEVAL_DOCUMENTS = "retrieval.documents"
ATTR_RETRIEVAL_SOURCE = "retrieval.source"

_provider: TracerProvider | None = None


def configure_tracing(
    endpoint: str | None = None,
    service_name: str = "medfaq",
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Create and register a global TracerProvider.

    Args:
        endpoint: OTLP HTTP endpoint URL. When *None* and no *exporter* is
            given, spans are printed via ``ConsoleSpanExporter``.
        service_name: Label identifying this application in the backend.
        exporter: Pre-built exporter (e.g. ``InMemorySpanExporter`` in tests).
            When provided, *endpoint* is ignored.

    Returns:
        The configured provider, also set as the global OTel provider.
    """
    global _provider

    resource = Resource(attributes={SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)

    if exporter is not None:
        chosen_exporter: SpanExporter = exporter
    elif endpoint is not None:
        try:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
                OTLPSpanExporter,
            )
        except ImportError as exc:  # pragma: no cover
            raise ImportError(
                "opentelemetry-exporter-otlp-proto-http is required to export "
                "traces to an OTLP endpoint.  Install it with:\n"
                "  pip install 'medfaq[otlp]'"
            ) from exc
        chosen_exporter = OTLPSpanExporter(endpoint=endpoint)
    else:
        chosen_exporter = ConsoleSpanExporter()

    provider.add_span_processor(SimpleSpanProcessor(chosen_exporter))
    trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer from the provider set by :func:`configure_tracing`.

    Falls back to the global (possibly no-op) provider when tracing has not
    been configured.
    """
    if _provider is not None:
        return _provider.get_tracer(name)
    return trace.get_tracer(name)


def _match_source(matches: list[Match]) -> str:
    return matches[0].source if matches else "none"


def traced_retrieval(
    retrieve: Callable[..., list[Match]],
    tracer: trace.Tracer,
) -> Callable[..., list[Match]]:
    """Wrap a retrieve callable so every call is recorded as a ``retrieval`` span.

    The span records the query, the number of matches, and the path that
    produced them. Exceptions mark the span as failed and are re-raised.
    """

    def _wrapped(query: str, **kwargs) -> list[Match]:
        with tracer.start_as_current_span("retrieval") as span:
            span.set_attribute(ATTR_INPUT_VALUE, query)
            try:
                matches = retrieve(query, **kwargs)
                span.set_attribute(ATTR_RETRIEVAL_DOCUMENTS, len(matches))
                span.set_attribute(ATTR_RETRIEVAL_SOURCE, _match_source(matches))
                span.set_status(trace.StatusCode.OK)
                return matches
            except Exception as exc:
                span.set_status(trace.StatusCode.ERROR, str(exc))
                span.record_exception(exc)
                raise

    return _wrapped


def traced_generation(
    compose: Callable[[str, list[Match]], str],
    tracer: trace.Tracer,
    model_name: str = "",
) -> Callable[[str, list[Match]], str]:
    """Wrap an answer-composition callable in a ``generation`` span.

    Records the query, the model name (when given) and the first 500
    characters of the answer.
    """

    def _wrapped(query: str, matches: list[Match]) -> str:
        with tracer.start_as_current_span("generation") as span:
            span.set_attribute(ATTR_INPUT_VALUE, query)
            if model_name:
                span.set_attribute(ATTR_LLM_MODEL_NAME, model_name)
            try:
                answer = compose(query, matches)
                span.set_attribute(ATTR_OUTPUT_VALUE, answer[:500])
                span.set_status(trace.StatusCode.OK)
                return answer
            except Exception as exc:
                span.set_status(trace.StatusCode.ERROR, str(exc))
                span.record_exception(exc)
                raise

    return _wrapped


def build_traced_faq_pipeline(
    orchestrator: RetrievalOrchestrator,
    composer: AnswerComposer,
    tracer: trace.Tracer,
    k: int = 3,
) -> Callable[[str], FAQResponse]:
    """Combine traced retrieval and composition under one ``faq-request`` span.

    Blank queries and `k < 1` raise ``ValueError`` before any span starts,
    matching :func:`medfaq.pipeline.answer_query`.

    Returns:
        A callable ``(query) -> FAQResponse``.
    """
    w_retrieve = traced_retrieval(orchestrator.retrieve, tracer)
    w_compose = traced_generation(composer.compose, tracer, model_name=composer.model)

    def _pipeline(query: str) -> FAQResponse:
        validate_query(query, k)
        with tracer.start_as_current_span("faq-request") as span:
            span.set_attribute(ATTR_INPUT_VALUE, query)
            matches = w_retrieve(query, k=k)
            answer = w_compose(query, matches)
            span.set_attribute(ATTR_OUTPUT_VALUE, answer[:500])
            return FAQResponse(answer=answer, matches=matches)

    return _pipeline
