"""
Orchestration Domain - Structured extraction pipeline and progress channel.

This domain handles:
- Provider selection (schema-constrained streaming or chat completion)
- The extraction state machine
- Fragment aggregation
- Progress events and their ndjson wire format
"""

from .aggregator import FragmentAggregator
from .contracts import ChatJSONProvider, JSONProvider, StreamingJSONProvider
from .events import (
    NDJSON_MEDIA_TYPE,
    CompleteEvent,
    ErrorEvent,
    FragmentEvent,
    NDJSONDecoder,
    PhaseEvent,
    ProgressEvent,
    aiter_events,
    encode_event,
    parse_event,
)
from .models import (
    PipelineRun,
    PipelineStage,
    ProviderConfig,
    ProviderKind,
    ProviderOverrides,
    StageTransitionError,
)
from .pipeline import ExtractionPipeline, ProviderFactory
from .providers import ChatCompletionJSONProvider, GeminiJSONProvider, build_provider

__all__ = [
    # Contracts
    "StreamingJSONProvider",
    "ChatJSONProvider",
    "JSONProvider",
    # Models
    "ProviderKind",
    "ProviderConfig",
    "ProviderOverrides",
    "PipelineStage",
    "PipelineRun",
    "StageTransitionError",
    # Events
    "PhaseEvent",
    "FragmentEvent",
    "CompleteEvent",
    "ErrorEvent",
    "ProgressEvent",
    "NDJSON_MEDIA_TYPE",
    "encode_event",
    "parse_event",
    "NDJSONDecoder",
    "aiter_events",
    # Implementations
    "FragmentAggregator",
    "GeminiJSONProvider",
    "ChatCompletionJSONProvider",
    "build_provider",
    "ExtractionPipeline",
    "ProviderFactory",
]
