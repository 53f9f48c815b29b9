"""
Tests for provider selection, the stage machine and the extraction pipeline.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Generator
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pytest

from exampress.adapters.openai import ChatCompletionClient, OpenAIConfig
from exampress.config import (
    AIOutputNotJSONError,
    ErrorCode,
    IncompleteConfigurationError,
    ProviderError,
    Settings,
)
from exampress.domains.exam import BLANK, EXAM_RESPONSE_SCHEMA
from exampress.domains.extraction import SourceDocument

from .contracts import ChatJSONProvider, StreamingJSONProvider
from .events import CompleteEvent, ErrorEvent, FragmentEvent
from .models import (
    PipelineRun,
    PipelineStage,
    ProviderConfig,
    ProviderKind,
    ProviderOverrides,
    StageTransitionError,
)
from .pipeline import ExtractionPipeline
from .providers import ChatCompletionJSONProvider, GeminiJSONProvider, build_provider

EXAM_JSON = json.dumps(
    {
        "title": "Arithmetic Quiz",
        "subject": "Math",
        "sections": [
            {
                "title": "选择题",
                "totalScore": 2,
                "questions": [
                    {
                        "id": 1,
                        "number": 1,
                        "text": "What is 2+2?",
                        "type": "multiple_choice",
                        "score": 2,
                        "options": ["3", "4", "5"],
                    }
                ],
            }
        ],
    }
)


class StubStreamingProvider:
    """Streams fixed fragments and records calls."""

    name = "stub-stream"

    def __init__(self, fragments: list[str], fail_after: int | None = None) -> None:
        self.fragments = fragments
        self.fail_after = fail_after
        self.calls: list[tuple[str, dict]] = []

    async def stream_json(self, prompt: str, schema: dict[str, Any]) -> AsyncIterator[str]:
        self.calls.append((prompt, schema))
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index == self.fail_after:
                raise ProviderError("connection reset by peer")
            yield fragment


class StubChatProvider:
    """Returns one fixed reply and records calls."""

    name = "stub-chat"

    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.calls: list[tuple[str, str | None]] = []

    async def complete_json(self, user_message: str, system_message: str | None = None) -> str:
        self.calls.append((user_message, system_message))
        return self.reply


class RecordingFactory:
    """Provider factory that hands out one provider and records its arguments."""

    def __init__(self, provider: Any) -> None:
        self.provider = provider
        self.calls: list[tuple[ProviderConfig, float | None]] = []

    def __call__(self, config: ProviderConfig, temperature: float | None = None) -> Any:
        self.calls.append((config, temperature))
        return self.provider


def _chunks(text: str, size: int = 9) -> list[str]:
    return [text[i : i + size] for i in range(0, len(text), size)]


def _statuses(events: list) -> list[str]:
    return [event.status for event in events]


def _assert_single_terminal(events: list) -> None:
    terminal = [e for e in events if e.status in ("complete", "error")]
    assert len(terminal) == 1
    assert events[-1] is terminal[0]


async def _collect(events: AsyncIterator) -> list:
    return [event async for event in events]


@pytest.fixture
def settings() -> Settings:
    """Settings with test temperatures."""
    return Settings(format_temperature=0.3, parse_temperature=0.2, max_source_chars=20000)


@pytest.fixture
def pdf_text() -> Generator[MagicMock, None, None]:
    """Make every PDF read return the quiz text."""
    page = MagicMock()
    page.extract_text.return_value = "1. What is 2+2? A. 3 B. 4 C. 5"
    with patch("exampress.domains.extraction.extractor.PdfReader") as mock_reader:
        mock_reader.return_value.is_encrypted = False
        mock_reader.return_value.pages = [page]
        yield mock_reader


@pytest.fixture
def pdf_upload() -> SourceDocument:
    """A PDF upload (contents are supplied by the pdf_text fixture)."""
    return SourceDocument(data=b"%PDF-1.7", filename="quiz.pdf", content_type="application/pdf")


# --- ProviderConfig Tests ---


def test_provider_config_defaults_to_gemini() -> None:
    """Test absent overrides select the default provider."""
    assert ProviderConfig.from_overrides().provider == ProviderKind.GEMINI
    assert ProviderConfig.from_overrides(provider="").is_default
    assert ProviderConfig.from_overrides(provider="Gemini").is_default


def test_provider_config_openai_complete() -> None:
    """Test a complete OpenAI override is accepted and trimmed."""
    config = ProviderConfig.from_overrides(
        provider="openai", base_url=" https://x.test/v1 ", api_key="sk", model="m"
    )
    assert config.provider == ProviderKind.OPENAI
    assert config.base_url == "https://x.test/v1"


@pytest.mark.parametrize(
    ("base_url", "api_key", "model", "missing"),
    [
        (None, "sk", "m", ["openaiBaseUrl"]),
        ("https://x", "", "m", ["openaiApiKey"]),
        ("https://x", "sk", "   ", ["openaiModel"]),
        (None, None, None, ["openaiBaseUrl", "openaiApiKey", "openaiModel"]),
    ],
)
def test_provider_config_openai_incomplete(
    base_url: str | None, api_key: str | None, model: str | None, missing: list[str]
) -> None:
    """Test missing OpenAI fields are reported."""
    with pytest.raises(IncompleteConfigurationError) as exc_info:
        ProviderConfig.from_overrides("openai", base_url, api_key, model)
    assert exc_info.value.details["missing"] == missing
    assert exc_info.value.code == ErrorCode.INCOMPLETE_CONFIGURATION


def test_provider_config_unknown_provider() -> None:
    """Test an unknown provider name is a configuration error."""
    with pytest.raises(IncompleteConfigurationError):
        ProviderConfig.from_overrides(provider="claude")


def test_provider_overrides_aliases() -> None:
    """Test request field names map onto overrides."""
    overrides = ProviderOverrides.model_validate(
        {"provider": "openai", "openaiBaseUrl": "https://x", "openaiApiKey": "k", "openaiModel": "m"}
    )
    config = overrides.resolve()
    assert (config.base_url, config.api_key, config.model) == ("https://x", "k", "m")


def test_provider_config_to_openai_config(settings: Settings) -> None:
    """Test client configuration takes sampling parameters from settings."""
    config = ProviderConfig.from_overrides("openai", "https://x/v1", "k", "m")
    openai_config = config.to_openai_config(settings)
    assert openai_config.endpoint == "https://x/v1/chat/completions"
    assert openai_config.temperature == settings.openai_temperature
    assert openai_config.max_tokens == settings.openai_max_tokens


def test_provider_overrides_use_settings_default() -> None:
    """Test a request without a provider follows the configured default."""
    settings = Settings(default_provider="openai", openai_api_key="sk-env")

    config = ProviderOverrides().resolve(settings)

    assert config.provider == ProviderKind.OPENAI
    assert config.base_url == settings.openai_default_base_url
    assert config.api_key == "sk-env"
    assert config.model == settings.openai_default_model


def test_provider_overrides_request_fields_beat_settings() -> None:
    """Test request fields win over the openai_* settings."""
    settings = Settings(default_provider="openai", openai_api_key="sk-env")
    overrides = ProviderOverrides(openai_base_url="https://x/v1", openai_model="m")

    config = overrides.resolve(settings)

    assert (config.base_url, config.api_key, config.model) == ("https://x/v1", "sk-env", "m")


def test_provider_overrides_explicit_provider_beats_default() -> None:
    """Test an explicit provider ignores the configured default."""
    settings = Settings(default_provider="openai", openai_api_key="sk-env")
    assert ProviderOverrides(provider="gemini").resolve(settings).is_default


def test_provider_overrides_default_openai_without_key() -> None:
    """Test an OpenAI default with no key anywhere is incomplete."""
    settings = Settings(default_provider="openai", openai_api_key=None)
    with pytest.raises(IncompleteConfigurationError) as exc_info:
        ProviderOverrides().resolve(settings)
    assert exc_info.value.details["missing"] == ["openaiApiKey"]


# --- Stage Machine Tests ---


def test_run_moves_forward_and_skips() -> None:
    """Test forward moves, including skipped stages, are allowed."""
    run = PipelineRun(source="t")
    run.advance(PipelineStage.ANALYZING)
    run.advance(PipelineStage.FORMATTING)
    run.advance(PipelineStage.COMPLETE)
    assert run.history == [
        PipelineStage.RECEIVED,
        PipelineStage.ANALYZING,
        PipelineStage.FORMATTING,
        PipelineStage.COMPLETE,
    ]
    assert run.stage.is_terminal


def test_run_repeats_generating() -> None:
    """Test generating may repeat and is counted once in history."""
    run = PipelineRun(source="t")
    run.advance(PipelineStage.FORMATTING)
    for _ in range(3):
        run.advance(PipelineStage.GENERATING)
    assert run.fragment_count == 3
    assert run.history.count(PipelineStage.GENERATING) == 1


def test_run_rejects_backward_move() -> None:
    """Test stages never move backwards."""
    run = PipelineRun(source="t")
    run.advance(PipelineStage.ANALYZING)
    with pytest.raises(StageTransitionError):
        run.advance(PipelineStage.PARSING)
    with pytest.raises(StageTransitionError):
        run.advance(PipelineStage.ANALYZING)


@pytest.mark.parametrize("terminal", [PipelineStage.COMPLETE, PipelineStage.ERROR])
def test_run_terminal_stages_are_final(terminal: PipelineStage) -> None:
    """Test nothing leaves complete or error."""
    run = PipelineRun(source="t")
    run.advance(terminal)
    for stage in PipelineStage:
        assert not run.can_advance(stage)


def test_run_error_reachable_from_any_stage() -> None:
    """Test error can follow every non-terminal stage."""
    for stage in (PipelineStage.PARSING, PipelineStage.FORMATTING, PipelineStage.GENERATING):
        run = PipelineRun(source="t")
        run.advance(stage)
        run.advance(PipelineStage.ERROR)
        assert run.stage == PipelineStage.ERROR


def test_run_ids_are_unique() -> None:
    """Test each run gets its own job id."""
    assert PipelineRun(source="a").job_id != PipelineRun(source="b").job_id


# --- Provider Tests ---


def test_build_provider_default(settings: Settings) -> None:
    """Test the default selection is the streaming Gemini provider."""
    provider = build_provider(
        ProviderConfig(), settings, gemini_client=MagicMock(), temperature=0.3
    )
    assert isinstance(provider, GeminiJSONProvider)
    assert isinstance(provider, StreamingJSONProvider)


def test_build_provider_openai(settings: Settings) -> None:
    """Test an OpenAI selection yields the chat provider."""
    config = ProviderConfig.from_overrides("openai", "https://x/v1", "k", "m")
    provider = build_provider(config, settings)
    assert isinstance(provider, ChatCompletionJSONProvider)
    assert isinstance(provider, ChatJSONProvider)
    assert not isinstance(provider, StreamingJSONProvider)


async def test_gemini_provider_passes_schema_and_temperature() -> None:
    """Test the Gemini provider forwards the schema to the client."""
    seen: dict[str, Any] = {}

    class FakeClient:
        async def stream_generate(self, prompt, temperature=None, response_schema=None):
            seen.update(prompt=prompt, temperature=temperature, schema=response_schema)
            yield "{"
            yield "}"

    provider = GeminiJSONProvider(FakeClient(), temperature=0.25)  # type: ignore[arg-type]
    fragments = [f async for f in provider.stream_json("p", EXAM_RESPONSE_SCHEMA)]

    assert fragments == ["{", "}"]
    assert seen == {"prompt": "p", "temperature": 0.25, "schema": EXAM_RESPONSE_SCHEMA}


async def test_chat_provider_sends_system_and_user() -> None:
    """Test the chat provider builds messages and asks for JSON mode."""
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"choices": [{"message": {"content": "{}"}}]})

    client = ChatCompletionClient(
        OpenAIConfig(base_url="https://x/v1", api_key="k", model="m"),
        transport=httpx.MockTransport(handler),
    )
    reply = await ChatCompletionJSONProvider(client).complete_json("user text", "system text")

    assert reply == "{}"
    assert bodies[0]["messages"] == [
        {"role": "system", "content": "system text"},
        {"role": "user", "content": "user text"},
    ]
    assert bodies[0]["response_format"] == {"type": "json_object"}


# --- Pipeline: File Path ---


async def test_pdf_quiz_end_to_end(
    settings: Settings, pdf_text: MagicMock, pdf_upload: SourceDocument
) -> None:
    """Test a PDF quiz flows through every stage to a complete document."""
    provider = StubStreamingProvider(_chunks(EXAM_JSON))
    factory = RecordingFactory(provider)
    pipeline = ExtractionPipeline(settings, provider_factory=factory)

    events = await _collect(pipeline.run_file(pdf_upload))

    statuses = _statuses(events)
    assert statuses[:3] == ["parsing", "analyzing", "formatting"]
    assert set(statuses[3:-1]) == {"generating"}
    assert statuses[-1] == "complete"
    _assert_single_terminal(events)

    chunks = [e.chunk for e in events if isinstance(e, FragmentEvent)]
    assert "".join(chunks) == EXAM_JSON

    data = events[-1].data
    assert len(data["sections"]) == 1
    question = data["sections"][0]["questions"][0]
    assert question["type"] == "multiple_choice"
    assert question["options"] == ["3", "4", "5"]

    prompt, schema = provider.calls[0]
    assert "1. What is 2+2? A. 3 B. 4 C. 5" in prompt
    assert schema is EXAM_RESPONSE_SCHEMA
    assert factory.calls[0][0].is_default
    assert factory.calls[0][1] == settings.format_temperature


async def test_chat_provider_path_has_no_fragments(
    settings: Settings, pdf_text: MagicMock, pdf_upload: SourceDocument
) -> None:
    """Test the chat path emits a placeholder instead of fragments."""
    provider = StubChatProvider(EXAM_JSON)
    pipeline = ExtractionPipeline(settings, provider_factory=RecordingFactory(provider))

    overrides = ProviderOverrides(
        provider="openai", openai_base_url="https://x/v1", openai_api_key="k", openai_model="m"
    )
    events = await _collect(pipeline.run_file(pdf_upload, overrides))

    assert _statuses(events) == ["parsing", "analyzing", "formatting", "formatting", "complete"]
    user_message, system_message = provider.calls[0]
    assert "What is 2+2?" in user_message
    assert system_message and "JSON" in system_message


async def test_non_json_output_ends_in_error(
    settings: Settings, pdf_text: MagicMock, pdf_upload: SourceDocument
) -> None:
    """Test a refusal is reported as AI_OUTPUT_NOT_JSON and never completes."""
    provider = StubStreamingProvider(["Sorry, ", "I can't help"])
    pipeline = ExtractionPipeline(settings, provider_factory=RecordingFactory(provider))

    events = await _collect(pipeline.run_file(pdf_upload))

    assert "complete" not in _statuses(events)
    assert isinstance(events[-1], ErrorEvent)
    assert events[-1].code == ErrorCode.AI_OUTPUT_NOT_JSON.value
    _assert_single_terminal(events)


async def test_legacy_ppt_rejected_before_provider(settings: Settings) -> None:
    """Test a .ppt upload errors in parsing and the provider is never built."""
    factory = RecordingFactory(StubStreamingProvider([EXAM_JSON]))
    pipeline = ExtractionPipeline(settings, provider_factory=factory)
    upload = SourceDocument(
        data=b"\xd0\xcf\x11\xe0", filename="old.ppt", content_type="application/vnd.ms-powerpoint"
    )

    events = await _collect(pipeline.run_file(upload))

    assert _statuses(events) == ["parsing", "error"]
    assert events[-1].code == ErrorCode.UNSUPPORTED_FORMAT.value
    assert ".pptx" in events[-1].message
    assert factory.calls == []


async def test_missing_file_is_no_input(settings: Settings) -> None:
    """Test a job without a file ends immediately."""
    factory = RecordingFactory(StubStreamingProvider([]))
    events = await _collect(ExtractionPipeline(settings, provider_factory=factory).run_file(None))

    assert _statuses(events) == ["error"]
    assert events[0].code == ErrorCode.NO_INPUT.value


async def test_incomplete_override_is_error_event(
    settings: Settings, pdf_text: MagicMock, pdf_upload: SourceDocument
) -> None:
    """Test an incomplete OpenAI override surfaces on the channel."""
    factory = RecordingFactory(StubChatProvider(EXAM_JSON))
    pipeline = ExtractionPipeline(settings, provider_factory=factory)

    events = await _collect(pipeline.run_file(pdf_upload, ProviderOverrides(provider="openai")))

    assert _statuses(events) == ["error"]
    assert events[0].code == ErrorCode.INCOMPLETE_CONFIGURATION.value
    assert factory.calls == []


async def test_default_provider_setting_selects_provider(
    pdf_text: MagicMock, pdf_upload: SourceDocument
) -> None:
    """Test the default_provider setting picks the provider for plain requests."""
    settings = Settings(default_provider="openai", openai_api_key="sk-env")
    factory = RecordingFactory(StubChatProvider(EXAM_JSON))
    pipeline = ExtractionPipeline(settings, provider_factory=factory)

    events = await _collect(pipeline.run_file(pdf_upload))

    assert events[-1].status == "complete"
    assert factory.calls[0][0].provider == ProviderKind.OPENAI
    assert factory.calls[0][0].api_key == "sk-env"


async def test_provider_failure_mid_stream(
    settings: Settings, pdf_text: MagicMock, pdf_upload: SourceDocument
) -> None:
    """Test a provider failure after some fragments ends the run."""
    provider = StubStreamingProvider(_chunks(EXAM_JSON), fail_after=1)
    pipeline = ExtractionPipeline(settings, provider_factory=RecordingFactory(provider))

    events = await _collect(pipeline.run_file(pdf_upload))

    assert _statuses(events) == ["parsing", "analyzing", "formatting", "generating", "error"]
    assert events[-1].code == ErrorCode.PROVIDER_CALL_FAILED.value


async def test_unexpected_exception_is_internal_error(settings: Settings) -> None:
    """Test a crash inside a collaborator becomes a generic error event."""

    class BrokenExtractor:
        def extract(self, document: SourceDocument) -> str:
            raise RuntimeError("segfault in parser")

    pipeline = ExtractionPipeline(
        settings,
        extractor=BrokenExtractor(),
        provider_factory=RecordingFactory(StubStreamingProvider([])),
    )
    events = await _collect(pipeline.run_file(SourceDocument(data=b"x", filename="a.pdf")))

    assert events[-1].code == ErrorCode.INTERNAL_ERROR.value
    assert "segfault" not in events[-1].message


async def test_json_array_output_is_invalid(
    settings: Settings, pdf_text: MagicMock, pdf_upload: SourceDocument
) -> None:
    """Test valid JSON that is not an object is rejected."""
    pipeline = ExtractionPipeline(
        settings, provider_factory=RecordingFactory(StubStreamingProvider(["[1, ", "2]"]))
    )
    events = await _collect(pipeline.run_file(pdf_upload))
    assert events[-1].code == ErrorCode.AI_OUTPUT_INVALID.value


async def test_output_is_not_revalidated_by_default(
    settings: Settings, pdf_text: MagicMock, pdf_upload: SourceDocument
) -> None:
    """Test parsed JSON is passed through as-is."""
    odd = {"title": "T", "unexpected": True}
    pipeline = ExtractionPipeline(
        settings, provider_factory=RecordingFactory(StubChatProvider(json.dumps(odd)))
    )
    events = await _collect(pipeline.run_file(pdf_upload))
    assert events[-1] == CompleteEvent(data=odd)


async def test_validate_output_rejects_bad_shape(
    settings: Settings, pdf_text: MagicMock, pdf_upload: SourceDocument
) -> None:
    """Test opt-in validation reports structural problems."""
    pipeline = ExtractionPipeline(
        settings,
        provider_factory=RecordingFactory(StubChatProvider('{"title": "T"}')),
        validate_output=True,
    )
    events = await _collect(pipeline.run_file(pdf_upload))
    assert events[-1].code == ErrorCode.AI_OUTPUT_INVALID.value


async def test_validate_output_normalizes(settings: Settings) -> None:
    """Test opt-in validation returns the normalized document."""
    reply = json.dumps(
        {
            "title": "T",
            "subject": "S",
            "sections": [
                {
                    "title": "填空题",
                    "totalScore": 2,
                    "questions": [
                        {"id": 1, "number": 1, "text": "1+1=( )", "type": "fill_in_blank", "score": 2}
                    ],
                }
            ],
        }
    )
    pipeline = ExtractionPipeline(
        settings,
        provider_factory=RecordingFactory(StubChatProvider(reply)),
        validate_output=True,
    )
    data = await pipeline.extract_text("1+1=( )")
    assert BLANK in data["sections"][0]["questions"][0]["text"]


async def test_unvalidated_output_normalizes_blanks(settings: Settings) -> None:
    """Test fill-in-blank texts are widened even without validation."""
    reply = json.dumps(
        {
            "title": "T",
            "sections": [
                {
                    "title": "填空题",
                    "questions": [
                        {"id": 1, "text": "2+2=__", "type": "fill_in_blank"},
                        {"id": 2, "text": "Pick ( )", "type": "multiple_choice"},
                    ],
                }
            ],
        }
    )
    pipeline = ExtractionPipeline(
        settings, provider_factory=RecordingFactory(StubChatProvider(reply))
    )

    events = await _collect(pipeline.run_text("2+2=__"))

    questions = events[-1].data["sections"][0]["questions"]
    assert questions[0]["text"] == f"2+2= {BLANK} "
    assert questions[1]["text"] == "Pick ( )"


# --- Pipeline: Text Path ---


async def test_text_path_skips_parsing(settings: Settings) -> None:
    """Test pasted text starts at analyzing and uses the parse temperature."""
    provider = StubStreamingProvider(_chunks(EXAM_JSON))
    factory = RecordingFactory(provider)
    pipeline = ExtractionPipeline(settings, provider_factory=factory)

    events = await _collect(pipeline.run_text("1. What is 2+2? A. 3 B. 4 C. 5"))

    assert _statuses(events)[:2] == ["analyzing", "formatting"]
    assert events[-1].status == "complete"
    assert factory.calls[0][1] == settings.parse_temperature


@pytest.mark.parametrize("text", [None, "", "   \n\t"])
async def test_text_path_requires_content(settings: Settings, text: str | None) -> None:
    """Test blank pasted text is NO_INPUT."""
    pipeline = ExtractionPipeline(
        settings, provider_factory=RecordingFactory(StubStreamingProvider([]))
    )
    events = await _collect(pipeline.run_text(text))
    assert _statuses(events) == ["error"]
    assert events[0].code == ErrorCode.NO_INPUT.value


async def test_source_is_truncated(settings: Settings) -> None:
    """Test long sources are cut before prompt assembly."""
    provider = StubStreamingProvider([EXAM_JSON])
    short = Settings(max_source_chars=10)
    pipeline = ExtractionPipeline(short, provider_factory=RecordingFactory(provider))

    await _collect(pipeline.run_text("0123456789ABCDEFGHIJ"))

    prompt = provider.calls[0][0]
    assert "0123456789" in prompt
    assert "ABCDEFGHIJ" not in prompt


async def test_extract_text_returns_document(settings: Settings) -> None:
    """Test the non-streaming entry point returns the parsed document."""
    pipeline = ExtractionPipeline(
        settings, provider_factory=RecordingFactory(StubStreamingProvider(_chunks(EXAM_JSON)))
    )
    data = await pipeline.extract_text("quiz")
    assert data == json.loads(EXAM_JSON)


async def test_extract_text_raises_run_error(settings: Settings) -> None:
    """Test the non-streaming entry point raises the job's error."""
    pipeline = ExtractionPipeline(
        settings, provider_factory=RecordingFactory(StubChatProvider("not json"))
    )
    with pytest.raises(AIOutputNotJSONError):
        await pipeline.extract_text("quiz")


async def test_extract_file_raises_no_input(settings: Settings) -> None:
    """Test extract_file without a document."""
    from exampress.config import NoInputError

    pipeline = ExtractionPipeline(
        settings, provider_factory=RecordingFactory(StubStreamingProvider([]))
    )
    with pytest.raises(NoInputError):
        await pipeline.extract_file(None)
