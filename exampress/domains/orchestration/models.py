"""
Orchestration Models - Data types for orchestration domain.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from exampress.config import ExamPressError, IncompleteConfigurationError

if TYPE_CHECKING:
    from exampress.adapters.openai import OpenAIConfig
    from exampress.config import Settings


class ProviderKind(str, Enum):
    """Model provider variants."""

    GEMINI = "gemini"  # schema-constrained streaming
    OPENAI = "openai"  # OpenAI-compatible chat completion


class ProviderOverrides(BaseModel):
    """Provider fields as sent by a request, before validation."""

    provider: str | None = None
    openai_base_url: str | None = Field(default=None, alias="openaiBaseUrl")
    openai_api_key: str | None = Field(default=None, alias="openaiApiKey")
    openai_model: str | None = Field(default=None, alias="openaiModel")

    model_config = {"frozen": True, "populate_by_name": True, "extra": "ignore"}

    def resolve(self, settings: Settings | None = None) -> ProviderConfig:
        """
        Validate into a ProviderConfig.

        Without an explicit provider, settings.default_provider is used and
        missing OpenAI fields come from the openai_* settings.
        """
        if settings is not None and not (self.provider and self.provider.strip()):
            return ProviderConfig.from_overrides(
                provider=settings.default_provider,
                base_url=self.openai_base_url or settings.openai_default_base_url,
                api_key=self.openai_api_key or settings.openai_api_key,
                model=self.openai_model or settings.openai_default_model,
            )
        return ProviderConfig.from_overrides(
            provider=self.provider,
            base_url=self.openai_base_url,
            api_key=self.openai_api_key,
            model=self.openai_model,
        )


class ProviderConfig(BaseModel):
    """Validated provider selection for one request."""

    provider: ProviderKind = ProviderKind.GEMINI
    base_url: str | None = None
    api_key: str | None = None
    model: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_overrides(
        cls,
        provider: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
    ) -> ProviderConfig:
        """
        Build a provider selection from optional request overrides.

        Args:
            provider: "gemini", "openai" or empty for the default provider
            base_url: OpenAI-compatible endpoint base URL
            api_key: OpenAI-compatible API key
            model: OpenAI-compatible model name

        Returns:
            Validated configuration

        Raises:
            IncompleteConfigurationError: Unknown provider, or "openai"
                without endpoint, key and model
        """
        name = (provider or ProviderKind.GEMINI.value).strip().lower()
        try:
            kind = ProviderKind(name)
        except ValueError as e:
            raise IncompleteConfigurationError(
                f"Unknown provider: {provider}",
                {"provider": provider},
            ) from e

        if kind == ProviderKind.GEMINI:
            return cls()

        supplied = {"openaiBaseUrl": base_url, "openaiApiKey": api_key, "openaiModel": model}
        missing = [key for key, value in supplied.items() if not (value and value.strip())]
        if missing:
            raise IncompleteConfigurationError(
                "OpenAI configuration is incomplete: endpoint, API key and model are required",
                {"missing": missing},
            )

        return cls(
            provider=kind,
            base_url=base_url.strip(),
            api_key=api_key.strip(),
            model=model.strip(),
        )

    @property
    def is_default(self) -> bool:
        return self.provider == ProviderKind.GEMINI

    def to_openai_config(self, settings: Settings) -> OpenAIConfig:
        """Client configuration for the OpenAI-compatible variant."""
        from exampress.adapters.openai import OpenAIConfig

        return OpenAIConfig(
            base_url=self.base_url or settings.openai_default_base_url,
            api_key=self.api_key or "",
            model=self.model or settings.openai_default_model,
            temperature=settings.openai_temperature,
            max_tokens=settings.openai_max_tokens,
            timeout_seconds=settings.request_timeout_seconds,
        )


class PipelineStage(str, Enum):
    """Extraction pipeline states, in order."""

    RECEIVED = "received"
    PARSING = "parsing"
    ANALYZING = "analyzing"
    FORMATTING = "formatting"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineStage.COMPLETE, PipelineStage.ERROR)


_STAGE_ORDER = {
    PipelineStage.RECEIVED: 0,
    PipelineStage.PARSING: 1,
    PipelineStage.ANALYZING: 2,
    PipelineStage.FORMATTING: 3,
    PipelineStage.GENERATING: 4,
    PipelineStage.COMPLETE: 5,
}


class StageTransitionError(RuntimeError):
    """A pipeline tried to move backwards or leave a terminal stage."""


@dataclass
class PipelineRun:
    """
    State of one extraction job.

    Stages only move forward. Skipping is allowed (pasted text never
    parses, chat providers never generate), repeated generating steps are
    allowed, and error is reachable from any non-terminal stage.
    """

    source: str
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    stage: PipelineStage = PipelineStage.RECEIVED
    history: list[PipelineStage] = field(default_factory=lambda: [PipelineStage.RECEIVED])
    fragment_count: int = 0
    started_at: float = field(default_factory=time.time)
    result: dict[str, Any] | None = None
    error: ExamPressError | None = None

    def can_advance(self, stage: PipelineStage) -> bool:
        if self.stage.is_terminal:
            return False
        if stage == PipelineStage.ERROR:
            return True
        if stage == PipelineStage.GENERATING and self.stage == PipelineStage.GENERATING:
            return True
        return _STAGE_ORDER[stage] > _STAGE_ORDER[self.stage]

    def advance(self, stage: PipelineStage) -> None:
        """
        Move to a new stage.

        Raises:
            StageTransitionError: Backward move or move out of a terminal stage
        """
        if not self.can_advance(stage):
            raise StageTransitionError(
                f"Job {self.job_id}: cannot move from {self.stage.value} to {stage.value}"
            )
        if stage == PipelineStage.GENERATING:
            self.fragment_count += 1
        if stage != self.stage:
            self.history.append(stage)
        self.stage = stage

    @property
    def elapsed_seconds(self) -> float:
        return time.time() - self.started_at
