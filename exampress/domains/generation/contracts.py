"""
Generation Contracts - Interfaces for generation domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ImageGenerator(Protocol):
    """Contract for producing an illustration from a visual description."""

    async def generate_image(self, prompt: str) -> str | None:
        """
        Render an image.

        Args:
            prompt: Visual description

        Returns:
            A data URL, or None if no image was produced
        """
        ...
