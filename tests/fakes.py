"""In-process stand-ins for the Gemini, TTS and STT collaborators."""

from __future__ import annotations

from typing import Any

from src.services.llm import LLMResult
from src.services.speech import ASRResult


class FakeLLM:
    """Returns canned text / JSON, or raises ``error`` on every call."""

    def __init__(
        self,
        *,
        text: str = "Your complaint is being worked on.",
        payload: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.text = text
        self.payload = payload if payload is not None else {}
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str, temperature: float = 0.3, max_output_tokens: int = 512) -> LLMResult:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return LLMResult(answer=self.text)

    async def generate_json(self, prompt: str, max_output_tokens: int = 512) -> dict[str, Any]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.payload


class FakeTTS:
    def __init__(self, audio: bytes = b"RIFF....WAVEfmt ", error: Exception | None = None) -> None:
        self.audio = audio
        self.error = error
        self.texts: list[str] = []

    async def synthesize(self, text: str, speaking_rate: float = 1.0) -> bytes:
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        return self.audio

    async def close(self) -> None:
        return None


class FakeSTT:
    def __init__(self, transcript: str = "", error: Exception | None = None) -> None:
        self.transcript = transcript
        self.error = error

    async def transcribe(self, audio_data: bytes) -> ASRResult:
        if self.error is not None:
            raise self.error
        return ASRResult(text=self.transcript, confidence=0.9, language="en-IN", processing_time_ms=1.0)

    async def close(self) -> None:
        return None
