"""Google Cloud Speech services for CivicDesk.

Provides async STT (Speech-to-Text) and TTS (Text-to-Speech) wrappers
around the official GCP client libraries.  The status lookup uses TTS
to voice its summary; the voice status endpoint uses STT to read a
tracking id out of an uploaded clip.  Audio is never persisted.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass, field
from typing import Final

import structlog
from google.cloud.speech_v2 import SpeechAsyncClient
from google.cloud.speech_v2.types import cloud_speech
from google.cloud.texttospeech_v1 import TextToSpeechAsyncClient
from google.cloud.texttospeech_v1.types import (
    AudioConfig,
    AudioEncoding,
    SynthesisInput,
    SynthesizeSpeechRequest,
    VoiceSelectionParams,
)
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

# Output sample rate for synthesized summaries (24 kHz mono, 16-bit).
TTS_SAMPLE_RATE_HZ: Final[int] = 24_000


def wav_data_uri(audio: bytes) -> str:
    """Encode WAV bytes as a ``data:audio/wav;base64,...`` URI."""
    return "data:audio/wav;base64," + base64.b64encode(audio).decode("ascii")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ASRResult:
    """Result of a speech-to-text recognition request."""

    text: str
    confidence: float
    language: str
    processing_time_ms: float
    provider: str = field(default="google")


# ---------------------------------------------------------------------------
# SpeechToTextService
# ---------------------------------------------------------------------------


class SpeechToTextService:
    """Async wrapper around Google Cloud Speech-to-Text v2.

    Decoding is auto-detected so callers can upload WAV, FLAC or MP3
    clips without declaring an encoding.
    """

    def __init__(
        self,
        project_id: str,
        region: str = "asia-south1",
        language_code: str = "en-IN",
        *,
        max_attempts: int = 1,
    ) -> None:
        self._project_id = project_id
        self._region = region
        self._language_code = language_code
        self._max_attempts = max_attempts
        self._client: SpeechAsyncClient | None = None

    async def _get_client(self) -> SpeechAsyncClient:
        if self._client is None:
            self._client = SpeechAsyncClient(
                client_options={"api_endpoint": f"{self._region}-speech.googleapis.com"},
            )
        return self._client

    @property
    def _recognizer_name(self) -> str:
        """Full resource name for the default recognizer."""
        return f"projects/{self._project_id}/locations/{self._region}/recognizers/_"

    async def transcribe(self, audio_data: bytes) -> ASRResult:
        """Transcribe a complete audio clip and return the best result."""
        start = time.perf_counter()
        client = await self._get_client()

        config = cloud_speech.RecognitionConfig(
            auto_decoding_config=cloud_speech.AutoDetectDecodingConfig(),
            language_codes=[self._language_code],
            model="long",
        )
        request = cloud_speech.RecognizeRequest(
            recognizer=self._recognizer_name,
            config=config,
            content=audio_data,
        )

        logger.debug("stt_request", language=self._language_code, audio_bytes=len(audio_data))
        recognize = retry(
            retry=retry_if_exception_type(Exception),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            reraise=True,
        )(client.recognize)
        response = await recognize(request=request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        if response.results and response.results[0].alternatives:
            best = response.results[0].alternatives[0]
            result = ASRResult(
                text=best.transcript.strip(),
                confidence=best.confidence,
                language=self._language_code,
                processing_time_ms=round(elapsed_ms, 2),
            )
        else:
            result = ASRResult(
                text="",
                confidence=0.0,
                language=self._language_code,
                processing_time_ms=round(elapsed_ms, 2),
            )

        logger.info(
            "stt_result",
            text_length=len(result.text),
            confidence=result.confidence,
            processing_time_ms=result.processing_time_ms,
        )
        return result

    async def close(self) -> None:
        """Release underlying gRPC resources."""
        if self._client is not None:
            transport = self._client.transport
            if hasattr(transport, "close"):
                await transport.close()  # type: ignore[misc]
            self._client = None


# ---------------------------------------------------------------------------
# TextToSpeechService
# ---------------------------------------------------------------------------


class TextToSpeechService:
    """Async wrapper around Google Cloud Text-to-Speech v1.

    Produces LINEAR16 audio, which the API returns wrapped in a WAV
    header, ready to be served as a data URI.
    """

    def __init__(
        self,
        language_code: str = "en-IN",
        voice_name: str = "en-IN-Neural2-A",
        *,
        max_attempts: int = 1,
    ) -> None:
        self._language_code = language_code
        self._voice_name = voice_name
        self._max_attempts = max_attempts
        self._client: TextToSpeechAsyncClient | None = None

    async def _get_client(self) -> TextToSpeechAsyncClient:
        if self._client is None:
            self._client = TextToSpeechAsyncClient()
        return self._client

    async def synthesize(self, text: str, speaking_rate: float = 1.0) -> bytes:
        """Synthesize *text* to WAV audio bytes."""
        start = time.perf_counter()
        client = await self._get_client()

        request = SynthesizeSpeechRequest(
            input=SynthesisInput(text=text),
            voice=VoiceSelectionParams(
                language_code=self._language_code,
                name=self._voice_name,
            ),
            audio_config=AudioConfig(
                audio_encoding=AudioEncoding.LINEAR16,
                sample_rate_hertz=TTS_SAMPLE_RATE_HZ,
                speaking_rate=speaking_rate,
            ),
        )

        synthesize = retry(
            retry=retry_if_exception_type(Exception),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            reraise=True,
        )(client.synthesize_speech)
        response = await synthesize(request=request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        if not response.audio_content:
            raise ValueError("speech synthesis returned no audio")

        logger.info(
            "tts_result",
            language=self._language_code,
            voice=self._voice_name,
            text_length=len(text),
            audio_bytes=len(response.audio_content),
            processing_time_ms=round(elapsed_ms, 2),
        )
        return response.audio_content

    async def close(self) -> None:
        """Release underlying gRPC resources."""
        if self._client is not None:
            transport = self._client.transport
            if hasattr(transport, "close"):
                await transport.close()  # type: ignore[misc]
            self._client = None
