"""Fake providers and connections shared by the tests."""
from typing import List, Optional, Tuple

from liveword.services.protocols import TranscriptEvent


class FakeConnection:
    """Records everything a session sends instead of writing to a socket."""

    def __init__(self, connection_id: str = "test"):
        self.connection_id = connection_id
        self.websocket = None
        self.sent_json: List[dict] = []
        self.sent_bytes: List[bytes] = []
        self.close_calls = 0
        self.is_closed = False

    async def send_json(self, data: dict) -> bool:
        if self.is_closed:
            return False
        self.sent_json.append(data)
        return True

    async def send_bytes(self, data: bytes) -> bool:
        if self.is_closed:
            return False
        self.sent_bytes.append(data)
        return True

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> bool:
        self.close_calls += 1
        if self.is_closed:
            return False
        self.is_closed = True
        return True

    @property
    def transcripts(self) -> List[dict]:
        return [m for m in self.sent_json if "transcript" in m]

    @property
    def translations(self) -> List[str]:
        return [m["translation"] for m in self.sent_json if m.get("type") == "translation"]

    @property
    def errors(self) -> List[str]:
        return [m["error"] for m in self.sent_json if "error" in m]


class FakeStream:
    """In-memory transcript stream; tests push results through emit()/fail()."""

    def __init__(self, language_code: str, listener, log: List[Tuple[str, str]]):
        self.language_code = language_code
        self.listener = listener
        self.chunks: List[bytes] = []
        self.started = False
        self.end_calls = 0
        self.accept_writes = True
        self._log = log

    async def start(self):
        self.started = True
        self._log.append(("start", self.language_code))

    def write(self, chunk: bytes) -> bool:
        if self.end_calls or not self.accept_writes:
            return False
        self.chunks.append(chunk)
        self._log.append(("write", self.language_code))
        return True

    async def end(self):
        self.end_calls += 1
        if self.end_calls == 1:
            self._log.append(("end", self.language_code))

    async def emit(self, text: str, is_final: bool = False):
        await self.listener.on_transcript(self, TranscriptEvent(text, is_final, self.language_code))

    async def ready(self):
        await self.listener.on_stream_ready(self)

    async def fail(self, error: BaseException):
        await self.listener.on_stream_error(self, error)


class FakeStreamFactory:
    def __init__(self):
        self.streams: List[FakeStream] = []
        self.log: List[Tuple[str, str]] = []

    def __call__(self, language_code: str, listener) -> FakeStream:
        stream = FakeStream(language_code, listener, self.log)
        self.streams.append(stream)
        return stream


class FakeTranslator:
    """Deterministic translator: known pairs, else '[TARGET] text'."""

    def __init__(self, translations: Optional[dict] = None, fail_for=(), empty_for=()):
        self.translations = translations or {}
        self.fail_for = set(fail_for)
        self.empty_for = set(empty_for)
        self.calls: List[Tuple[str, str]] = []

    def translate_text(self, text, *, target_language_code, source_language_code=None):
        self.calls.append((text, target_language_code))
        if target_language_code in self.fail_for:
            raise RuntimeError(f"translation to {target_language_code} unavailable")
        if target_language_code in self.empty_for:
            return ""
        return self.translations.get((text, target_language_code), f"[{target_language_code}] {text}")

    def translate_raw(self, text, target_language_code):
        translated = self.translate_text(text, target_language_code=target_language_code)
        return {"translations": [{"translated_text": translated, "detected_language_code": "en"}]}


class FakeSynthesizer:
    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.calls: List[Tuple[str, str]] = []

    def synthesize(self, text, *, language_code, voice_name=None) -> bytes:
        self.calls.append((text, language_code))
        if language_code in self.fail_for:
            raise RuntimeError(f"no voice for {language_code}")
        return f"mp3:{language_code}:{text}".encode()
