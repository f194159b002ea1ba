import sys
import pytest
from pathlib import Path

# Add project root (2 levels up from tests/) to sys.path so tests can import 'liveword'
root = Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))


# Optionally set PYTHONPATH for runtime
import os
os.environ.setdefault('PYTHONPATH', str(root))

from liveword.services.session.registry import BroadcastRegistry
from liveword.services.session.session import TranscriptionSession
from liveword.services.translation import TranslationBroadcaster, TTSCache
from tests.helpers import FakeConnection, FakeStreamFactory, FakeSynthesizer, FakeTranslator


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def registry():
    return BroadcastRegistry()


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def broadcaster(registry, translator, synthesizer):
    return TranslationBroadcaster(
        registry=registry,
        translator=translator,
        synthesizer=synthesizer,
        tts_cache=TTSCache(maxsize=10),
    )


@pytest.fixture
def stream_factory():
    return FakeStreamFactory()


@pytest.fixture
def make_session(registry, broadcaster, stream_factory):
    """Build sessions wired to the shared fakes."""
    def _make(session_id: str = "s1", language: str = "en-US", finalization_delays=None):
        return TranscriptionSession(
            connection=FakeConnection(session_id),
            registry=registry,
            broadcaster=broadcaster,
            stream_factory=stream_factory,
            session_id=session_id,
            language=language,
            finalization_delays=finalization_delays or {},
        )
    return _make
