"""
Tests for the voice-note pipeline.
"""

import pytest

from kisan_bot import voice as voice_module
from kisan_bot.voice import VoicePipeline, VoicePipelineError

from conftest import FakeLLM


class _FakeTTS:
    created = []

    def __init__(self, text, lang="en", timeout=None, **kwargs):
        self.text = text
        self.lang = lang
        self.timeout = timeout
        _FakeTTS.created.append(self)

    def write_to_fp(self, fp):
        fp.write(b"ID3" + self.text.encode("utf-8"))


@pytest.fixture
def fake_tts(monkeypatch):
    _FakeTTS.created = []
    monkeypatch.setattr(voice_module, "gTTS", _FakeTTS)
    return _FakeTTS


def test_process_runs_all_three_stages(tmp_path, fake_tts):
    llm = FakeLLM(reply="Irrigate in the evening.", transcript="when should I water?")
    pipeline = VoicePipeline(llm, responses_dir=str(tmp_path), timeout=7)

    audio = pipeline.process(b"OggS", "audio/ogg; codecs=opus", lang_code="hi")

    assert llm.audio == [(b"OggS", "audio/ogg; codecs=opus")]
    assert llm.prompts[0].startswith("when should I water?")
    assert "Respond in Hindi." in llm.prompts[0]
    assert audio == b"ID3Irrigate in the evening."
    assert fake_tts.created[0].lang == "hi"
    assert fake_tts.created[0].timeout == 7


def test_empty_transcript_raises(tmp_path, fake_tts):
    pipeline = VoicePipeline(FakeLLM(transcript=None), responses_dir=str(tmp_path))
    with pytest.raises(VoicePipelineError):
        pipeline.process(b"OggS")
    assert fake_tts.created == []


def test_missing_ai_reply_raises(tmp_path, fake_tts):
    pipeline = VoicePipeline(FakeLLM(reply=None), responses_dir=str(tmp_path))
    with pytest.raises(VoicePipelineError):
        pipeline.process(b"OggS")


def test_tts_failure_raises(tmp_path, monkeypatch):
    class _BrokenTTS(_FakeTTS):
        def write_to_fp(self, fp):
            raise RuntimeError("tts service unreachable")

    monkeypatch.setattr(voice_module, "gTTS", _BrokenTTS)
    pipeline = VoicePipeline(FakeLLM(), responses_dir=str(tmp_path))
    with pytest.raises(VoicePipelineError):
        pipeline.synthesize("hello")


def test_save_response_writes_mp3(tmp_path):
    pipeline = VoicePipeline(FakeLLM(), responses_dir=str(tmp_path / "responses"))

    filename = pipeline.save_response(b"ID3data")

    assert filename.endswith("_response.mp3")
    assert (tmp_path / "responses" / filename).read_bytes() == b"ID3data"
