from types import SimpleNamespace

import pytest

import model_client
from errors import ModelCallError


class FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, model, contents):
        self.calls.append((model, contents))
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


def _patch_sdk(monkeypatch, models):
    monkeypatch.setattr(
        model_client.genai, "Client", lambda api_key: SimpleNamespace(models=models)
    )


@pytest.mark.asyncio
async def test_generate_returns_model_text(monkeypatch):
    models = FakeModels(text='{"score": 5}')
    _patch_sdk(monkeypatch, models)
    client = model_client.GeminiClient("key", "gemini-test")
    assert await client.generate("prompt") == '{"score": 5}'
    assert models.calls == [("gemini-test", "prompt")]


@pytest.mark.asyncio
async def test_generate_maps_missing_text_to_empty(monkeypatch):
    _patch_sdk(monkeypatch, FakeModels(text=None))
    assert await model_client.GeminiClient("key").generate("prompt") == ""


@pytest.mark.asyncio
async def test_generate_wraps_sdk_errors(monkeypatch):
    _patch_sdk(monkeypatch, FakeModels(error=ConnectionError("network down")))
    with pytest.raises(ModelCallError, match="network down"):
        await model_client.GeminiClient("key").generate("prompt")


def test_build_model_client_requires_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(RuntimeError):
        model_client.build_model_client()


def test_build_model_client_reads_env(monkeypatch):
    _patch_sdk(monkeypatch, FakeModels())
    monkeypatch.setenv("GEMINI_API_KEY", "key")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-custom")
    assert model_client.build_model_client().model == "gemini-custom"
