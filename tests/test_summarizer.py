from types import SimpleNamespace

from openai import OpenAIError

from builderboard.services.summarizer import Summarizer, simple_summary


README = """# Mantle Indexer

![build](https://img.shields.io/badge/build-passing)
[![npm](https://img.shields.io/npm/v/x)](https://npm.im/x)
[Docs](https://example.com/docs)
- fast
Indexes **Mantle** blocks and exposes them over a `GraphQL` API.
"""


class FakeCompletions:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_openai(**kwargs):
    completions = FakeCompletions(**kwargs)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_simple_summary_skips_noise():
    assert simple_summary(README, "indexer") == "Indexes Mantle blocks and exposes them over a GraphQL API."


def test_simple_summary_fallbacks():
    assert simple_summary(None, "x") is None
    assert simple_summary("", "x") is None
    assert simple_summary("# Title\nshort line\n", "tiny") == "A project called tiny"


def test_simple_summary_truncates():
    text = simple_summary("word " * 100, "long")
    assert len(text) == 150
    assert text.endswith("...")


async def test_summarizer_without_client_uses_readme():
    s = Summarizer(client=None)
    assert not s.enabled
    assert await s.summarize(README, "indexer") == simple_summary(README, "indexer")


async def test_summarizer_uses_llm_reply():
    client, completions = fake_openai(reply="  Indexer for Mantle blocks.  ")
    s = Summarizer(client=client, model="test-model")

    assert await s.summarize(README, "indexer") == "Indexer for Mantle blocks."
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert call["max_tokens"] == 100
    assert "indexer" in call["messages"][1]["content"]


async def test_summarizer_falls_back_on_error():
    client, _ = fake_openai(error=OpenAIError("quota"))
    s = Summarizer(client=client)
    assert await s.summarize(README, "indexer") == simple_summary(README, "indexer")


async def test_summarizer_falls_back_on_empty_reply():
    client, _ = fake_openai(reply="   ")
    s = Summarizer(client=client)
    assert await s.summarize(README, "indexer") == simple_summary(README, "indexer")


async def test_summarizer_skips_llm_without_readme():
    client, completions = fake_openai(reply="never")
    s = Summarizer(client=client)
    assert await s.summarize(None, "indexer") is None
    assert completions.calls == []
