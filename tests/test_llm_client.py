# tests/test_llm_client.py
from unittest.mock import Mock

import pytest

from docbrief.llm.multi_model_client import (
    LLMGenerationError,
    LLMUnavailableError,
    MultiModelLLMClient,
)


@pytest.fixture
def no_keys(monkeypatch):
    for key in ("OPENAI_API_KEY", "GEMINI_API_KEY", "GOOGLE_GEMINI_API_KEY"):
        monkeypatch.delenv(key, raising=False)


def _openai_response(text):
    message = Mock(content=text)
    return Mock(choices=[Mock(message=message)])


@pytest.fixture
def llm(no_keys):
    """Client with both providers replaced by mocks."""
    client = MultiModelLLMClient(provider_order=["openai", "gemini"])

    client.openai = Mock()
    client.openai_available = True

    client.gemini_model = Mock()
    client.gemini_available = True

    return client


class TestProviderSelection:

    def test_no_keys_means_unavailable(self, no_keys):
        client = MultiModelLLMClient()

        assert client.is_available() is False

        with pytest.raises(LLMUnavailableError):
            client.generate("hello")

    def test_first_provider_wins(self, llm):
        llm.openai.chat.completions.create.return_value = _openai_response(" from openai ")

        text, provider = llm.generate("hello", system_prompt="be brief")

        assert (text, provider) == ("from openai", "openai")
        llm.gemini_model.generate_content.assert_not_called()

        messages = llm.openai.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "be brief"}
        assert messages[1] == {"role": "user", "content": "hello"}

    def test_falls_through_to_gemini(self, llm):
        llm.openai.chat.completions.create.side_effect = RuntimeError("rate limited")
        llm.gemini_model.generate_content.return_value = Mock(text=" hi ")

        assert llm.generate("hello") == ("hi", "gemini")

    def test_empty_response_counts_as_failure(self, llm):
        llm.openai.chat.completions.create.return_value = _openai_response("")
        llm.gemini_model.generate_content.return_value = Mock(text="answer")

        assert llm.generate("hello") == ("answer", "gemini")

    def test_all_providers_fail(self, llm):
        llm.openai.chat.completions.create.side_effect = RuntimeError("down")
        llm.gemini_model.generate_content.side_effect = RuntimeError("down too")

        with pytest.raises(LLMGenerationError):
            llm.generate("hello")

    def test_provider_order_is_respected(self, llm):
        llm.provider_order = ["gemini", "openai"]
        llm.gemini_model.generate_content.return_value = Mock(text="gemini first")

        assert llm.generate("hello") == ("gemini first", "gemini")
        llm.openai.chat.completions.create.assert_not_called()

    def test_gemini_generation_config(self, llm):
        llm.provider_order = ["gemini"]
        llm.gemini_model.generate_content.return_value = Mock(text="ok")

        llm.generate("hello", system_prompt="sys", temperature=0.3, max_tokens=2048)

        args, kwargs = llm.gemini_model.generate_content.call_args
        assert args[0] == "sys\n\nhello"
        assert kwargs["generation_config"] == {
            "temperature": 0.3,
            "max_output_tokens": 2048,
        }
