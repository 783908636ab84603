# docbrief/llm/multi_model_client.py

import os
import logging
import time
from typing import Optional, List, Tuple

from openai import OpenAI
import google.generativeai as genai

from docbrief.config import (
    GEMINI_MODEL,
    LLM_PROVIDER_ORDER,
    OPENAI_CHAT_MODEL,
)

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """No provider is configured."""


class LLMGenerationError(RuntimeError):
    """Every configured provider failed."""


class MultiModelLLMClient:
    """
    Multi-provider LLM client.

    Providers are tried in LLM_PROVIDER_ORDER; the first one that
    returns text wins. A provider whose key is missing is skipped.
    """

    def __init__(self, provider_order: Optional[List[str]] = None):

        self.provider_order = provider_order or list(LLM_PROVIDER_ORDER)

        self.openai: Optional[OpenAI] = None
        self.gemini_model = None

        self.openai_available = False
        self.gemini_available = False

        self._init_openai()
        self._init_gemini()

        logger.info(
            "LLM initialization complete",
            extra={
                "provider_order": self.provider_order,
                "openai_available": self.openai_available,
                "gemini_available": self.gemini_available,
            },
        )

    # ============================================================
    # INITIALIZATION
    # ============================================================

    def _init_openai(self):

        key = os.getenv("OPENAI_API_KEY")

        if not key:
            logger.warning("OpenAI API key missing")
            return

        try:

            self.openai = OpenAI(api_key=key)

            self.openai_available = True

            logger.info("OpenAI initialized successfully")

        except Exception as e:

            logger.error(
                "OpenAI initialization failed",
                extra={"error": str(e)},
            )

    def _init_gemini(self):

        key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_GEMINI_API_KEY")

        if not key:
            logger.warning("Gemini API key missing")
            return

        try:

            genai.configure(api_key=key)

            self.gemini_model = genai.GenerativeModel(
                model_name=GEMINI_MODEL
            )

            self.gemini_available = True

            logger.info("Gemini initialized successfully")

        except Exception as e:

            logger.error(
                "Gemini initialization failed",
                extra={"error": str(e)},
            )

    # ============================================================
    # PUBLIC API
    # ============================================================

    def is_available(self) -> bool:
        return any(self._available(p) for p in self.provider_order)

    def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = 0.3,
        max_tokens: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Returns (text, provider).

        Raises LLMUnavailableError when no provider is configured and
        LLMGenerationError when all configured providers failed.
        """

        providers = [p for p in self.provider_order if self._available(p)]

        if not providers:
            raise LLMUnavailableError("No LLM backend available")

        logger.info(
            "LLM request started",
            extra={
                "providers": providers,
                "prompt_length": len(prompt),
            },
        )

        errors = {}

        for provider in providers:

            fn = getattr(self, f"_generate_{provider}")

            try:

                text = self._timed_call(
                    provider,
                    fn,
                    prompt,
                    system_prompt,
                    temperature,
                    max_tokens,
                )

                return text, provider

            except Exception as e:

                errors[provider] = str(e)

                logger.warning(
                    "LLM provider failed",
                    extra={"provider": provider, "error": str(e)},
                )

        raise LLMGenerationError(f"All LLM providers failed: {errors}")

    # ============================================================
    # PROVIDERS
    # ============================================================

    def _available(self, provider: str) -> bool:

        if provider == "openai":
            return self.openai_available

        if provider == "gemini":
            return self.gemini_available

        return False

    def _generate_openai(self, prompt, system_prompt, temperature, max_tokens) -> str:

        messages = []

        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        messages.append({"role": "user", "content": prompt})

        kwargs = {}

        if max_tokens:
            kwargs["max_tokens"] = max_tokens

        response = self.openai.chat.completions.create(
            model=OPENAI_CHAT_MODEL,
            messages=messages,
            temperature=temperature,
            **kwargs,
        )

        text = response.choices[0].message.content

        if not text:
            raise RuntimeError("OpenAI returned empty response")

        return text.strip()

    def _generate_gemini(self, prompt, system_prompt, temperature, max_tokens) -> str:

        generation_config = {"temperature": temperature}

        if max_tokens:
            generation_config["max_output_tokens"] = max_tokens

        full_prompt = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt

        response = self.gemini_model.generate_content(
            full_prompt,
            generation_config=generation_config,
        )

        if not response or not response.text:
            raise RuntimeError("Gemini returned empty response")

        return response.text.strip()

    # ============================================================
    # LATENCY OBSERVABILITY
    # ============================================================

    def _timed_call(self, provider: str, fn, *args):

        start = time.time()

        result = fn(*args)

        latency = time.time() - start

        logger.info(
            "LLM provider success",
            extra={
                "provider": provider,
                "latency_seconds": round(latency, 3),
            },
        )

        return result
