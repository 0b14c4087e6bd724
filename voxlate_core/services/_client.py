"""Shared helpers for acquiring the OpenAI-compatible API client."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from openai import OpenAI

from ..config import DEFAULT_API_BASE_URL

LOGGER = logging.getLogger(__name__)

API_KEY_VARIABLES = ("GROQ_API_KEY", "OPENAI_API_KEY")


@lru_cache(maxsize=4)
def get_openai_client(base_url: str = DEFAULT_API_BASE_URL, timeout: float = 60.0) -> OpenAI:
    """Return a cached client; the credential comes from the environment.

    Retries are disabled so an upstream failure surfaces on the first attempt.
    """

    load_dotenv()
    api_key = next((os.getenv(name) for name in API_KEY_VARIABLES if os.getenv(name)), None)
    if not api_key:
        raise RuntimeError("GROQ_API_KEY is not configured")
    LOGGER.debug("Initialising API client for %s (timeout=%.1fs)", base_url, timeout)
    return OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)


__all__ = ["get_openai_client"]
