"""
LLM module for handling AI model interactions
"""

from typing import Literal, Optional

import openai
import requests
from pydantic import BaseModel

import config
from sitebuilder.logger import get_logger

logger = get_logger(__name__)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

EMPTY_RESPONSE_TEXT = "(No response from model.)"
NO_PROVIDER_TEXT = "No AI provider selected. Choose Gemini, ChatGPT, or Grok from the Auto menu."

# provider -> (config attribute holding the key, env var name shown to the user)
PROVIDER_KEYS = {
    "gemini": ("GEMINI_API_KEY", "GEMINI_API_KEY"),
    "chatgpt": ("OPENAI_API_KEY", "OPENAI_API_KEY"),
    "grok": ("XAI_API_KEY", "XAI_API_KEY"),
    "openrouter": ("OPENROUTER_API_KEY", "OPENROUTER_API_KEY"),
}

SUPPORTED_PROVIDERS = (*PROVIDER_KEYS, "none")


class Generation(BaseModel):
    status: Literal["success", "error"]
    text: str = ""
    error_kind: Optional[Literal["config", "provider"]] = None
    http_status: Optional[int] = None


class ProviderError(Exception):
    """Provider answered, but not with usable text"""

    def __init__(self, message: str, http_status: int = 400):
        super().__init__(message)
        self.http_status = http_status


def provider_api_key(provider: str) -> Optional[str]:
    attribute, _ = PROVIDER_KEYS[provider]
    return getattr(config, attribute, None)


def missing_key_message(provider: str) -> str:
    _, env_name = PROVIDER_KEYS[provider]
    return f"{env_name} not set. Add it in .env or .env.local (see .env.example)."


def forward(formatted_prompt: str, provider: str = config.DEFAULT_PROVIDER) -> Generation:
    """Send the prompt to `provider` and return a Generation; never raises"""
    provider = (provider or config.DEFAULT_PROVIDER).lower()

    if provider == "none":
        return Generation(status="success", text=NO_PROVIDER_TEXT)

    if provider not in PROVIDER_KEYS:
        return Generation(
            status="error",
            text=f"Invalid provider: {provider}",
            error_kind="provider",
            http_status=400,
        )

    api_key = provider_api_key(provider)
    if not api_key:
        logger.error(f"{provider} client not configured")
        return Generation(
            status="error",
            text=missing_key_message(provider),
            error_kind="config",
            http_status=503,
        )

    try:
        logger.info(
            f"Starting LLM forward call with {provider}, prompt length: {len(formatted_prompt)}"
        )

        if provider == "gemini":
            text = _call_gemini(api_key, formatted_prompt)
        else:
            text = _call_openai_compatible(provider, api_key, formatted_prompt)

        preview = (text or "")[:100].replace("\n", " ").strip()
        logger.info(f"LLM response ({provider}): length {len(text or '')}, preview: {preview}")

        return Generation(status="success", text=text or EMPTY_RESPONSE_TEXT)

    except ProviderError as e:
        logger.error(f"LLM error ({provider}): {e}")
        return Generation(
            status="error", text=str(e), error_kind="provider", http_status=e.http_status
        )
    except openai.APIStatusError as e:
        logger.error(f"LLM error ({provider}): HTTP {e.status_code}: {e.message}")
        return Generation(
            status="error",
            text=str(e.message),
            error_kind="provider",
            http_status=502 if e.status_code >= 500 else 400,
        )
    except (openai.APIError, requests.RequestException) as e:
        logger.error(f"LLM error ({provider}): {str(e)}", exc_info=True)
        return Generation(
            status="error",
            text=f"Could not reach {provider}: {str(e)}",
            error_kind="provider",
            http_status=502,
        )
    except Exception as e:
        logger.error(f"Error in LLM forward: {str(e)}", exc_info=True)
        return Generation(
            status="error",
            text=f"Error processing request: {str(e)}",
            error_kind="provider",
            http_status=502,
        )


def _call_gemini(api_key: str, formatted_prompt: str) -> str:
    """Call the Gemini REST API"""
    url = GEMINI_API_URL.format(model=config.GEMINI_MODEL)
    data = {"contents": [{"parts": [{"text": formatted_prompt}]}]}
    headers = {"Content-Type": "application/json", "X-goog-api-key": api_key}

    response = requests.post(url, headers=headers, json=data, timeout=config.LLM_TIMEOUT)

    try:
        response_json = response.json()
    except ValueError:
        response_json = {}

    if response.status_code != 200:
        error = response_json.get("error")
        if isinstance(error, dict):
            message = error.get("message")
        else:
            message = error or response_json.get("message")
        raise ProviderError(
            str(message or response.reason or f"HTTP {response.status_code}"),
            http_status=502 if response.status_code >= 500 else 400,
        )

    candidates = response_json.get("candidates") or []
    text = ""
    if candidates:
        parts = (candidates[0].get("content") or {}).get("parts") or []
        if parts:
            text = parts[0].get("text") or ""

    block_reason = (response_json.get("promptFeedback") or {}).get("blockReason")
    if not text and block_reason:
        raise ProviderError("Response was blocked by safety filters.", http_status=400)

    return text


def _openai_client(provider: str, api_key: str) -> openai.OpenAI:
    if provider == "grok":
        return openai.OpenAI(base_url="https://api.x.ai/v1", api_key=api_key)
    if provider == "openrouter":
        return openai.OpenAI(base_url="https://openrouter.ai/api/v1", api_key=api_key)
    return openai.OpenAI(api_key=api_key)


def _call_openai_compatible(provider: str, api_key: str, formatted_prompt: str) -> str:
    """Call an OpenAI-style chat completions endpoint"""
    model = {
        "chatgpt": config.OPENAI_MODEL,
        "grok": config.XAI_MODEL,
        "openrouter": config.OPENROUTER_MODEL,
    }[provider]

    client = _openai_client(provider, api_key)
    logger.info(f"Calling {provider} API with model: {model}")
    response = client.chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": formatted_prompt}],
        timeout=config.LLM_TIMEOUT,
    )
    if not response.choices:
        return ""
    return response.choices[0].message.content or ""
