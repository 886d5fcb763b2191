import dotenv
import os

# .env.local wins over .env
dotenv.load_dotenv(".env.local")
dotenv.load_dotenv()

PORT = int(os.getenv("PORT", "8000"))

if not PORT:
    raise ValueError("PORT is not set")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
XAI_API_KEY = os.getenv("XAI_API_KEY")

OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "meta-llama/llama-4-maverick")

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
XAI_MODEL = os.getenv("XAI_MODEL", "grok-beta")

DEFAULT_PROVIDER = os.getenv("DEFAULT_PROVIDER", "gemini").lower()
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

if not (GEMINI_API_KEY or OPENAI_API_KEY or XAI_API_KEY or OPENROUTER_API_KEY):
    print("Warning: no AI provider key is set. Website chat will only answer with errors.")
