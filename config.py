import dotenv
import os

dotenv.load_dotenv()

PORT = int(os.getenv("PORT", "8000"))
API_URL = os.getenv("API_URL", f"http://localhost:{PORT}")
PROSPECTS_DIR = os.getenv("PROSPECTS_DIR", "prospects")
DEBUG_MODE = os.getenv("DEBUG_MODE", "true").lower() in ("true", "1", "yes")

if not PORT:
    raise ValueError("PORT is not set")

OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "meta-llama/llama-4-maverick")
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "4000"))
MAX_TOOL_ITERATIONS = int(os.getenv("MAX_TOOL_ITERATIONS", "5"))

if not OPENROUTER_API_KEY:
    print("Warning: OPENROUTER_API_KEY is not set. Chat replies will fail.")

# Request layer
REQUEST_TIMEOUT_MS = int(os.getenv("REQUEST_TIMEOUT_MS", "60000"))
REQUEST_MAX_ATTEMPTS = int(os.getenv("REQUEST_MAX_ATTEMPTS", "3"))
REQUEST_BASE_DELAY_MS = int(os.getenv("REQUEST_BASE_DELAY_MS", "1000"))

# Preview surface
PREVIEW_REFRESH_DELAY_MS = int(os.getenv("PREVIEW_REFRESH_DELAY_MS", "300"))
LAYOUT_SAVE_DEBOUNCE_MS = int(os.getenv("LAYOUT_SAVE_DEBOUNCE_MS", "200"))
LAYOUT_PREFERENCES_PATH = os.getenv("LAYOUT_PREFERENCES_PATH", "layout.json")
