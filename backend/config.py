"""
Configuration for the Page Forge Backend
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Paths
BASE_DIR = Path(__file__).parent
TEMPLATES_DIR = Path(os.getenv("TEMPLATES_DIR", BASE_DIR / "templates"))
GENERATED_PAGES_DIR = Path(os.getenv("GENERATED_PAGES_DIR", BASE_DIR / "generated-pages"))
BUILD_SYSTEM_DIR = Path(os.getenv("BUILD_SYSTEM_DIR", BASE_DIR / "build-system"))
BUILD_WORKSPACE_ROOT = Path(os.getenv("BUILD_WORKSPACE_ROOT", BUILD_SYSTEM_DIR / "workspaces"))
LOGS_DIR = Path(os.getenv("LOGS_DIR", BASE_DIR / "logs"))

# AI Configuration
# "openai" covers any OpenAI-compatible endpoint (Moonshot/Kimi, OpenAI, ...)
AI_PROVIDER = os.getenv("AI_PROVIDER", "openai").lower()
AI_API_KEY = os.getenv("AI_API_KEY")
AI_BASE_URL = os.getenv("AI_BASE_URL", "https://api.moonshot.cn/v1")
AI_MODEL = os.getenv("AI_MODEL", "moonshot-v1-8k")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
AI_TEMPERATURE = float(os.getenv("AI_TEMPERATURE", "0.7"))
AI_REPAIR_TEMPERATURE = float(os.getenv("AI_REPAIR_TEMPERATURE", "0.2"))
AI_MAX_TOKENS = int(os.getenv("AI_MAX_TOKENS", "8000"))
AI_TITLE_MAX_TOKENS = 100
AI_REPAIR_MAX_TOKENS = 4000
AI_REQUEST_TIMEOUT = int(os.getenv("AI_REQUEST_TIMEOUT", "120"))
AI_MAX_RETRIES = int(os.getenv("AI_MAX_RETRIES", "2"))

# Local model (LM Studio or any OpenAI-compatible local server)
LOCAL_MODEL_ENABLED = _env_bool("LOCAL_MODEL_ENABLED")
LOCAL_MODEL_URL = os.getenv("LOCAL_MODEL_URL")
LOCAL_MODEL_NAME = os.getenv("LOCAL_MODEL_NAME", "qwen3-4b-mix@8bit")
LOCAL_MODEL_API_KEY = os.getenv("LOCAL_MODEL_API_KEY", "not-needed")

# Build Configuration
MAX_REPAIR_RETRIES = int(os.getenv("MAX_REPAIR_RETRIES", "3"))
BUILD_TIMEOUT_SECONDS = int(os.getenv("BUILD_TIMEOUT_SECONDS", "300"))
MAX_CONCURRENT_BUILDS = int(os.getenv("MAX_CONCURRENT_BUILDS", "2"))
NPX_BIN = os.getenv("NPX_BIN", "npx")

# Page types understood by the generator
PAGE_TYPES = ("h5", "admin", "pc")

# Server Configuration
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3001"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    ).split(",")
    if origin.strip()
]
