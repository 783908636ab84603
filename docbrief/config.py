# docbrief/config.py
"""
Configuration for the docbrief document briefing service.

This file centralizes all tunable parameters for the upload, chat and
brief pipelines. Deployment-specific values come from the environment.
"""

import os


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


# ========== STORAGE ==========

STORAGE_DIR = os.getenv("STORAGE_DIR", "storage")
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


# ========== DOCUMENT PROCESSING ==========

# Sliding window over raw characters
CHUNK_SIZE = _env_int("CHUNK_SIZE", 1000)
CHUNK_OVERLAP = _env_int("CHUNK_OVERLAP", 200)

# Stripped windows shorter than this are dropped
MIN_CHUNK_CHARACTERS = _env_int("MIN_CHUNK_CHARACTERS", 1)

# Rough page estimate: chunk_index // CHUNKS_PER_PAGE + 1
CHUNKS_PER_PAGE = 3

# File upload limits
MAX_FILE_SIZE_MB = _env_int("MAX_FILE_SIZE_MB", 10)
ALLOWED_FILE_EXTENSIONS = [".pdf", ".docx", ".txt", ".md"]

MAX_DOCUMENT_CHARACTERS = 2_000_000
MAX_CHUNKS_PER_DOCUMENT = 2000


# ========== EMBEDDING CONFIGURATION ==========

EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
# Alternative: "text-embedding-3-large" (3072 dimensions)

EMBEDDING_TIMEOUT_SECONDS = _env_float("EMBEDDING_TIMEOUT_SECONDS", 30.0)
EMBEDDING_MAX_RETRIES = _env_int("EMBEDDING_MAX_RETRIES", 2)


# ========== RETRIEVAL CONFIGURATION ==========

# Minimum cosine similarity for a chunk to reach the prompt
MATCH_THRESHOLD = _env_float("MATCH_THRESHOLD", 0.7)

# Number of chunks returned by the similarity search
MATCH_COUNT = _env_int("MATCH_COUNT", 5)

# Chunks used when the similarity search itself errors
FALLBACK_CHUNK_COUNT = 3

MAX_CONTEXT_CHARACTERS = 10_000
MAX_BRIEF_CONTEXT_CHARACTERS = 15_000


# ========== LLM CONFIGURATION ==========

OPENAI_CHAT_MODEL = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

CHAT_TEMPERATURE = 0.3
CHAT_MAX_TOKENS = 800

BRIEF_TEMPERATURE = 0.3
BRIEF_MAX_OUTPUT_TOKENS = 2048

LLM_PROVIDER_ORDER = [
    p.strip()
    for p in os.getenv("LLM_PROVIDER_ORDER", "openai,gemini").split(",")
    if p.strip()
]


# ========== VECTOR DATABASE ==========

# ":memory:" runs an embedded Qdrant, anything else is treated as a URL
QDRANT_URL = os.getenv("QDRANT_URL", ":memory:")
QDRANT_API_KEY = os.getenv("QDRANT_API_KEY")
QDRANT_COLLECTION = os.getenv("QDRANT_COLLECTION", "document_chunks")


# ========== API / DASHBOARD ==========

CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
]

API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8000")


# ========== DESIGN TRADE-OFFS (DOCUMENTED) ==========

"""
TRADE-OFF DECISIONS:

1. CHUNK_SIZE = 1000 characters, CHUNK_OVERLAP = 200:
   - Character windows need no tokenizer and behave the same for every file type
   - No sentence or section awareness; a window may split a sentence
   - Overlap keeps a split sentence whole in at least one chunk

2. MATCH_THRESHOLD = 0.7:
   - Lower → more context, more unrelated chunks in the prompt
   - Higher → empty answers for paraphrased questions

3. MATCH_COUNT = 5:
   - Keeps the prompt well under MAX_CONTEXT_CHARACTERS

4. Hosted vector database (Qdrant):
   - Similarity search, filtering and persistence are delegated
   - ":memory:" is for local development and tests only; data is lost on restart
"""
