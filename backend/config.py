import os


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name, "")
    try:
        return float(value) if value else default
    except ValueError:
        return default


def _env_list(name: str, default: str) -> frozenset:
    value = os.getenv(name, default)
    return frozenset(item.strip() for item in value.split(",") if item.strip())


# Remote validation endpoint; empty means validate locally only
VALIDATION_API_URL = os.getenv("GRAPH_VALIDATION_API_URL", "").strip()
VALIDATION_TIMEOUT = _env_float("GRAPH_VALIDATION_TIMEOUT", 5.0)

# Seconds a cached result stays valid; 0 disables the cache
VALIDATION_CACHE_TTL = _env_float("GRAPH_VALIDATION_CACHE_TTL", 30.0)

# Node categories that may legitimately sit on the canvas unconnected
STANDALONE_NODE_CATEGORIES = _env_list("GRAPH_VALIDATION_STANDALONE_CATEGORIES", "output,annotation")

SERVER_HOST = os.getenv("GRAPH_VALIDATION_HOST", "0.0.0.0")
SERVER_PORT = int(_env_float("GRAPH_VALIDATION_PORT", 5000))

# Logging
LOG_LEVEL = os.getenv("GRAPH_VALIDATION_LOG_LEVEL", "INFO")
LOG_MAX_LEN = int(_env_float("GRAPH_VALIDATION_LOG_MAX_LEN", 0))
