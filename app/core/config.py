import os

# Validation defaults
DEFAULT_NUMBER_TOLERANCE = float(os.getenv("DEFAULT_NUMBER_TOLERANCE", "0.01"))
EVALUATION_TIMEOUT_MS = int(os.getenv("EVALUATION_TIMEOUT_MS", "5000"))
SELECTOR_MAX_ITERATIONS = int(os.getenv("SELECTOR_MAX_ITERATIONS", "1000"))
DEBUG_SELECTORS = os.getenv("DEBUG_SELECTORS", "false").lower() == "true"

# Service limits
BATCH_CONCURRENCY_LIMIT = int(os.getenv("BATCH_CONCURRENCY_LIMIT", "5"))
QUICK_VALIDATION_TIMEOUT_MS = int(os.getenv("QUICK_VALIDATION_TIMEOUT_MS", "1000"))
MAX_BATCH_ITEMS = int(os.getenv("MAX_BATCH_ITEMS", "100"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Per-shape defaults, merged under any request-level config
DEFAULT_SHAPE_CONFIGS = {
    "number": {"tolerance": DEFAULT_NUMBER_TOLERANCE},
    "set": {"tolerance": 0.0},
    "vector": {"tolerance": DEFAULT_NUMBER_TOLERANCE},
    "point": {"tolerance": DEFAULT_NUMBER_TOLERANCE},
    "formula": {"tolerance": DEFAULT_NUMBER_TOLERANCE},
    "equation": {"tolerance": DEFAULT_NUMBER_TOLERANCE},
    "antiderivative": {"tolerance": DEFAULT_NUMBER_TOLERANCE},
}

# Per-shape evaluation budgets (ms)
SHAPE_TIMEOUTS_MS = {
    "number": 1000,
    "set": 3000,
    "vector": 2000,
    "point": 1500,
    "formula": 5000,
    "equation": 4000,
    "antiderivative": 6000,
}
