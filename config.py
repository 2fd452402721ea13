import os
from pathlib import Path

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent

# Storage endpoint. SQLite file next to the code unless overridden.
DATABASE_URL = os.environ.get(
    "FACE_DATABASE_URL", f"sqlite:///{BASE_DIR / 'facial_recognition.db'}"
)

# facial.recognition.strategy: "mock" (default) or "opencv"
FACIAL_RECOGNITION_STRATEGY = (
    os.environ.get("FACIAL_RECOGNITION_STRATEGY", "").strip() or "mock"
)

# Mock strategy: random embedding size and how many leading bytes are compared.
MOCK_EMBEDDING_SIZE = 128
MOCK_COMPARE_BYTES = 10

# Fraction of compared bytes that must be equal for a mock match (0..1).
MOCK_SIM_THRESHOLD = 0.8

LOG_LEVEL = os.environ.get("FACE_LOG_LEVEL", "INFO").upper()

API_PREFIX = "/api/v1/facial"
