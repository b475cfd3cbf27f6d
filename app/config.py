# app/config.py
import os
from dotenv import load_dotenv

load_dotenv()

# --- Service Settings ---
PUZZLE_API_URL = os.getenv("PUZZLE_API_URL", "https://marcconrad.com/uob/heart/api.php")
BACKEND_API_URL = os.getenv("BACKEND_API_URL", "http://localhost:8000/api").rstrip("/")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))
ADVANCE_DELAY = float(os.getenv("ADVANCE_DELAY", "1.5"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    ).split(",")
    if origin.strip()
]

# --- Game Constants ---
DIFFICULTY_DURATIONS = {
    "Easy": 60,
    "Medium": 40,
    "Hard": 30,
    "Expert": 15,
}
DIFFICULTY_DESCRIPTIONS = {
    "Easy": "Perfect for beginners",
    "Medium": "A bit more challenging",
    "Hard": "For experienced players",
    "Expert": "Ultimate challenge!",
}
SECOND_CHANCE_DURATION = 20  # Fixed regardless of difficulty
MAX_CHANCES = 3
TICK_INTERVAL = 1.0  # Seconds per timer tick

# Accepted range for a submitted answer
ANSWER_MIN = 0
ANSWER_MAX = 100
