import os

from dotenv import load_dotenv

from registry import MAX_ROOM_MEMBERS

# Values already in the environment win over the .env file
ENV_FILE = os.getenv("ENV_FILE", ".env")
load_dotenv(ENV_FILE)

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# Comma separated list of origins allowed by CORS
ORIGINS = [origin.strip() for origin in os.getenv("ORIGIN", "http://localhost:5173").split(",") if origin.strip()]

ROOM_CAPACITY = int(os.getenv("ROOM_CAPACITY", MAX_ROOM_MEMBERS))
