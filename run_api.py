"""
Run the Meal Planner REST API.

Usage:
    python run_api.py

Environment variables (all optional):
    APP_ENV                        development, test or production (default: development)
    PORT                           Listen port (default: 8000)
    LOG_LEVEL                      Root log level (default: INFO)
    DB_PATH                        SQLite database file path (default: meal_planner.db)
    JWT_SECRET                     Secret key for signing JWT tokens (change in production!)
    JWT_EXPIRY_HOURS               Token lifetime in hours (default: 168)
    DEFAULT_TIMEZONE               Timezone for new accounts (default: Asia/Bangkok)
    CORS_ORIGINS                   Comma-separated allowed origins (default: *)
    DOCS_ENABLED                   Serve /docs and /openapi.json (default: true)
    SUGGESTION_CACHE_TTL_SECONDS   Candidate pool lifetime (default: 300)
    SUGGESTION_SAMPLE_SIZE         Candidates sampled per meal slot (default: 10)
"""

import os
import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "adapters.rest.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("APP_ENV", "development") == "development",
    )
