"""
Run the Meal Planner CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    init         Create the database schema
    seed         Load sample users, menus, preferences and schedules
    register     Create a new account
    login        Sign in and save credentials locally (~/.meal-planner/session.json)
    logout       Clear stored credentials
    whoami       Show the currently logged-in user
    menus        Browse the menu catalog
    preferences  Show or update your food preferences
    suggest      Generate today's breakfast, lunch and dinner
    today        Show today's suggestion
    reroll       Re-pick one meal of today's suggestion

Examples:
    python run_cli.py seed
    python run_cli.py login
    python run_cli.py preferences --cuisine Thai --avoid peanut --budget-max 120
    python run_cli.py reroll dinner

Environment variables (all optional):
    DB_PATH                        SQLite database file path (default: meal_planner.db)
    JWT_SECRET                     Secret key for signing JWT tokens
    DEFAULT_TIMEZONE               Timezone for new accounts (default: Asia/Bangkok)
    SUGGESTION_CACHE_TTL_SECONDS   Candidate pool lifetime (default: 300)
    SUGGESTION_SAMPLE_SIZE         Candidates sampled per meal slot (default: 10)
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adapters.cli.main import app

if __name__ == "__main__":
    app()
