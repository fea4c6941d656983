"""Local development entry point for the planning API.

Usage:
    python run.py
    PLANBOARD_PORT=8000 python run.py

Reads .env first, so DATABASE_URL / SECRET_KEY / FLASK_ENV can live there.
Run `flask --app run db upgrade` once to create the planning tables, then
`flask --app run seed-demo` for a user with an API token.
"""

import os

from dotenv import load_dotenv

load_dotenv()  # Load .env before the config classes read os.environ

from planboard import create_app

app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PLANBOARD_PORT", 5001))
    app.run(debug=app.config.get("DEBUG", False), host="127.0.0.1", port=port)
