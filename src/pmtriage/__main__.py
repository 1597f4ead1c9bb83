"""Entry point for running pmtriage as a module.

Usage:
    python -m pmtriage validate-config
    python -m pmtriage --help
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before any other imports that need env vars

from pmtriage.cli import main  # noqa: E402

if __name__ == "__main__":
    main()
