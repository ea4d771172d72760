"""Prepare a local Character Forge checkout.

Writes the provider and server settings into ``.env`` (keeping a ``.env.bak``
copy of the previous file) and creates the backup table in the configured
database.
"""
from __future__ import annotations

import argparse
import shutil
import sys
from pathlib import Path
from typing import Dict

from dotenv import dotenv_values, load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

DEFAULT_ENV_PATH = REPO_ROOT / ".env"
BACKUP_SUFFIX = ".bak"
MASKED_KEYS = {"SECRET_KEY"}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Write Character Forge settings to .env and create the character backup table."
        )
    )
    parser.add_argument(
        "--flask-app",
        default="wsgi.py",
        help="Value for FLASK_APP (default: wsgi.py)",
    )
    parser.add_argument(
        "--secret-key",
        help="Key used to sign editor form CSRF tokens. Existing value is kept when omitted.",
    )
    parser.add_argument(
        "--openrouter-base-url",
        help="OpenAI-compatible endpoint for generation (default in config: OpenRouter).",
    )
    parser.add_argument(
        "--app-url",
        help="HTTP-Referer reported to the provider.",
    )
    parser.add_argument(
        "--app-title",
        help="X-Title reported to the provider and shown on the index route.",
    )
    parser.add_argument(
        "--host",
        help="Interface wsgi.py binds to when run directly.",
    )
    parser.add_argument(
        "--port",
        help="Port wsgi.py listens on when run directly.",
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy URL of the backup store (default: instance/character_forge.db).",
    )
    parser.add_argument(
        "--env-path",
        type=Path,
        default=DEFAULT_ENV_PATH,
        help="The .env file to create or update.",
    )
    parser.add_argument(
        "--skip-db",
        action="store_true",
        help="Only write .env; do not create the backup table.",
    )
    return parser.parse_args()


def read_env(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    return {key: value for key, value in dotenv_values(path).items() if value is not None}


def write_env(path: Path, values: Dict[str, str]) -> None:
    if path.exists():
        backup_path = path.with_suffix(path.suffix + BACKUP_SUFFIX)
        shutil.copy(path, backup_path)
        print(f"Previous {path.name} saved as {backup_path.name}.")
    lines = [f"{key}={value}" for key, value in values.items()]
    path.write_text("\n".join(lines) + "\n")
    print(f"Wrote {len(values)} settings to {path}.")


def update_env_file(args: argparse.Namespace) -> Dict[str, str]:
    """Merge the settings given on the command line into ``args.env_path``."""

    settings = {
        "FLASK_APP": args.flask_app,
        "SECRET_KEY": args.secret_key,
        "OPENROUTER_BASE_URL": args.openrouter_base_url,
        "APP_URL": args.app_url,
        "APP_TITLE": args.app_title,
        "HOST": args.host,
        "PORT": args.port,
        "DATABASE_URL": args.database_url,
    }

    env_data = read_env(args.env_path)
    env_data.update({key: value for key, value in settings.items() if value})
    write_env(args.env_path, env_data)
    return env_data


def initialize_database(env_path: Path) -> None:
    # Config reads the environment on import, so load the new .env first.
    load_dotenv(env_path, override=True)
    from character_forge import create_app

    # create_app creates the backup table on start-up.
    app = create_app()
    print(f"Backup table ready in {app.config['SQLALCHEMY_DATABASE_URI']}.")


def main() -> None:
    args = parse_args()
    env_values = update_env_file(args)

    if args.skip_db:
        print("Skipping database setup.")
    else:
        initialize_database(args.env_path)

    print("\nCharacter Forge settings:")
    for key in sorted(env_values):
        value = "***" if key in MASKED_KEYS else env_values[key]
        print(f"  {key}={value}")


if __name__ == "__main__":
    main()
