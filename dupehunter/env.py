from pathlib import Path

from dotenv import load_dotenv


def load_env() -> None:
    """Load .env from the working directory if present (GITHUB_TOKEN, DUPEHUNTER_LOG_LEVEL)."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path)
