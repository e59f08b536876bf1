import os
from dotenv import load_dotenv

load_dotenv()

# === Raw environment values ===

GITHUB_WEBHOOK_SECRET = os.getenv("GITHUB_WEBHOOK_SECRET")

# GitHub App authentication
GITHUB_APP_ID = os.getenv("GITHUB_APP_ID")
GITHUB_PRIVATE_KEY = os.getenv("GITHUB_PRIVATE_KEY")
GITHUB_PRIVATE_KEY_PATH = os.getenv("GITHUB_PRIVATE_KEY_PATH")

GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/")
GITHUB_API_VERSION = "2022-11-28"

# Applied to every outbound GitHub call (connect, read, write and pool)
GITHUB_HTTP_TIMEOUT_SECONDS = float(os.getenv("GITHUB_HTTP_TIMEOUT_SECONDS", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# App assertions are only used to reach installation endpoints
APP_JWT_TTL_SECONDS = 5 * 60

# Installation tokens are refreshed this long before GitHub expires them
INSTALLATION_TOKEN_REFRESH_MARGIN_SECONDS = 60

# Court label styling, used only when the labels have to be created

REVIEWERS_COURT_COLOR = os.getenv("REVIEWERS_COURT_COLOR", "fbca04")
AUTHORS_COURT_COLOR = os.getenv("AUTHORS_COURT_COLOR", "1d76db")

REVIEWERS_COURT_DESCRIPTION = "Waiting on a reviewer"
AUTHORS_COURT_DESCRIPTION = "Waiting on the pull request author"


def validate_github_settings() -> None:
    """
    Validate required GitHub App configuration.

    Raises RuntimeError if required values are missing or ambiguous.
    """
    if not GITHUB_APP_ID:
        raise RuntimeError("GITHUB_APP_ID is not set")

    if GITHUB_PRIVATE_KEY and GITHUB_PRIVATE_KEY_PATH:
        raise RuntimeError(
            "Set only one of GITHUB_PRIVATE_KEY and GITHUB_PRIVATE_KEY_PATH"
        )

    if not GITHUB_PRIVATE_KEY and not GITHUB_PRIVATE_KEY_PATH:
        raise RuntimeError(
            "GITHUB_PRIVATE_KEY or GITHUB_PRIVATE_KEY_PATH must be set"
        )

    if GITHUB_PRIVATE_KEY_PATH and not os.path.exists(GITHUB_PRIVATE_KEY_PATH):
        raise RuntimeError(
            f"GITHUB_PRIVATE_KEY_PATH does not exist: {GITHUB_PRIVATE_KEY_PATH}"
        )
