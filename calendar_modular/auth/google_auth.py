# File: calendar_modular/auth/google_auth.py
"""
Google Calendar credentials for the push sink.

token.json is produced once by the browser consent flow
(scripts/push_schedule.py --login) and reused afterwards; an expired
token is refreshed in place, and a token that can no longer be refreshed
is discarded so the next login starts clean.
"""

from pathlib import Path
from typing import Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build, Resource
from googleapiclient.errors import HttpError

from calendar_modular.core.config_manager import Config
from calendar_modular.utils.logger import setup_logger

logger = setup_logger(__name__)

LOGIN_HINT = "run scripts/push_schedule.py --login"


def _save_token(creds: Credentials, path: Path) -> None:
    path.write_text(creds.to_json(), encoding="utf-8")
    logger.debug(f"Calendar token written to {path}")


def _load_token(path: Path) -> Optional[Credentials]:
    if not path.exists():
        logger.warning(f"No calendar token at {path}")
        return None
    try:
        return Credentials.from_authorized_user_file(str(path), Config.GOOGLE_SCOPES)
    except ValueError as e:
        logger.error(f"Calendar token at {path} is malformed: {e}")
        return None


def _refresh(creds: Credentials, path: Path) -> Optional[Credentials]:
    """Refresh an expired token and persist it; a dead token is removed."""
    try:
        creds.refresh(Request())
    except RefreshError as e:
        logger.error(f"Calendar token could not be refreshed: {e}")
        path.unlink(missing_ok=True)
        return None
    _save_token(creds, path)
    logger.info("Calendar token refreshed")
    return creds


def load_credentials(path: Optional[Path] = None) -> Optional[Credentials]:
    """Usable calendar credentials from token.json, or None when a login is needed."""
    path = Path(path or Config.TOKEN_FILE)
    creds = _load_token(path)
    if creds is None:
        return None
    if creds.valid:
        return creds
    if creds.expired and creds.refresh_token:
        return _refresh(creds, path)
    logger.warning("Calendar token is invalid and has no refresh token")
    return None


def create_initial_token() -> bool:
    """
    Run the browser consent flow once and save token.json.

    Returns:
        True if a token was saved, False otherwise
    """
    secrets = Config.CREDENTIALS_FILE
    if not secrets.exists():
        logger.error(
            f"OAuth client file not found at {secrets}; download it from the "
            f"Google Cloud console before logging in"
        )
        return False

    flow = InstalledAppFlow.from_client_secrets_file(str(secrets), Config.GOOGLE_SCOPES)
    try:
        creds = flow.run_local_server(port=0)
    except Exception as e:
        logger.error(f"Calendar login did not complete: {e}", exc_info=True)
        return False

    _save_token(creds, Config.TOKEN_FILE)
    logger.info(f"Calendar login complete; token saved to {Config.TOKEN_FILE}")
    return True


def get_calendar_service() -> Optional[Resource]:
    """Calendar v3 resource for pushing the schedule, or None without a usable token."""
    creds = load_credentials()
    if creds is None:
        logger.error(f"token.json is missing or invalid; {LOGIN_HINT}")
        return None

    try:
        return build("calendar", "v3", credentials=creds)
    except HttpError as err:
        logger.error(f"Could not reach the Calendar API: {err}", exc_info=True)
        return None
