"""OAuth credentials for the Gmail delivery channel."""
import json
from pathlib import Path
from typing import Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from .config import settings


def get_oauth_credentials(
    scopes: Optional[list[str]] = None,
    credentials_path: Optional[Path] = None,
    token_path: Optional[Path] = None,
) -> Credentials:
    """
    Load, refresh or obtain OAuth credentials for sending report emails.

    Args:
        scopes: OAuth scopes. Defaults to the configured Gmail send scope.
        credentials_path: OAuth client secrets JSON
        token_path: Where the authorized-user token is cached (JSON)

    Returns:
        Valid Credentials object

    Raises:
        FileNotFoundError: If no token is cached and no client secrets exist.
    """
    scopes = scopes or settings.gmail_scopes
    credentials_path = credentials_path or settings.oauth_credentials_path
    token_path = token_path or settings.oauth_token_path

    creds = None
    if token_path.exists():
        with open(token_path, "r", encoding="utf-8") as fh:
            creds = Credentials.from_authorized_user_info(json.load(fh), scopes)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
    else:
        if not credentials_path.exists():
            raise FileNotFoundError(
                f"OAuth client secrets not found at {credentials_path}. "
                "Download them from GCP Console > APIs & Services > Credentials"
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), scopes)
        creds = flow.run_local_server(port=0)

    token_path.parent.mkdir(parents=True, exist_ok=True)
    with open(token_path, "w", encoding="utf-8") as fh:
        json.dump(
            {
                "token": creds.token,
                "refresh_token": creds.refresh_token,
                "token_uri": creds.token_uri,
                "client_id": creds.client_id,
                "client_secret": creds.client_secret,
                "scopes": list(creds.scopes) if creds.scopes else scopes,
            },
            fh,
        )

    return creds
