"""OAuth setup script - run this once to authorize Gmail report delivery."""
from scheduled_research.core.auth import get_oauth_credentials
from scheduled_research.core.config import settings


def main():
    """Run OAuth flow and save token."""
    print("=" * 60)
    print("Scheduled Research OAuth Setup")
    print("=" * 60)
    print()
    print(f"Using credentials: {settings.oauth_credentials_path}")
    print(f"Token will be saved to: {settings.oauth_token_path}")
    print()
    print("A browser window will open for authorization.")
    print("Sign in with the Google account that should send reports.")
    print()

    try:
        get_oauth_credentials(settings.gmail_scopes)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        raise SystemExit(1)

    print()
    print("=" * 60)
    print("SUCCESS! OAuth token saved.")
    print("=" * 60)
    print()
    print("Restart the API to enable email delivery:")
    print("  scheduled-research-api")


if __name__ == "__main__":
    main()
