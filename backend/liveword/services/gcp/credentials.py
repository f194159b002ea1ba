"""
GCP credential bootstrap shared by the Speech, Translation and TTS clients.
"""

import os

from liveword.config.settings import settings


def ensure_credentials():
    """Ensure Google credentials are set in environment."""
    if settings.GOOGLE_APPLICATION_CREDENTIALS and "GOOGLE_APPLICATION_CREDENTIALS" not in os.environ:
        creds_path = settings.GOOGLE_APPLICATION_CREDENTIALS
        if not os.path.exists(creds_path):
            possible_paths = [
                os.path.join("config", os.path.basename(creds_path)),
                os.path.join(os.getcwd(), os.path.basename(creds_path)),
            ]

            for path in possible_paths:
                if os.path.exists(path):
                    creds_path = path
                    break

        os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = creds_path
