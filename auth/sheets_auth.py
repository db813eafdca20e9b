# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Google service-account credentials for the Sheets API
"""
import logging
from typing import List, Optional

from google.oauth2 import service_account

import config

logger = logging.getLogger(__name__)


def load_sheets_credentials(path: Optional[str] = None, scopes: Optional[List[str]] = None):
    path = path or config.GOOGLE_APPLICATION_CREDENTIALS
    if not path:
        raise RuntimeError("GOOGLE_APPLICATION_CREDENTIALS not set")

    credentials = service_account.Credentials.from_service_account_file(
        path, scopes=scopes or config.SHEETS_SCOPES
    )
    logger.info(f"✅ Loaded Sheets service account {credentials.service_account_email}")
    return credentials
