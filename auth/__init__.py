# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Authentication for the registry API and the Sheets API
"""
from auth.registry_auth import RegistryAuth, RegistryAuthError
from auth.sheets_auth import load_sheets_credentials
