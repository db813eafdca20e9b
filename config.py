# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Environment-based configuration for Bus Location Sync
"""
import os

# Environment Detection
ENVIRONMENT = os.environ.get('ENVIRONMENT', 'production')
DEBUG = ENVIRONMENT == 'development'

# School / Spreadsheet
SCHOOL_ID = os.environ.get('SCHOOL_ID', '')
SPREADSHEET_ID = os.environ.get('SPREADSHEET_ID', '')
SHEET_NAME = os.environ.get('SHEET_NAME', 'Locations')
SHEET_READ_RANGE = os.environ.get('SHEET_READ_RANGE', 'A:ZZ')
SHEET_DEFAULT_WIDTH = int(os.environ.get('SHEET_DEFAULT_WIDTH', 6))  # two blocks
GOOGLE_APPLICATION_CREDENTIALS = os.environ.get('GOOGLE_APPLICATION_CREDENTIALS', '')
SHEETS_SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

# Registry API
REGISTRY_API_URL = os.environ.get('REGISTRY_API_URL', 'https://api.yourbcabus.com/graphql')
REGISTRY_TOKEN_URL = os.environ.get('REGISTRY_TOKEN_URL', 'https://api.yourbcabus.com/token')
REGISTRY_CLIENT_ID = os.environ.get('REGISTRY_CLIENT_ID', '')
REGISTRY_CLIENT_SECRET = os.environ.get('REGISTRY_CLIENT_SECRET', '')
REGISTRY_SCOPES = [
    'read',
    'bus.create',
    'bus.update',
    'bus.updateStatus'
]

# Application Settings
PORT = int(os.environ.get('PORT', 5000))

# Sync Directions
SYNC_SHEET_TO_REGISTRY = os.environ.get('SYNC_SHEET_TO_REGISTRY', 'True').lower() == 'true'
SYNC_REGISTRY_TO_SHEET = os.environ.get('SYNC_REGISTRY_TO_SHEET', 'True').lower() == 'true'
DRY_RUN_MODE = os.environ.get('DRY_RUN_MODE', 'False').lower() == 'true'

# Sync Interval (seconds between the end of one cycle and the start of the next)
SYNC_INTERVAL_SEC = int(os.environ.get('SYNC_INTERVAL_SEC', 10))

# Remote Calls
REQUEST_TIMEOUT = float(os.environ.get('REQUEST_TIMEOUT', 30))
APPLY_WORKERS = int(os.environ.get('APPLY_WORKERS', 4))

# Retry Settings (token acquisition only)
MAX_RETRIES = int(os.environ.get('MAX_RETRIES', 3))
BASE_DELAY = float(os.environ.get('BASE_DELAY', 1.0))
MAX_DELAY = float(os.environ.get('MAX_DELAY', 30.0))
TOKEN_COOLDOWN_SECONDS = float(os.environ.get('TOKEN_COOLDOWN_SECONDS', 60))
TOKEN_COOLDOWN_ROUNDS = int(os.environ.get('TOKEN_COOLDOWN_ROUNDS', 3))

# Logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
STRUCTURED_LOGGING = os.environ.get('STRUCTURED_LOGGING', 'True').lower() == 'true'

# Development Settings
if DEBUG:
    LOG_LEVEL = 'DEBUG'
    DRY_RUN_MODE = True
    SYNC_INTERVAL_SEC = 30
