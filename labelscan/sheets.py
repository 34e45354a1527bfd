import json
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from fastapi import HTTPException
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from loguru import logger

from labelscan.config import Settings, settings as default_settings
from labelscan.models import SampleRecord

# ==========================================
# CONFIGURATION & CONSTANTS
# ==========================================

SCOPES = ['https://www.googleapis.com/auth/spreadsheets']
TOKEN_URI = "https://oauth2.googleapis.com/token"


# ==========================================
# ERROR HANDLING (USER FRIENDLY)
# ==========================================

def handle_google_api_error(e: HttpError, context: str = "operation"):
    try:
        error_details = json.loads(e.content.decode())
        error_msg = error_details.get('error', {}).get('message', str(e))
    except (ValueError, AttributeError):
        error_msg = str(e)

    logger.error(f"[SHEETS] Google API Error ({context}): {e.resp.status} - {error_msg}")

    if e.resp.status == 401:
        raise HTTPException(
            status_code=401,
            detail="Google service account credentials were rejected. Check GOOGLE_PRIVATE_KEY."
        )

    if e.resp.status == 403:
        if "rateLimitExceeded" in error_msg or "Quota exceeded" in error_msg:
            raise HTTPException(status_code=429, detail="Google API usage limit exceeded. Please try again later.")
        raise HTTPException(
            status_code=403,
            detail="The service account cannot edit this spreadsheet. Share it with the service account email."
        )

    if e.resp.status == 404:
        raise HTTPException(
            status_code=404,
            detail="The spreadsheet was not found. Check GOOGLE_SHEETS_ID."
        )

    if e.resp.status == 429:
        raise HTTPException(status_code=429, detail="Google API usage limit exceeded. Please try again later.")

    raise HTTPException(status_code=502, detail=f"Google Error during {context}: {error_msg}")

# ==========================================
# AUTHENTICATION
# ==========================================

def get_service_account_creds(settings: Settings):
    """Build service account credentials from settings"""
    private_key = (settings.GOOGLE_PRIVATE_KEY or "").replace("\\n", "\n")
    if not settings.GOOGLE_SERVICE_ACCOUNT_EMAIL or not private_key.strip():
        raise HTTPException(status_code=500, detail="Missing Google service account credentials")

    info = {
        "type": "service_account",
        "client_email": settings.GOOGLE_SERVICE_ACCOUNT_EMAIL,
        "private_key": private_key,
        "token_uri": TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)


def get_sheets_service(settings: Settings):
    creds = get_service_account_creds(settings)
    return build('sheets', 'v4', credentials=creds, cache_discovery=False)

# ==========================================
# SAMPLE ROWS
# ==========================================

def format_timestamp(now: datetime, timezone: str) -> str:
    """DD/MM/YYYY, HH:MM:SS (24h) in the sheet's timezone"""
    return now.astimezone(ZoneInfo(timezone)).strftime("%d/%m/%Y, %H:%M:%S")


def build_row(record: SampleRecord, now: datetime, timezone: str) -> List:
    return [
        format_timestamp(now, timezone),
        record.well,
        record.company,
        record.depth_from,
        record.depth_to,
        record.box_code,
    ]


def append_sample(record: SampleRecord, settings: Optional[Settings] = None, service=None) -> str:
    """
    Append one sample as a new spreadsheet row

    Args:
        record: Validated sample
        settings: Sheet id, range and credentials (global settings by default)
        service: Prebuilt Sheets API service, built from settings when omitted
    """
    settings = settings or default_settings
    if not settings.GOOGLE_SHEETS_ID:
        raise HTTPException(status_code=500, detail="GOOGLE_SHEETS_ID is not configured")

    service = service or get_sheets_service(settings)
    row = build_row(record, datetime.now().astimezone(), settings.SHEET_TIMEZONE)

    try:
        service.spreadsheets().values().append(
            spreadsheetId=settings.GOOGLE_SHEETS_ID,
            range=settings.GOOGLE_SHEETS_RANGE,
            valueInputOption="USER_ENTERED",
            insertDataOption="INSERT_ROWS",
            body={'values': [row]},
        ).execute()
    except HttpError as e:
        handle_google_api_error(e, "Saving Sample")
    except GoogleAuthError as e:
        logger.error(f"[SHEETS] Service account authentication failed: {e}")
        raise HTTPException(status_code=401, detail="Google service account authentication failed") from e

    logger.info(f"[SHEETS] Appended sample for well '{record.well}' ({record.depth_from} - {record.depth_to})")
    return "Appended"


def verify_connection(settings: Optional[Settings] = None, service=None) -> bool:
    """Check the spreadsheet is reachable with the configured account"""
    settings = settings or default_settings
    if not settings.GOOGLE_SHEETS_ID:
        return False

    try:
        service = service or get_sheets_service(settings)
        service.spreadsheets().get(spreadsheetId=settings.GOOGLE_SHEETS_ID).execute()
        return True
    except (HttpError, GoogleAuthError, HTTPException, ValueError) as e:
        logger.warning(f"[SHEETS] Connection check failed: {e}")
        return False
