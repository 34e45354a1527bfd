from typing import Optional

import httpx
from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel

from labelscan.config import Settings, settings as default_settings
from labelscan.models import RecordValidationError, validate_record
from labelscan.ocr import (
    InvalidImageFormatError,
    compare_all,
    get_ocr_provider,
    recognize_with_timeout,
)
from labelscan.parser import parse_sample_label, validate_fields
from labelscan.sheets import append_sample, verify_connection
from labelscan.telegram import AuthorizedChats, TelegramClient, handle_update

app = FastAPI(title="Sample Label Scanner")

# Cleared on restart, users just unlock again
app.state.authorized_chats = AuthorizedChats()

origins = ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_settings() -> Settings:
    return default_settings


def get_authorized_chats(request: Request) -> AuthorizedChats:
    return request.app.state.authorized_chats

# ==========================================
# 1. DATA MODELS
# ==========================================
class OCRRequest(BaseModel):
    image: str = ""
    provider: Optional[str] = None

class CompareRequest(BaseModel):
    image: str = ""

class ParseRequest(BaseModel):
    text: str = ""

# ==========================================
# 2. EXTRACTION ENDPOINTS
# ==========================================

@app.get("/health")
def health():
    return {"status": "ok"}

@app.post("/api/ocr")
async def run_ocr(payload: OCRRequest, settings: Settings = Depends(get_settings)):
    if not payload.image:
        raise HTTPException(status_code=400, detail="Image is required")

    try:
        provider = get_ocr_provider(payload.provider, settings)
        fields = await recognize_with_timeout(provider, payload.image, settings.OCR_TIMEOUT)
    except InvalidImageFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("[OCR] Extraction failed")
        raise HTTPException(status_code=500, detail=str(e) or "OCR processing failed")

    return {
        "success": True,
        "provider": provider.name,
        "model": provider.model,
        "data": fields.to_dict(),
        "issues": validate_fields(fields),
    }

@app.post("/api/compare")
async def compare_providers(payload: CompareRequest, settings: Settings = Depends(get_settings)):
    if not payload.image:
        raise HTTPException(status_code=400, detail="Image is required")

    report = await compare_all(payload.image, settings)
    return {"success": True, **report.to_dict()}

@app.post("/api/parse")
def parse_text(payload: ParseRequest):
    """Regex-only extraction from raw OCR text, no provider involved"""
    fields = parse_sample_label(payload.text)
    return {"success": True, "data": fields.to_dict(), "issues": validate_fields(fields)}

# ==========================================
# 3. SPREADSHEET
# ==========================================

@app.post("/api/save-to-sheet")
def save_to_sheet(payload: dict = Body(...), settings: Settings = Depends(get_settings)):
    try:
        record = validate_record(payload)
    except RecordValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    append_sample(record, settings)
    return {"success": True, "message": "Data saved successfully"}

@app.get("/api/sheets/verify")
def verify_sheet(settings: Settings = Depends(get_settings)):
    return {"connected": verify_connection(settings)}

# ==========================================
# 4. TELEGRAM WEBHOOK
# ==========================================

@app.get("/api/telegram")
def telegram_status():
    return {"status": "Telegram webhook is active"}

@app.post("/api/telegram")
async def telegram_webhook(
    update: dict = Body(...),
    settings: Settings = Depends(get_settings),
    chats: AuthorizedChats = Depends(get_authorized_chats),
):
    # Always acknowledge, otherwise Telegram keeps redelivering the update
    if not settings.TELEGRAM_BOT_TOKEN:
        logger.error("[TELEGRAM] TELEGRAM_BOT_TOKEN not configured")
        return {"ok": True}

    try:
        async with httpx.AsyncClient(timeout=30.0) as http:
            client = TelegramClient(settings.TELEGRAM_BOT_TOKEN, http)
            outcome = await handle_update(update, client, chats, settings)
        logger.info(f"[TELEGRAM] Update handled: {outcome}")
    except Exception:
        logger.exception("[TELEGRAM] Webhook error")

    return {"ok": True}
