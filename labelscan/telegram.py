"""
Telegram bot webhook

Photos sent to the bot are read with the configured provider and, when
well and depth range are present, appended to the spreadsheet. An
optional access code locks the bot until a chat sends /unlock CODE.
"""

import base64
from typing import Callable, Optional, Set

import httpx
from fastapi.concurrency import run_in_threadpool
from loguru import logger

from labelscan.config import Settings, settings as default_settings
from labelscan.models import ExtractedFields, SampleRecord, validate_record
from labelscan.ocr.base import BaseOCRProvider, recognize_with_timeout
from labelscan.ocr.config import get_ocr_provider
from labelscan.sheets import append_sample

TELEGRAM_API_URL = "https://api.telegram.org"
VALID_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}

ProviderSelector = Callable[[Optional[str], Settings], BaseOCRProvider]
SampleSaver = Callable[[SampleRecord, Settings], object]


class AuthorizedChats:
    """
    Chats that have sent the right /unlock code.

    Owned by whoever creates it (one per app instance), nothing is
    persisted, so a restart means users unlock again.
    """

    def __init__(self):
        self._chat_ids: Set[int] = set()

    def grant(self, chat_id: int):
        self._chat_ids.add(chat_id)

    def is_authorized(self, chat_id: int) -> bool:
        return chat_id in self._chat_ids

    def reset(self):
        self._chat_ids.clear()

    def __len__(self) -> int:
        return len(self._chat_ids)


class TelegramClient:
    """Thin async wrapper around the Bot API calls the webhook needs"""

    def __init__(self, token: str, http: httpx.AsyncClient):
        self.token = token
        self.http = http

    async def send_message(self, chat_id: int, text: str):
        response = await self.http.post(
            f"{TELEGRAM_API_URL}/bot{self.token}/sendMessage",
            json={"chat_id": chat_id, "text": text, "parse_mode": "HTML"},
        )
        if response.status_code != 200:
            logger.warning(f"[TELEGRAM] sendMessage failed: {response.status_code} {response.text[:200]}")

    async def get_file_url(self, file_id: str) -> str:
        response = await self.http.get(
            f"{TELEGRAM_API_URL}/bot{self.token}/getFile", params={"file_id": file_id}
        )
        data = response.json()
        file_path = (data.get("result") or {}).get("file_path")
        if not data.get("ok") or not file_path:
            raise RuntimeError("Failed to get file path")
        return f"{TELEGRAM_API_URL}/file/bot{self.token}/{file_path}"

    async def download_image(self, url: str) -> str:
        """Download a photo as an inline data URI"""
        response = await self.http.get(url)
        response.raise_for_status()

        # Telegram often answers application/octet-stream for photos
        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        media_type = content_type if content_type in VALID_IMAGE_TYPES else "image/jpeg"

        payload = base64.b64encode(response.content).decode('utf-8')
        return f"data:{media_type};base64,{payload}"


# ==========================================
# MESSAGES
# ==========================================

def start_message(user_name: str, locked: bool) -> str:
    unlock_hint = (
        "\n\n🔒 <b>This bot is protected.</b>\nSend <code>/unlock YOUR_CODE</code> to access."
        if locked else ""
    )
    return (
        f"Hi {user_name}! 👋\n\n"
        "Send me a photo of a sample label and I'll extract the data and save it to Google Sheets.\n\n"
        "<b>Label format:</b>\n"
        "• Well: [name]\n"
        "• Company: [name]\n"
        "• Depth: [from] - [to]\n"
        "• Box Code: [XXX.XX.XXX]"
        f"{unlock_hint}"
    )


def incomplete_message(fields: ExtractedFields) -> str:
    depth_from = fields.depth_from if fields.depth_from is not None else "❌"
    depth_to = fields.depth_to if fields.depth_to is not None else "❌"
    return (
        "⚠️ <b>Incomplete data extracted:</b>\n\n"
        f"• Well: {fields.well or '❌ Not found'}\n"
        f"• Company: {fields.company or '-'}\n"
        f"• Depth: {depth_from} - {depth_to}\n"
        f"• Box Code: {fields.box_code or '-'}\n\n"
        "Please try again with a clearer photo."
    )


def saved_message(record: SampleRecord) -> str:
    return (
        "✅ <b>Saved to Google Sheets!</b>\n\n"
        f"• Well: {record.well}\n"
        f"• Company: {record.company or '-'}\n"
        f"• Depth: {record.depth_from} - {record.depth_to}\n"
        f"• Box Code: {record.box_code or '-'}"
    )


ACCESS_REQUIRED_MESSAGE = "🔒 <b>Access required</b>\n\nSend <code>/unlock YOUR_CODE</code> to use this bot."
SEND_PHOTO_MESSAGE = "📷 Please send me a photo of a sample label to extract data."


# ==========================================
# WEBHOOK HANDLER
# ==========================================

def _save_in_threadpool(record: SampleRecord, settings: Settings):
    return run_in_threadpool(append_sample, record, settings)


async def handle_update(
    update: dict,
    client: TelegramClient,
    chats: AuthorizedChats,
    settings: Optional[Settings] = None,
    select_provider: Optional[ProviderSelector] = None,
    save_sample: Optional[SampleSaver] = None,
) -> str:
    """
    Process one Telegram update

    Returns:
        A short tag describing what was done (useful for logs and tests)
    """
    settings = settings or default_settings
    select_provider = select_provider or get_ocr_provider
    save_sample = save_sample or _save_in_threadpool
    access_code = settings.TELEGRAM_ACCESS_CODE

    message = update.get("message")
    if not message:
        return "ignored"

    chat_id = message["chat"]["id"]
    user_name = (message.get("from") or {}).get("first_name") or "User"
    text = message.get("text")

    if text == "/start":
        locked = bool(access_code) and not chats.is_authorized(chat_id)
        await client.send_message(chat_id, start_message(user_name, locked))
        return "start"

    if text and text.startswith("/unlock "):
        if not access_code:
            await client.send_message(chat_id, "🔓 No access code required. You can use the bot freely!")
            return "unlock_not_required"

        code = text[len("/unlock "):].strip()
        if code == access_code:
            chats.grant(chat_id)
            await client.send_message(chat_id, "✅ <b>Access granted!</b>\n\nYou can now send photos to scan.")
            return "unlocked"

        await client.send_message(chat_id, "❌ Invalid code. Please try again.")
        return "unlock_rejected"

    if access_code and not chats.is_authorized(chat_id):
        await client.send_message(chat_id, ACCESS_REQUIRED_MESSAGE)
        return "locked"

    photos = message.get("photo") or []
    if photos:
        await client.send_message(chat_id, "⏳ Processing image...")
        try:
            # Largest size is last
            file_url = await client.get_file_url(photos[-1]["file_id"])
            image = await client.download_image(file_url)

            provider = select_provider(None, settings)
            fields = await recognize_with_timeout(provider, image, settings.OCR_TIMEOUT)

            if not fields.well or fields.depth_from is None or fields.depth_to is None:
                await client.send_message(chat_id, incomplete_message(fields))
                return "incomplete"

            record = validate_record(fields.to_dict())
            await save_sample(record, settings)
        except Exception as e:
            logger.exception(f"[TELEGRAM] Failed to process photo for chat {chat_id}")
            detail = getattr(e, "detail", None) or str(e) or type(e).__name__
            await client.send_message(chat_id, f"❌ Failed to process image: {detail}")
            return "failed"

        await client.send_message(chat_id, saved_message(record))
        return "saved"

    if text:
        await client.send_message(chat_id, SEND_PHOTO_MESSAGE)
        return "prompted"

    return "ignored"
