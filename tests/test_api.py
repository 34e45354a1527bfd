import unittest
from unittest.mock import patch

from fastapi import HTTPException
from fastapi.testclient import TestClient

from labelscan.main import app, get_settings
from tests.support import COMPLETE_REPLY, SAMPLE_IMAGE, StaticProvider, make_settings


class APITestCase(unittest.TestCase):
    settings_overrides = {}

    def setUp(self):
        self.settings = make_settings(**self.settings_overrides)
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.state.authorized_chats.reset()
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()


class TestExtraction(APITestCase):
    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_ocr_requires_image(self):
        response = self.client.post("/api/ocr", json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Image is required")

    def test_ocr_success(self):
        provider = StaticProvider(COMPLETE_REPLY)
        with patch("labelscan.main.get_ocr_provider", return_value=provider) as mock_get:
            response = self.client.post("/api/ocr", json={"image": SAMPLE_IMAGE, "provider": "gemini"})

        self.assertEqual(response.status_code, 200)
        mock_get.assert_called_once_with("gemini", self.settings)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["provider"], "static")
        self.assertEqual(body["model"], "static-model")
        self.assertEqual(body["data"]["depthFrom"], 2480)
        self.assertEqual(body["issues"], [])

    def test_ocr_without_credentials(self):
        response = self.client.post("/api/ocr", json={"image": SAMPLE_IMAGE})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "ANTHROPIC_API_KEY is not configured")

    def test_ocr_invalid_image(self):
        self.settings = make_settings(ANTHROPIC_API_KEY="sk-ant-test")
        response = self.client.post("/api/ocr", json={"image": "not-an-image"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid image format")

    def test_ocr_unparsable_reply(self):
        provider = StaticProvider("I cannot read this label.")
        with patch("labelscan.main.get_ocr_provider", return_value=provider):
            response = self.client.post("/api/ocr", json={"image": SAMPLE_IMAGE})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Could not parse JSON from response")

    def test_compare_without_credentials(self):
        response = self.client.post("/api/compare", json={"image": SAMPLE_IMAGE})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([r["provider"] for r in body["results"]], ["gemini", "openai", "claude"])
        self.assertEqual(body["summary"]["failed"], 3)
        self.assertEqual(body["results"][1]["error"], "OPENAI_API_KEY not configured")

    def test_compare_requires_image(self):
        self.assertEqual(self.client.post("/api/compare", json={"image": ""}).status_code, 400)

    def test_parse_text(self):
        text = "Well: PM-3\nCompany: Petronas\nDepth: 2,480 - 2,490\nBox 040.bb.020"
        response = self.client.post("/api/parse", json={"text": text})
        body = response.json()
        self.assertEqual(body["data"], {
            "well": "PM-3",
            "company": "Petronas",
            "depthFrom": 2480,
            "depthTo": 2490,
            "boxCode": "040.BB.020",
        })
        self.assertEqual(body["issues"], [])


class TestSaveToSheet(APITestCase):
    def test_validation_error(self):
        response = self.client.post("/api/save-to-sheet", json={"well": "PM-3", "depthFrom": "2480", "depthTo": 2490})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Depth From and Depth To must be numbers")

    def test_depth_order(self):
        response = self.client.post("/api/save-to-sheet", json={"well": "PM-3", "depthFrom": 2490, "depthTo": 2480})
        self.assertEqual(response.status_code, 400)

    @patch("labelscan.main.append_sample")
    def test_nan_depth_rejected(self, mock_append):
        response = self.client.post(
            "/api/save-to-sheet",
            content='{"well": "PM-3", "depthFrom": NaN, "depthTo": 2490}',
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Depth From and Depth To must be numbers")
        mock_append.assert_not_called()

    @patch("labelscan.main.append_sample", return_value="Appended")
    def test_saved(self, mock_append):
        payload = {"well": " PM-3 ", "company": "Petronas", "depthFrom": 2480, "depthTo": 2490, "boxCode": "040.BB.020"}
        response = self.client.post("/api/save-to-sheet", json=payload)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "message": "Data saved successfully"})
        record, settings = mock_append.call_args.args
        self.assertEqual(record.well, "PM-3")
        self.assertIs(settings, self.settings)

    @patch("labelscan.main.append_sample")
    def test_sheet_error_passes_through(self, mock_append):
        mock_append.side_effect = HTTPException(status_code=404, detail="The spreadsheet was not found. Check GOOGLE_SHEETS_ID.")
        response = self.client.post("/api/save-to-sheet", json={"well": "PM-3", "depthFrom": 1, "depthTo": 2})
        self.assertEqual(response.status_code, 404)

    def test_verify_without_sheet(self):
        self.assertEqual(self.client.get("/api/sheets/verify").json(), {"connected": False})


class TestTelegramWebhook(APITestCase):
    def test_status(self):
        self.assertEqual(self.client.get("/api/telegram").json(), {"status": "Telegram webhook is active"})

    def test_acknowledged_without_token(self):
        with patch("labelscan.main.handle_update") as mock_handle:
            response = self.client.post("/api/telegram", json={"message": {"chat": {"id": 1}, "text": "/start"}})
        self.assertEqual(response.json(), {"ok": True})
        mock_handle.assert_not_called()

    def test_handler_errors_are_acknowledged(self):
        self.settings = make_settings(TELEGRAM_BOT_TOKEN="123:abc")
        with patch("labelscan.main.handle_update", side_effect=RuntimeError("network down")) as mock_handle:
            response = self.client.post("/api/telegram", json={"message": {"chat": {"id": 1}, "text": "/start"}})
        self.assertEqual(response.json(), {"ok": True})
        update, _, chats, settings = mock_handle.call_args.args
        self.assertIs(chats, app.state.authorized_chats)
        self.assertIs(settings, self.settings)


if __name__ == "__main__":
    unittest.main()
