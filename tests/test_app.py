"""
API tests for the resume analyzer endpoints.
"""

import json
import os
import subprocess
import sys
import tempfile
import time
import unittest
from pathlib import Path
from unittest import mock

from fastapi.testclient import TestClient

import app as app_module
from app import app, build_taxonomy, get_settings, get_email_service, get_taxonomy
from errors import DeliveryError, ExtractionError
from matching import KeywordTaxonomy, TaxonomyError
from models import Settings

RESUME_TEXT = "I built a React app"
JD_TEXT = "Looking for React and Docker experience, must have built things"


def fake_extract(data, label="PDF"):
    """Stand-in for PDF extraction: the uploaded bytes are the text."""
    if data == b"corrupt":
        raise ExtractionError(f"Could not read text from the {label}.", detail="PdfReadError")
    return data.decode("utf-8")


def upload(name, content):
    return (name, content, "application/pdf")


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        self.settings = Settings(max_upload_bytes=1024)
        self.email_service = mock.MagicMock()
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.dependency_overrides[get_email_service] = lambda: self.email_service
        patcher = mock.patch("app.extract_text_from_pdf_bytes", side_effect=fake_extract)
        self.extract = patcher.start()
        self.addCleanup(patcher.stop)
        self.client = TestClient(app, raise_server_exceptions=False)

    def tearDown(self):
        app.dependency_overrides.clear()

    def analyze(self, resume=RESUME_TEXT.encode(), jd=JD_TEXT.encode(), jd_field="jd", data=None):
        files = {}
        if resume is not None:
            files["resume"] = upload("resume.pdf", resume)
        if jd is not None:
            files[jd_field] = upload("jd.pdf", jd)
        return self.client.post("/analyze", files=files, data=data or {})


class TestStatusEndpoints(ApiTestCase):

    def test_root(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"ok": True})


class TestAnalyze(ApiTestCase):

    def test_analyze_success(self):
        response = self.analyze()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["message"], "Resume analyzed successfully!")
        self.assertEqual(body["extractedText"], RESUME_TEXT)
        self.assertEqual(body["highlightedText"], "I <mark>built</mark> a <mark>React</mark> app")
        self.assertEqual(body["matchPercentage"], 7)  # 3 of the built-in 43
        self.assertEqual(set(body["matchedWords"]), {"react", "built"})
        self.assertIn("docker", body["missingWords"])
        self.assertIn("experience", body["missingWords"])
        self.assertFalse(body["emailed"])
        self.email_service.send_report.assert_not_called()

    def test_job_description_alias(self):
        response = self.analyze(jd_field="jobDescription")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(set(response.json()["matchedWords"]), {"react", "built"})

    def test_missing_documents(self):
        for kwargs in ({"resume": None}, {"jd": None}, {"resume": None, "jd": None}):
            response = self.analyze(**kwargs)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(
                response.json()["message"],
                "Both resume and job description PDFs are required.",
            )

    def test_payload_too_large(self):
        response = self.analyze(resume=b"x" * 2048)
        self.assertEqual(response.status_code, 413)
        self.assertEqual(response.json()["message"], "File too large (max 1KB).")
        self.extract.assert_not_called()

    def test_extraction_failure(self):
        response = self.analyze(jd=b"corrupt")
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["message"], "Could not read text from the job description PDF.")

    def test_blank_resume_text(self):
        response = self.analyze(resume=b"   \n  ")
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["message"], "Could not read text from the resume PDF.")

    def test_blank_job_description_scores_zero(self):
        response = self.analyze(jd=b" ")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["matchPercentage"], 0)
        self.assertEqual(body["matchedWords"], [])
        self.assertEqual(body["missingWords"], [])

    def test_extraction_timeout(self):
        self.settings = Settings(max_upload_bytes=1024, extraction_timeout_seconds=0.05)

        def slow_extract(data, label="PDF"):
            time.sleep(0.5)
            return data.decode("utf-8")

        self.extract.side_effect = slow_extract
        response = self.analyze()
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["message"], "Timed out reading the uploaded PDFs.")

    def test_analyze_with_email(self):
        response = self.analyze(data={"email": "candidate@example.com"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["emailed"])
        self.assertIn("candidate@example.com", body["message"])
        recipient, report = self.email_service.send_report.call_args[0]
        self.assertEqual(recipient, "candidate@example.com")
        self.assertEqual(report.extracted_text, RESUME_TEXT)
        self.assertEqual(report.match_percentage, 7)

    def test_analyze_email_delivery_failure(self):
        self.email_service.send_report.side_effect = DeliveryError(detail="SMTP 535 secret")
        response = self.analyze(data={"email": "candidate@example.com"})
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["message"], "Failed to send email report.")

    def test_custom_taxonomy_and_scoring_mode(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "taxonomy.json"
            path.write_text(
                json.dumps({"skills": ["react", "docker"], "experience": ["built"]}),
                encoding="utf-8",
            )
            taxonomy = build_taxonomy(Settings(taxonomy_path=str(path)))
            app.dependency_overrides[get_taxonomy] = lambda: taxonomy
            response = self.analyze()
            self.assertEqual(response.json()["matchPercentage"], 60)

            self.settings = Settings(max_upload_bytes=1024, scoring_mode="posting")
            response = self.analyze(jd=b"React built")
            self.assertEqual(response.json()["matchPercentage"], 100)

    def test_non_file_parts_are_missing_input(self):
        response = self.client.post("/analyze", data={"resume": "x", "jd": "y"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {"message": "Both resume and job description PDFs are required."},
        )

    def test_oversized_request_rejected_before_reading(self):
        with mock.patch("app.read_upload", new_callable=mock.AsyncMock) as reader:
            response = self.analyze(resume=b"x" * (100 * 1024))
        self.assertEqual(response.status_code, 413)
        self.assertEqual(response.json(), {"message": "File too large (max 1KB)."})
        reader.assert_not_awaited()
        self.extract.assert_not_called()

    def test_unexpected_error_is_generic(self):
        with mock.patch("app.match_resume_to_job", side_effect=RuntimeError("db password=hunter2")):
            response = self.analyze()
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Server error. Please try again."})


class TestEmailReport(ApiTestCase):

    def payload(self, **overrides):
        data = {
            "email": "candidate@example.com",
            "extractedText": RESUME_TEXT,
            "matchPercentage": 60,
            "matchedWords": ["react", "built"],
            "missingWords": ["docker"],
        }
        data.update(overrides)
        return data

    def test_email_report(self):
        response = self.client.post("/email-report", json=self.payload())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Email sent successfully"})
        recipient, report = self.email_service.send_report.call_args[0]
        self.assertEqual(recipient, "candidate@example.com")
        self.assertEqual(report.matched_words, ["react", "built"])

    def test_missing_recipient(self):
        for email in (None, "", "   "):
            response = self.client.post("/email-report", json=self.payload(email=email))
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.json()["message"], "Recipient email is required.")
        self.email_service.send_report.assert_not_called()

    def test_missing_body(self):
        response = self.client.post("/email-report")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Recipient email is required."})
        self.email_service.send_report.assert_not_called()

    def test_invalid_field_uses_message_key(self):
        response = self.client.post("/email-report", json=self.payload(matchPercentage=150))
        self.assertEqual(response.status_code, 422)
        body = response.json()
        self.assertNotIn("detail", body)
        self.assertTrue(body["message"].startswith("Invalid request: matchPercentage:"))
        self.email_service.send_report.assert_not_called()

    def test_delivery_failure(self):
        self.email_service.send_report.side_effect = DeliveryError(detail="SMTPAuthenticationError")
        response = self.client.post("/email-report", json=self.payload())
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json(), {"message": "Failed to send email report."})


class TestTaxonomyStartup(unittest.TestCase):

    def test_default_taxonomy_without_path(self):
        self.assertEqual(build_taxonomy(Settings()), KeywordTaxonomy.default())
        self.assertIs(get_taxonomy(), app_module.TAXONOMY)

    def test_bad_path_raises(self):
        with tempfile.TemporaryDirectory() as tmp:
            bad = Path(tmp) / "broken.json"
            bad.write_text("{not json", encoding="utf-8")
            for path in (Path(tmp) / "missing.json", bad):
                with self.assertRaises(TaxonomyError):
                    build_taxonomy(Settings(taxonomy_path=str(path)))

    def test_server_refuses_to_start_with_bad_path(self):
        root = Path(app_module.__file__).resolve().parent
        env = dict(os.environ, TAXONOMY_PATH=str(root / "does-not-exist.json"))
        proc = subprocess.run(
            [sys.executable, "-c", "import app"],
            cwd=root,
            env=env,
            capture_output=True,
            text=True,
            timeout=120,
        )
        self.assertNotEqual(proc.returncode, 0)
        self.assertIn("TaxonomyError", proc.stderr)


class TestSettings(unittest.TestCase):

    def test_settings_from_environment(self):
        env = {
            "MAX_UPLOAD_MB": "2",
            "SCORING_MODE": "posting",
            "SMTP_PORT": "2525",
            "EMAIL_USER": "sender@example.com",
            "CORS_ORIGINS": "http://localhost:5173, https://example.com",
        }
        with mock.patch.dict("os.environ", env):
            settings = app_module.get_settings()
        self.assertEqual(settings.max_upload_bytes, 2 * 1024 * 1024)
        self.assertEqual(settings.scoring_mode, "posting")
        self.assertEqual(settings.smtp_port, 2525)
        self.assertEqual(settings.email_user, "sender@example.com")
        self.assertEqual(settings.cors_origins, ["http://localhost:5173", "https://example.com"])


if __name__ == "__main__":
    unittest.main()
