import json
import sys
import unittest
from dataclasses import replace
from io import BytesIO
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fastapi.testclient import TestClient  # noqa: E402

from app.ai.errors import (  # noqa: E402
    GatewayCreditsError,
    GatewayNotConfiguredError,
    GatewayRateLimitError,
)
from app.core.config import settings  # noqa: E402
from app.core.rate_limit import limiter  # noqa: E402
from app.main import app  # noqa: E402

PARSED_RESUME = {
    "name": "José García",
    "email": "jose@example.com",
    "phone": "+34 600 000 000",
    "summary": "Backend engineer",
    "skills": ["Python", "C++"],
    "experience": [
        {
            "company": "Tech Corp",
            "title": "Senior Developer",
            "duration": "2019-2024",
            "bullets": ["Built payment APIs"],
        }
    ],
    "education": [{"institution": "UPM", "degree": "BSc", "field": "CS", "year": 2018}],
    "projects": [],
}


class FakeAIClient:
    model = "fake-model"

    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    def complete_json(self, messages, *, temperature=None, max_output_tokens=None):
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        if isinstance(self.payload, str):
            return self.payload
        return json.dumps(self.payload)

    def user_prompt(self) -> str:
        return self.calls[-1][-1].content


class ResumeApiTestCase(unittest.TestCase):
    api_key = None

    @classmethod
    def setUpClass(cls):
        limiter.enabled = False
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls):
        limiter.enabled = settings.rate_limit_enabled

    def setUp(self):
        settings_patch = patch("app.core.security.settings", replace(settings, api_key=self.api_key))
        settings_patch.start()
        self.addCleanup(settings_patch.stop)

    def use_ai(self, fake: FakeAIClient) -> FakeAIClient:
        ai_patch = patch("app.ai.gateway.get_ai_client", return_value=fake)
        ai_patch.start()
        self.addCleanup(ai_patch.stop)
        return fake


class HealthTests(ResumeApiTestCase):
    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")


class ParseResumeTests(ResumeApiTestCase):
    def test_parse_sanitizes_once_before_prompting(self):
        fake = self.use_ai(FakeAIClient(PARSED_RESUME))
        response = self.client.post(
            "/v1/resume/parse",
            json={"resume_text": "José García\nWorked in C:\\Projects\\App \\uDoe"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["parsed_data"]["name"], "José García")
        self.assertEqual(body["parsed_data"]["education"][0]["year"], "2018")
        self.assertEqual(
            fake.user_prompt(),
            "Parse this resume:\n\n" + r"José García\u000aWorked in C:\\Projects\\App \\uDoe",
        )

    def test_parse_rejects_empty_text(self):
        self.use_ai(FakeAIClient(PARSED_RESUME))
        response = self.client.post("/v1/resume/parse", json={"resume_text": ""})
        self.assertEqual(response.status_code, 422)

    def test_missing_fields_default_to_empty(self):
        self.use_ai(FakeAIClient({"name": "Jane", "skills": None}))
        response = self.client.post("/v1/resume/parse", json={"resume_text": "Jane"})
        self.assertEqual(response.status_code, 200)
        parsed = response.json()["parsed_data"]
        self.assertEqual(parsed["skills"], [])
        self.assertEqual(parsed["experience"], [])
        self.assertEqual(parsed["email"], "")


class UploadResumeTests(ResumeApiTestCase):
    def test_txt_upload_is_extracted_sanitized_and_parsed(self):
        fake = self.use_ai(FakeAIClient(PARSED_RESUME))
        content = "Jane Doe\tEngineer\nC:\\Tools 👋".encode("utf-8")
        response = self.client.post(
            "/v1/resume/upload",
            files={"file": ("resume.txt", content, "text/plain")},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["document"]["source_type"], "txt")
        self.assertEqual(body["document"]["filename"], "resume.txt")
        self.assertEqual(body["document"]["char_count"], len(content.decode("utf-8")))
        self.assertTrue(body["document"]["doc_id"])
        self.assertEqual(body["parsed_data"]["name"], "José García")
        self.assertTrue(fake.user_prompt().endswith(r"Jane Doe\u0009Engineer\u000aC:\\Tools 👋"))

    def test_docx_upload(self):
        from docx import Document

        document = Document()
        document.add_paragraph("Jane Doe")
        document.add_paragraph("Skills: C:\\Tools")
        buffer = BytesIO()
        document.save(buffer)

        fake = self.use_ai(FakeAIClient(PARSED_RESUME))
        response = self.client.post(
            "/v1/resume/upload",
            files={
                "file": (
                    "resume.docx",
                    buffer.getvalue(),
                    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                )
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["document"]["source_type"], "docx")
        self.assertIn(r"Jane Doe\u000aSkills: C:\\Tools", fake.user_prompt())

    def test_unsupported_extension(self):
        fake = self.use_ai(FakeAIClient(PARSED_RESUME))
        response = self.client.post(
            "/v1/resume/upload",
            files={"file": ("resume.png", b"\x89PNG\r\n\x1a\n", "image/png")},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(fake.calls, [])

    def test_legacy_doc_rejected(self):
        self.use_ai(FakeAIClient(PARSED_RESUME))
        response = self.client.post(
            "/v1/resume/upload",
            files={"file": ("resume.doc", b"\xd0\xcf\x11\xe0", "application/msword")},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn(".docx", response.json()["detail"])

    def test_pdf_signature_mismatch(self):
        self.use_ai(FakeAIClient(PARSED_RESUME))
        response = self.client.post(
            "/v1/resume/upload",
            files={"file": ("resume.pdf", b"not a pdf", "application/pdf")},
        )
        self.assertEqual(response.status_code, 400)

    def test_oversized_upload(self):
        self.use_ai(FakeAIClient(PARSED_RESUME))
        with patch("app.api.v1.resume.settings", replace(settings, max_upload_bytes=16)):
            response = self.client.post(
                "/v1/resume/upload",
                files={"file": ("resume.txt", b"x" * 64, "text/plain")},
            )
        self.assertEqual(response.status_code, 413)

    def test_blank_document_is_unprocessable(self):
        fake = self.use_ai(FakeAIClient(PARSED_RESUME))
        response = self.client.post(
            "/v1/resume/upload",
            files={"file": ("resume.txt", b"   \n  ", "text/plain")},
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(fake.calls, [])


class JobFitTests(ResumeApiTestCase):
    payload = {
        "parsed_resume": {**PARSED_RESUME, "summary": "Line one\nline two"},
        "job_title": "Backend Engineer",
        "job_description": "Python\tDjango, paths like C:\\srv",
    }

    def test_analyze_returns_snake_case_and_clamps_scores(self):
        fake = self.use_ai(
            FakeAIClient(
                {
                    "matchScore": 140,
                    "matchedSkills": ["Python"],
                    "missingSkills": ["Django"],
                    "recommendations": ["Add Django projects", "Quantify impact"],
                    "atsScore": "72%",
                    "keywordAlignment": "Good overlap on backend keywords.",
                }
            )
        )
        response = self.client.post("/v1/job-fit/analyze", json=self.payload)
        self.assertEqual(response.status_code, 200)
        analysis = response.json()["analysis"]
        self.assertEqual(analysis["match_score"], 100)
        self.assertEqual(analysis["ats_score"], 72)
        self.assertEqual(analysis["matched_skills"], ["Python"])
        self.assertEqual(analysis["recommendations"], "Add Django projects\nQuantify impact")

        prompt = fake.user_prompt()
        self.assertIn("Job Title: Backend Engineer", prompt)
        self.assertIn(r"Python\u0009Django, paths like C:\\srv", prompt)
        self.assertIn("José García", prompt)
        self.assertNotIn("Line one\nline two", prompt)

    def test_improve_resume(self):
        fake = self.use_ai(
            FakeAIClient(
                {
                    "improvedSummary": "Backend engineer with 5 years of Python.",
                    "improvedBullets": [
                        {
                            "originalExperience": "Tech Corp",
                            "improvedBullets": ["Built payment APIs serving 1M users"],
                        }
                    ],
                    "suggestedSkills": ["Django"],
                    "formattingTips": ["Use a single column layout"],
                }
            )
        )
        response = self.client.post("/v1/resume/improve", json=self.payload)
        self.assertEqual(response.status_code, 200)
        improvement = response.json()["improvement"]
        self.assertEqual(improvement["improved_summary"], "Backend engineer with 5 years of Python.")
        self.assertEqual(improvement["improved_bullets"][0]["original_experience"], "Tech Corp")
        self.assertEqual(improvement["suggested_skills"], ["Django"])
        self.assertIn("Target Job: Backend Engineer", fake.user_prompt())


class GatewayErrorMappingTests(ResumeApiTestCase):
    def test_rate_limit_maps_to_429(self):
        self.use_ai(FakeAIClient(error=GatewayRateLimitError()))
        response = self.client.post("/v1/resume/parse", json={"resume_text": "Jane"})
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()["retry_after"], 60)
        self.assertEqual(response.headers["Retry-After"], "60")

    def test_credits_depleted_maps_to_402(self):
        self.use_ai(FakeAIClient(error=GatewayCreditsError()))
        response = self.client.post("/v1/resume/parse", json={"resume_text": "Jane"})
        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.json()["action"], "topup")

    def test_not_configured_maps_to_500(self):
        self.use_ai(FakeAIClient(error=GatewayNotConfiguredError()))
        response = self.client.post("/v1/resume/parse", json={"resume_text": "Jane"})
        self.assertEqual(response.status_code, 500)
        self.assertIn("not configured", response.json()["error"])

    def test_malformed_ai_output_maps_to_502(self):
        self.use_ai(FakeAIClient("not json"))
        response = self.client.post("/v1/resume/parse", json={"resume_text": "Jane"})
        self.assertEqual(response.status_code, 502)

    def test_non_finite_score_maps_to_502(self):
        for payload in ('{"matchScore": Infinity}', '{"atsScore": "inf"}', '{"matchScore": NaN}'):
            with self.subTest(payload=payload):
                self.use_ai(FakeAIClient(payload))
                response = self.client.post("/v1/job-fit/analyze", json=JobFitTests.payload)
                self.assertEqual(response.status_code, 502)

    def test_wrong_shape_maps_to_502(self):
        self.use_ai(FakeAIClient({"skills": {"nested": "object"}}))
        response = self.client.post("/v1/resume/parse", json={"resume_text": "Jane"})
        self.assertEqual(response.status_code, 502)


class ApiKeyTests(ResumeApiTestCase):
    api_key = "secret-key"

    def test_missing_key_rejected(self):
        fake = self.use_ai(FakeAIClient(PARSED_RESUME))
        response = self.client.post("/v1/resume/parse", json={"resume_text": "Jane"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(fake.calls, [])

    def test_valid_key_accepted(self):
        self.use_ai(FakeAIClient(PARSED_RESUME))
        response = self.client.post(
            "/v1/resume/parse",
            json={"resume_text": "Jane"},
            headers={"X-API-Key": "secret-key"},
        )
        self.assertEqual(response.status_code, 200)


if __name__ == "__main__":
    unittest.main()
