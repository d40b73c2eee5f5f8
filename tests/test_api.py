import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from cvtailor.core import config
from cvtailor.core.database import configure_engine, init_db, reset_engine
from cvtailor.main import app
from cvtailor.services.llm_client import LLMError

LLM_REPLY = '```json\n{"full_name": "Ada Lovelace", "skills": ["Python"]}\n```'


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.mkdtemp()
        self.env = patch.dict(
            os.environ,
            {
                "LLM_API_KEY": "test-key",
                "CVTAILOR_ENV_FILE": "/nonexistent.env",
                "CVTAILOR_UPLOADS_DIR": self.temp_dir,
            },
        )
        self.env.start()
        config.reset_settings()
        configure_engine("sqlite://")
        init_db()
        self.client = TestClient(app)

    def tearDown(self) -> None:
        reset_engine()
        config.reset_settings()
        self.env.stop()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _create_profile(self, name: str = "Ada - Backend") -> dict:
        response = self.client.post(
            "/v1/profiles",
            json={
                "profile_name": name,
                "email": "ada@example.com",
                "full_name": "Ada Lovelace",
                "skills": ["Python"],
                "links": [{"label": "GitHub", "url": "https://github.com/ada"}],
            },
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()


class TestHealth(ApiTestCase):
    def test_health(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_debug_reset(self) -> None:
        response = self.client.post("/v1/debug/reset")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")


class TestProfilesApi(ApiTestCase):
    def test_create_and_read(self) -> None:
        created = self._create_profile()
        self.assertEqual(created["profile_name"], "Ada - Backend")
        self.assertEqual(created["links"], [{"label": "GitHub", "url": "https://github.com/ada"}])
        self.assertEqual(created["experiences"], [])

        response = self.client.get(f"/v1/profiles/{created['id']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["full_name"], "Ada Lovelace")

    def test_duplicate_name_is_bad_request(self) -> None:
        self._create_profile()
        response = self.client.post(
            "/v1/profiles", json={"profile_name": "Ada - Backend", "email": "other@example.com"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Profile with this name already exists")

    @patch("cvtailor.services.profiles._name_taken", return_value=False)
    def test_unique_constraint_race_is_bad_request(self, _mock_taken: MagicMock) -> None:
        self._create_profile()
        response = self.client.post(
            "/v1/profiles", json={"profile_name": "Ada - Backend", "email": "other@example.com"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Profile with this name already exists")

    def test_invalid_body_is_unprocessable(self) -> None:
        response = self.client.post("/v1/profiles", json={"profile_name": "Ada", "email": "nope"})
        self.assertEqual(response.status_code, 422)

    def test_list_returns_summaries(self) -> None:
        self._create_profile("One")
        self._create_profile("Two")

        response = self.client.get("/v1/profiles")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([p["profile_name"] for p in body], ["One", "Two"])
        self.assertEqual(set(body[0]), {"id", "profile_name", "created_at", "updated_at"})

    def test_patch_updates_given_fields(self) -> None:
        created = self._create_profile()

        response = self.client.patch(
            f"/v1/profiles/{created['id']}",
            json={"summary": "Engineer", "experiences": [{"company": "Acme", "position": "Dev"}]},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["summary"], "Engineer")
        self.assertEqual(body["experiences"][0]["company"], "Acme")
        self.assertEqual(body["skills"], ["Python"])

    def test_patch_duplicate_name(self) -> None:
        self._create_profile("One")
        second = self._create_profile("Two")
        response = self.client.patch(f"/v1/profiles/{second['id']}", json={"profile_name": "One"})
        self.assertEqual(response.status_code, 400)

    def test_missing_profile_is_not_found(self) -> None:
        self.assertEqual(self.client.get("/v1/profiles/99").status_code, 404)
        self.assertEqual(self.client.patch("/v1/profiles/99", json={"title": "x"}).status_code, 404)
        self.assertEqual(self.client.delete("/v1/profiles/99").status_code, 404)

    def test_delete(self) -> None:
        created = self._create_profile()
        response = self.client.delete(f"/v1/profiles/{created['id']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], created["id"])
        self.assertEqual(self.client.get(f"/v1/profiles/{created['id']}").status_code, 404)


class TestCvsApi(ApiTestCase):
    @patch("cvtailor.services.cv_generator.get_cv_as_json")
    def _generate(self, profile_id: int, mock_llm: MagicMock):
        mock_llm.return_value = LLM_REPLY
        return self.client.post(
            "/v1/cvs/generate",
            json={"profile_id": profile_id, "job_description": "Python backend role"},
        )

    def test_generate_returns_pdf(self) -> None:
        profile = self._create_profile()

        response = self._generate(profile["id"])

        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(response.headers["content-type"], "application/pdf")
        self.assertIn(f"cv_{profile['id']}.pdf", response.headers["content-disposition"])
        self.assertTrue(response.content.startswith(b"%PDF"))

        cv_id = int(response.headers["x-cv-id"])
        record = self.client.get(f"/v1/cvs/{cv_id}").json()
        self.assertEqual(record["profile_id"], profile["id"])
        self.assertEqual(record["cv_data"]["full_name"], "Ada Lovelace")
        self.assertEqual(record["profile"]["email"], "ada@example.com")
        self.assertTrue(Path(record["pdf_path"]).exists())

    def test_generate_for_missing_profile(self) -> None:
        response = self._generate(404)
        self.assertEqual(response.status_code, 404)

    def test_generate_validates_body(self) -> None:
        profile = self._create_profile()
        response = self.client.post(
            "/v1/cvs/generate", json={"profile_id": profile["id"], "job_description": "   "}
        )
        self.assertEqual(response.status_code, 422)

    @patch("cvtailor.services.cv_generator.get_cv_as_json")
    def test_generate_llm_failure_is_bad_gateway(self, mock_llm: MagicMock) -> None:
        profile = self._create_profile()
        mock_llm.side_effect = LLMError("LLM request timed out.")

        response = self.client.post(
            "/v1/cvs/generate", json={"profile_id": profile["id"], "job_description": "Python"}
        )

        self.assertEqual(response.status_code, 502)
        self.assertIn("timed out", response.json()["detail"])

    @patch("cvtailor.services.cv_generator.get_cv_as_json")
    def test_generate_bad_json_is_bad_gateway(self, mock_llm: MagicMock) -> None:
        profile = self._create_profile()
        mock_llm.return_value = "Here is your CV!"

        response = self.client.post(
            "/v1/cvs/generate", json={"profile_id": profile["id"], "job_description": "Python"}
        )

        self.assertEqual(response.status_code, 502)

    @patch("cvtailor.services.cv_generator.get_cv_as_json")
    def test_generate_config_error_is_server_error(self, mock_llm: MagicMock) -> None:
        profile = self._create_profile()
        mock_llm.side_effect = ValueError("Missing required environment variable: LLM_API_KEY")
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post(
            "/v1/cvs/generate", json={"profile_id": profile["id"], "job_description": "Python"}
        )

        self.assertEqual(response.status_code, 500)
        self.assertEqual(self.client.get("/v1/cvs").json(), [])

    def test_list_download_and_delete(self) -> None:
        profile = self._create_profile()
        other = self._create_profile("Other")
        cv_id = int(self._generate(profile["id"]).headers["x-cv-id"])
        self._generate(other["id"])

        self.assertEqual(len(self.client.get("/v1/cvs").json()), 2)
        by_profile = self.client.get(f"/v1/cvs/profile/{profile['id']}").json()
        self.assertEqual([cv["id"] for cv in by_profile], [cv_id])

        download = self.client.get(f"/v1/cvs/{cv_id}/download")
        self.assertEqual(download.status_code, 200)
        self.assertTrue(download.content.startswith(b"%PDF"))

        deleted = self.client.delete(f"/v1/cvs/{cv_id}")
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(deleted.json()["id"], cv_id)
        self.assertEqual(self.client.get(f"/v1/cvs/{cv_id}").status_code, 404)
        self.assertEqual(self.client.get(f"/v1/cvs/{cv_id}/download").status_code, 404)
        self.assertEqual(self.client.delete(f"/v1/cvs/{cv_id}").status_code, 404)

    def test_deleting_profile_removes_its_cvs(self) -> None:
        profile = self._create_profile()
        cv_id = int(self._generate(profile["id"]).headers["x-cv-id"])
        pdf_path = self.client.get(f"/v1/cvs/{cv_id}").json()["pdf_path"]

        self.client.delete(f"/v1/profiles/{profile['id']}")

        self.assertFalse(Path(pdf_path).exists())
        self.assertEqual(self.client.get("/v1/cvs").json(), [])


if __name__ == "__main__":
    unittest.main()
