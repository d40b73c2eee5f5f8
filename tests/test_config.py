import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from cvtailor.core import config


class TestSettings(unittest.TestCase):
    def setUp(self) -> None:
        config.reset_settings()
        self.temp_dir = tempfile.mkdtemp()
        self.missing_env_file = os.path.join(self.temp_dir, "missing.env")

    def tearDown(self) -> None:
        config.reset_settings()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_missing_api_key_raises(self) -> None:
        env = {"CVTAILOR_ENV_FILE": self.missing_env_file}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ValueError) as ctx:
                config.get_settings()
        self.assertIn("LLM_API_KEY", str(ctx.exception))

    def test_defaults_applied(self) -> None:
        env = {"CVTAILOR_ENV_FILE": self.missing_env_file, "LLM_API_KEY": "key"}
        with patch.dict(os.environ, env, clear=True):
            settings = config.get_settings()
        self.assertEqual(settings.llm_api_key, "key")
        self.assertEqual(settings.llm_base_url, config.DEFAULT_LLM_BASE_URL)
        self.assertEqual(settings.llm_model, config.DEFAULT_LLM_MODEL)
        self.assertEqual(settings.database_url, config.DEFAULT_DATABASE_URL)
        self.assertEqual(settings.uploads_dir, "uploads/cvs")
        self.assertEqual(settings.llm_timeout, 60.0)

    def test_settings_are_cached_until_reset(self) -> None:
        env = {"CVTAILOR_ENV_FILE": self.missing_env_file, "LLM_API_KEY": "first"}
        with patch.dict(os.environ, env, clear=True):
            first = config.get_settings()
            os.environ["LLM_API_KEY"] = "second"
            self.assertIs(config.get_settings(), first)
            config.reset_settings()
            self.assertEqual(config.get_settings().llm_api_key, "second")

    def test_invalid_number_raises(self) -> None:
        env = {
            "CVTAILOR_ENV_FILE": self.missing_env_file,
            "LLM_API_KEY": "key",
            "LLM_TIMEOUT": "soon",
        }
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ValueError) as ctx:
                config.get_settings()
        self.assertIn("LLM_TIMEOUT", str(ctx.exception))

    def test_env_file_does_not_override_environment(self) -> None:
        env_file = Path(self.temp_dir) / "test.env"
        env_file.write_text(
            "# comment\nLLM_API_KEY='from-file'\nLLM_MODEL=\"file-model\"\nnot a pair\n",
            encoding="utf-8",
        )
        env = {"CVTAILOR_ENV_FILE": str(env_file), "LLM_MODEL": "env-model"}
        with patch.dict(os.environ, env, clear=True):
            settings = config.get_settings()
        self.assertEqual(settings.llm_api_key, "from-file")
        self.assertEqual(settings.llm_model, "env-model")


if __name__ == "__main__":
    unittest.main()
