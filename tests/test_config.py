import unittest

from pydantic import ValidationError

from app.core.config import Settings


class TestSettings(unittest.TestCase):
    def test_defaults_need_no_environment(self) -> None:
        settings = Settings(_env_file=None, TMDB_API_KEY="")
        self.assertTrue(settings.DATABASE_URL.startswith("sqlite"))
        self.assertFalse(settings.backfill_enabled)
        self.assertEqual(settings.LOG_LEVEL, "INFO")

    def test_cors_origins_accept_csv_and_json(self) -> None:
        csv_style = Settings(_env_file=None, CORS_ORIGINS="https://a.com, https://b.com")
        json_style = Settings(_env_file=None, CORS_ORIGINS='["https://a.com"]')
        self.assertEqual(csv_style.CORS_ORIGINS, ["https://a.com", "https://b.com"])
        self.assertEqual(json_style.CORS_ORIGINS, ["https://a.com"])

    def test_log_level_is_normalized_and_checked(self) -> None:
        self.assertEqual(Settings(_env_file=None, LOG_LEVEL=" debug ").LOG_LEVEL, "DEBUG")
        with self.assertRaises(ValidationError):
            Settings(_env_file=None, LOG_LEVEL="chatty")

    def test_negative_backfill_delay_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(_env_file=None, BACKFILL_DELAY_SECONDS=-1)


if __name__ == "__main__":
    unittest.main()
