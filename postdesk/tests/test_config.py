import os
import unittest
from unittest.mock import patch

from postdesk import app as app_module
from postdesk.config import Settings


class SettingsTests(unittest.TestCase):
    def test_port_comes_from_environment(self):
        with patch.dict(os.environ, {"POSTDESK_PORT": "9123"}):
            self.assertEqual(Settings(_env_file=None).port, 9123)

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.port, 8000)
        self.assertEqual(settings.session_duration_seconds, 4 * 60 * 60)
        self.assertFalse(settings.use_in_memory_backends)

    def test_main_listens_on_configured_port(self):
        with patch.object(
            app_module, "get_settings", return_value=Settings(_env_file=None, port=9001)
        ), patch("uvicorn.run") as run:
            app_module.main()
        self.assertEqual(run.call_args.kwargs["port"], 9001)


if __name__ == "__main__":
    unittest.main()
