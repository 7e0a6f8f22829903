from __future__ import annotations

import logging
import os
import unittest
from unittest.mock import patch

from flask import Flask

from codpay.utils.observability import _before_send_scrub, get_logger, init_sentry


class SentryOptionalInitTestCase(unittest.TestCase):
    def test_sentry_init_is_noop_without_dsn(self):
        app = Flask(__name__)
        with patch.dict(os.environ, {"SENTRY_DSN": ""}, clear=False):
            init_sentry(app)

    def test_before_send_redacts_customer_details(self):
        event = {
            "extra": {"customer_email": "buyer@example.com", "cart": {"id": "c1", "billing_address": {"line1": "x"}}},
            "exception": {
                "values": [
                    {"stacktrace": {"frames": [{"vars": {"customer_email": "b@example.com", "cod_order_id": "COD-1"}}]}}
                ]
            },
        }
        scrubbed = _before_send_scrub(event, {})
        self.assertEqual(scrubbed["extra"]["customer_email"], "[REDACTED]")
        self.assertEqual(scrubbed["extra"]["cart"]["billing_address"], "[REDACTED]")
        self.assertEqual(scrubbed["extra"]["cart"]["id"], "c1")
        frame_vars = scrubbed["exception"]["values"][0]["stacktrace"]["frames"][0]["vars"]
        self.assertEqual(frame_vars["customer_email"], "[REDACTED]")
        self.assertEqual(frame_vars["cod_order_id"], "COD-1")


class LoggerSelectionTestCase(unittest.TestCase):
    def test_falls_back_to_package_logger(self):
        self.assertEqual(get_logger().name, "codpay")

    def test_uses_app_logger_in_context(self):
        app = Flask("codpay_logger_test")
        with app.app_context():
            self.assertIs(get_logger(), app.logger)

    def test_explicit_logger_wins(self):
        logger = logging.getLogger("codpay.custom")
        self.assertIs(get_logger(logger), logger)


if __name__ == "__main__":
    unittest.main()
