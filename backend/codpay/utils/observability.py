from __future__ import annotations

import logging
import os

from flask import current_app, has_app_context

_SCRUB_KEYS = ("customer_email", "billing_address", "shipping_address", "email")


def get_logger(logger: logging.Logger | None = None) -> logging.Logger:
    if logger is not None:
        return logger
    if has_app_context():
        return current_app.logger
    return logging.getLogger("codpay")


def init_sentry(app) -> None:
    dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not dsn:
        app.logger.info("sentry_disabled_no_dsn")
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        traces_rate_raw = (os.getenv("SENTRY_TRACES_SAMPLE_RATE") or "0.0").strip()
        try:
            traces_rate = float(traces_rate_raw)
        except Exception:
            traces_rate = 0.0

        sentry_sdk.init(
            dsn=dsn,
            environment=(os.getenv("SENTRY_ENVIRONMENT") or os.getenv("CODPAY_ENV") or "dev"),
            release=(os.getenv("GIT_SHA") or "unknown"),
            integrations=[FlaskIntegration()],
            send_default_pii=False,
            traces_sample_rate=max(0.0, min(traces_rate, 1.0)),
            before_send=_before_send_scrub,
        )
        app.logger.info("sentry_enabled")
    except Exception as e:
        app.logger.warning("sentry_init_failed err=%s", e)


def _scrub(value):
    if isinstance(value, dict):
        out = {}
        for key, inner in value.items():
            if str(key).lower() in _SCRUB_KEYS:
                out[key] = "[REDACTED]"
            else:
                out[key] = _scrub(inner)
        return out
    if isinstance(value, list):
        return [_scrub(v) for v in value]
    return value


def _before_send_scrub(event, hint):
    try:
        if "extra" in event:
            event["extra"] = _scrub(event.get("extra") or {})
        for frame_holder in (event.get("exception") or {}).get("values") or []:
            for frame in (frame_holder.get("stacktrace") or {}).get("frames") or []:
                if "vars" in frame:
                    frame["vars"] = _scrub(frame.get("vars") or {})
    except Exception:
        pass
    return event
