"""
Status page route.

Takes one snapshot of the shared state under its read lock and renders it
outside the lock, so a slow client never holds up the scheduler.
"""

from __future__ import annotations

import logging

from flask import abort, current_app, render_template
from jinja2 import TemplateError

from dns_monitor import EXTENSION_KEY
from dns_monitor.models import classify_status
from dns_monitor.state import CheckSnapshot
from dns_monitor.status import bp

logger = logging.getLogger(__name__)


def _css_class(check: CheckSnapshot) -> str:
    return classify_status(check.status, check.spec.domain, check.spec.record_type)


@bp.route("/")
def index():
    """Current status of every configured check."""
    monitor = current_app.extensions[EXTENSION_KEY]
    settings = monitor.state.settings
    checks = monitor.state.snapshot()

    try:
        return render_template(
            "status.html",
            settings=settings,
            checks=[(check, _css_class(check)) for check in checks],
        )
    except TemplateError:
        logger.exception("Failed to render status page")
        abort(500)
