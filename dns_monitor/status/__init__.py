"""Status blueprint - read-only HTML view of every check."""

from __future__ import annotations

from flask import Blueprint

bp: Blueprint = Blueprint("status", __name__)

from dns_monitor.status import routes  # noqa: E402, F401
