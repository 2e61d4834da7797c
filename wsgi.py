"""
WSGI entry point for DNS Monitor.

WSGI servers import this module and look for the ``app`` variable.  The
factory reads the monitor file named by ``DNS_MONITOR_CONFIG`` (default
``config.yaml``) and starts the per-check workers inside the server
process.

Run a single worker process: every process would otherwise start its own
set of checks and append to the same log files.

  DNS_MONITOR_CONFIG=/etc/dns-monitor/config.yaml \
    gunicorn --workers 1 --threads 8 wsgi:app

For local development:

  python wsgi.py
"""

from __future__ import annotations

from dns_monitor import create_app

app = create_app()

if __name__ == "__main__":
    settings = app.extensions["dns_monitor"].state.settings
    app.run(host=settings.host, port=settings.port, use_reloader=False)
