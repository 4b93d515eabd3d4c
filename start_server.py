"""Production server startup script for the notification delivery engine.

Entry point for serving the Django application with Gunicorn in
containers. Background delivery runs in RQ workers started separately.
"""

import os
import sys

from gunicorn.app.wsgiapp import run


def main():
    """Start the delivery engine API using Gunicorn.

    Worker and thread counts can be tuned with GUNICORN_WORKERS and
    GUNICORN_THREADS; access and error logs go to stdout/stderr.
    """
    sys.argv = [
        "gunicorn",
        "notification_engine.wsgi:application",
        "--bind",
        os.getenv("BIND_ADDRESS", "0.0.0.0:8000"),
        "--workers",
        os.getenv("GUNICORN_WORKERS", "4"),
        "--threads",
        os.getenv("GUNICORN_THREADS", "2"),
        "--timeout",
        "60",
        "--access-logfile",
        "-",
        "--error-logfile",
        "-",
    ]
    run()


if __name__ == "__main__":
    main()
