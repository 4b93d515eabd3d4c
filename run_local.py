#!/usr/bin/env python
"""Script to run the delivery engine locally."""

import os
import sys

from django.core.management import execute_from_command_line


def main():
    """Apply migrations and start the Django development server.

    The retry worker and the RQ dispatch worker run as separate processes
    (``manage.py run_retry_worker`` and ``manage.py rqworker default``).
    """
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "notification_engine.settings")
    execute_from_command_line([sys.argv[0], "migrate", "--noinput"])
    execute_from_command_line([sys.argv[0], "runserver"])


if __name__ == "__main__":
    main()
