"""
LedgerFlow WSGI application, served by Gunicorn (see gunicorn.conf.py).

Environment validation runs before Django loads so that a misconfigured
production process exits instead of serving requests.
"""

import os
import sys
import logging

logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "ledgerflow.settings")

try:
    from ledgerflow.env_validation import validate_env
    validate_env()
except Exception as e:
    logger.critical(f"Environment validation failed: {e}")
    sys.exit(1)

from django.core.wsgi import get_wsgi_application

application = get_wsgi_application()
