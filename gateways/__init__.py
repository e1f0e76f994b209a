# gateways/__init__.py
import os

import requests

API_BASE_URL = os.getenv("POS_API_URL", "http://localhost:8000").strip().rstrip("/")
USER_AGENT = os.getenv("POS_USER_AGENT", "scan-checkout-terminal/0.1")

# Seconds; applies to both lookup and purchase calls.
REQUEST_TIMEOUT = 10

SESSION = requests.Session()
SESSION.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
