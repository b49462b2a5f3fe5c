import json
from datetime import datetime

import pytz
import requests

IST = pytz.timezone("Asia/Kolkata")


class _MockResponse:
    def __init__(self, status_code: int, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is None and payload is not None:
            text = json.dumps(payload)
        self.text = text or ""

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def ist(year, month, day, hour=0, minute=0, second=0):
    return IST.localize(datetime(year, month, day, hour, minute, second))
