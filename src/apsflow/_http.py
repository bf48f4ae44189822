"""Small HTTP-related constants shared across apsflow.

This module is intentionally tiny to avoid circular imports and drift.
"""

from __future__ import annotations

APS_BASE_URL = "https://developer.api.autodesk.com"

JSON_API_ACCEPT = "application/vnd.api+json, application/json;q=0.9"
JSON_ACCEPT = "application/json"
JSON_CONTENT_TYPE = "application/json"
OCTET_STREAM = "application/octet-stream"
