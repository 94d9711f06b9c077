import os
from datetime import timezone
from dateutil.parser import isoparse
from flask import current_app


def parse_iso_datetime(value):
    """Parse an ISO 8601 date or datetime into a naive UTC datetime.

    Returns None for empty values and raises ValueError for malformed ones.
    """
    if not value:
        return None
    parsed = isoparse(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_datetime_field(ns, data, field):
    try:
        return parse_iso_datetime(data.get(field))
    except (TypeError, ValueError):
        ns.abort(400, error=f"Invalid date for '{field}'")


def upload_url(file_path):
    base = current_app.config.get('PUBLIC_BASE_URL', '').rstrip('/')
    return f"{base}/uploads/{os.path.basename(file_path)}"
