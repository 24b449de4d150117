import json
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))


SAMPLE_CONFIG = {
    "type": "CLEAR-TEXT",
    "smtpSettings": {
        "host": "smtp.example.com",
        "port": "587",
        "username": "alice",
        "password": "s3cret",
        "useSSL": "false",
        "useTLS": "true",
    },
    "recipients": [
        {"name": "Ann Active", "email": "ann@example.com", "type": "customer", "active": True},
        {"name": "Bob Inactive", "email": "bob@example.com", "type": "customer", "active": False},
        {"name": "Cat Active", "email": "cat@example.com", "type": "partner", "active": "true"},
    ],
    "templates": [
        {"name": "welcome", "path": "templates/welcome.html", "subject": "Welcome", "active": True},
        {"name": "product-update", "path": "templates/update.html", "subject": "News", "active": False},
    ],
}


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "email-config.json"
    path.write_text(json.dumps(SAMPLE_CONFIG, indent=2), encoding="utf-8")
    return path
