from __future__ import annotations

from taskboard.store.connector import get_connector

from .app import create_app

app = create_app(get_connector())
