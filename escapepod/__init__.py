"""Local server toolkit for Vector robots: license keys and storage, BLE setup, journal parsing and a WSGI web UI."""

__version__ = "0.1.0"