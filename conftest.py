# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Test session setup: keep the app's singleton engine off the filesystem."""

import os

os.environ["SNAPSHOT_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")
