"""Configuration settings for the upload server."""

import os
from common.constants import DEFAULT_MERGE_CONCURRENCY, DEFAULT_SERVER_PORT, DEFAULT_UPLOAD_DIR


UPLOAD_DIR = os.environ.get("UPLOAD_DIR", DEFAULT_UPLOAD_DIR)

UPLOAD_SERVER_HOST = os.environ.get("UPLOAD_SERVER_HOST", "0.0.0.0")

UPLOAD_SERVER_PORT = int(os.environ.get("UPLOAD_SERVER_PORT", str(DEFAULT_SERVER_PORT)))

MERGE_CONCURRENCY = int(os.environ.get("MERGE_CONCURRENCY", str(DEFAULT_MERGE_CONCURRENCY)))

CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]
