#!/usr/bin/env python3
"""Run script for voicecal."""

import logging
import os

import uvicorn

if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    uvicorn.run(
        "voicecal.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
