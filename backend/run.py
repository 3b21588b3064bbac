#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Serves the REST API and the /ws realtime endpoint on one port.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

import uvicorn  # noqa: E402

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    print(f"Starting roomchat at http://localhost:{port}")
    print(f"API Docs: http://localhost:{port}/docs")
    print(f"Realtime: ws://localhost:{port}/ws?token=<jwt>")

    uvicorn.run("roomchat.main:app", host="0.0.0.0", port=port, reload=True, log_level="info")
