#!/usr/bin/env python3
# main.py (в корне backend)
"""
Точка входа sshlease API: выдача и отзыв динамических SSH-ключей
"""
import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "sshlease.main:app",
        host=os.getenv("SSHLEASE_HOST", "0.0.0.0"),
        port=int(os.getenv("SSHLEASE_PORT", "8000")),
        reload=False,
    )
