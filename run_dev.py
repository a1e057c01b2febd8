#!/usr/bin/env python3
"""
Development runner for the Sign Translator recognition service.
"""
import uvicorn
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from recognition.shared.config import RecognitionSettings, GeminiSettings
from shared.database.config import db_settings

if __name__ == "__main__":
    settings = RecognitionSettings()
    gemini_settings = GeminiSettings()

    print("Starting Sign Translator - Recognition Service")
    print(f"Host: {settings.host}:{settings.port}")
    print(f"Debug: {settings.debug}")
    print(f"Database: {db_settings.database_url}")
    print(f"Providers: {'mock' if settings.mock_providers else gemini_settings.flash_model}")
    print(f"Gemini API key configured: {bool(gemini_settings.gemini_api_key)}")
    print("-" * 50)

    uvicorn.run(
        "recognition.service:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning"
    )
