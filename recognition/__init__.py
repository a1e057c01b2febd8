"""
Recognition Module

This module handles sign recognition from camera frames and text.

Components:
- shared/ - Common schemas, settings and errors
- dataset/ - Reference set, built-in signs and the feature matcher
- remote/ - Gemini fallback recognizer
- pipeline.py - Local match with remote fallback
- service.py - FastAPI service
"""
