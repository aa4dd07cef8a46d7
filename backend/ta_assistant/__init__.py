"""
This is the main package for the TA Assignment Assistant backend.

It contains subpackages for:
- api: API endpoints and request handling
- core: configuration
- ingestion: PDF normalization (text layer or vision OCR)
- models: data models
- services: LLM, sessions, questions, conversation and scoring
- utils: extractors, prompts, logging and concurrency helpers
"""

__version__ = "1.0.0"
