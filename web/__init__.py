"""
Web 패키지

FastAPI 기반 장부 API
"""

__version__ = "1.0.0"
