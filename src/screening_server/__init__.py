"""screening_server — FastAPI REST API for the developmental-screening backend.

Exposes the ``screening_core`` services over HTTP with async PostgreSQL
persistence via ``screening_db``.
"""
