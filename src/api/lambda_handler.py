"""
AWS Lambda handler for FastAPI using Mangum (ASGI adapter).

How it works:
- API Gateway invokes Lambda
- Mangum translates the event into an ASGI request
- FastAPI handles routing (/health, /clauses, /variants, /quotes/...)
- Response is returned back to API Gateway

The clause catalog and variant table are built when src.api.app is
imported, so a cold start pays for them once.
"""

from __future__ import annotations

from mangum import Mangum

from src.api.app import app

handler = Mangum(app, lifespan="off")
