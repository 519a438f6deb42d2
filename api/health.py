import time

from flask import Blueprint

bp = Blueprint("health", __name__)

_STARTED = time.monotonic()


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            uptime:
              type: number
              example: 12.5
            timestamp:
              type: integer
              example: 1760000000000
            version:
              type: string
              example: 1.0.0
    """
    from . import API_VERSION

    return {
        "status": "ok",
        "uptime": round(time.monotonic() - _STARTED, 3),
        "timestamp": int(time.time() * 1000),
        "version": API_VERSION,
    }, 200
