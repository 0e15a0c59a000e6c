"""AWS Lambda entry point for the menu console.

API Gateway requests are translated to ASGI by Mangum and served by the
same FastAPI application used locally. The app is built once per container
and reused across warm invocations.
"""

import logging
import os
from typing import Any

from fastapi import FastAPI
from mangum import Mangum

logger = logging.getLogger(__name__)

_mangum_handler: Mangum | None = None


def get_mangum_handler() -> Mangum:
    """Create or retrieve the cached Mangum adapter.

    Returns:
        Mangum adapter wrapping the console application
    """
    global _mangum_handler

    if _mangum_handler is not None:
        return _mangum_handler

    from main import create_application

    app: FastAPI = create_application()
    _mangum_handler = Mangum(app, lifespan="off")
    logger.info("Lambda ASGI adapter initialized")
    return _mangum_handler


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Serve an API Gateway event.

    Args:
        event: The API Gateway event payload
        context: The Lambda context object

    Returns:
        API Gateway response dict
    """
    logger.info(f"Received Lambda invocation, request_id: {getattr(context, 'aws_request_id', None)}")

    try:
        result: dict[str, Any] = get_mangum_handler()(event, context)
        return result
    except Exception as e:
        logger.exception(f"Unhandled error in Lambda handler: {e}")
        return {
            "statusCode": 500,
            "body": "Internal server error",
        }


if os.getenv("ENVIRONMENT") != "test":
    get_mangum_handler()
