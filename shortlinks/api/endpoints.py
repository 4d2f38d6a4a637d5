"""
FastAPI Endpoints for the Short Link Service

Thin HTTP surface over the service container. Endpoints only handle:
- Request validation (Pydantic models)
- Rate limiting
- Translating service exceptions into HTTP responses

Route order matters: /api/analytics/overall is declared before
/api/analytics/{code} so "overall" is never taken for a short code.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from shortlinks.api.schemas import (
    LinkAnalytics,
    OverallSummary,
    ShortenRequest,
    ShortenResponse,
    TopicSummary,
)
from shortlinks.core.container import ServiceContainer
from shortlinks.core.exceptions import (
    DuplicateCodeError,
    InvalidURLError,
    NotFoundError,
    StoreUnavailableError,
)
from shortlinks.core.rate_limit import RATE_LIMITS, limiter
from shortlinks.core.validators import sanitize_short_code
from shortlinks.services.schemas import VisitContext

logger = logging.getLogger(__name__)

router = APIRouter()


def get_container(request: Request) -> ServiceContainer:
    """Dependency returning the initialized service container."""
    container: Optional[ServiceContainer] = getattr(request.app.state, "container", None)
    if container is None or not container.initialized:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up"
        )
    return container


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Handles proxies and load balancers by checking X-Forwarded-For header.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded_for.split(",")[0].strip()

    return request.client.host if request.client else "unknown"


def _require_code(code: str) -> str:
    sanitized = sanitize_short_code(code)
    if not sanitized:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid short code format: '{code}'. Short codes must contain only alphanumeric characters."
        )
    return sanitized


def _store_unavailable(e: StoreUnavailableError) -> HTTPException:
    logger.error(f"Store unavailable: {e}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(e)
    )


@router.post(
    "/api/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short URL",
)
@limiter.limit(RATE_LIMITS["shorten"])
async def create_short_url(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    body: ShortenRequest,
    container: ServiceContainer = Depends(get_container),
) -> ShortenResponse:
    try:
        record = await container.link_service.create_link(body.long_url, body.topic)
    except InvalidURLError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except DuplicateCodeError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create short URL: {e}"
        )
    except StoreUnavailableError as e:
        raise _store_unavailable(e)

    return ShortenResponse(
        code=record.code,
        short_url=record.short_url,
        long_url=record.long_url,
        topic=record.topic,
    )


@router.get(
    "/api/shorten/{code}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to original URL",
)
@limiter.limit(RATE_LIMITS["redirect"])
async def redirect_to_url(
    code: str,
    request: Request,
    userid: Optional[str] = None,
    container: ServiceContainer = Depends(get_container),
) -> RedirectResponse:
    """
    Redirect to the destination of a short code.

    The visit is recorded in the background; the redirect never waits for it.

    Raises:
        HTTPException 400: If short code format is invalid
        HTTPException 404: If short code not found
        HTTPException 503: If the link store is unavailable
    """
    code = _require_code(code)
    context = VisitContext(
        ip=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
        user_id=userid,
    )

    try:
        destination = await container.resolver.resolve(code, context)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except StoreUnavailableError as e:
        raise _store_unavailable(e)

    return RedirectResponse(
        url=destination.long_url,
        status_code=status.HTTP_302_FOUND
    )


@router.get(
    "/api/analytics/overall",
    response_model=OverallSummary,
    summary="Overall analytics across all links",
)
@limiter.limit(RATE_LIMITS["analytics"])
async def get_overall_analytics(
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> OverallSummary:
    try:
        return await container.stats_service.get_overall_summary()
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StoreUnavailableError as e:
        raise _store_unavailable(e)


@router.get(
    "/api/analytics/topic/{topic}",
    response_model=TopicSummary,
    summary="Analytics for all links sharing a topic",
)
@limiter.limit(RATE_LIMITS["analytics"])
async def get_topic_analytics(
    topic: str,
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> TopicSummary:
    try:
        return await container.stats_service.get_topic_summary(topic)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StoreUnavailableError as e:
        raise _store_unavailable(e)


@router.get(
    "/api/analytics/{code}",
    response_model=LinkAnalytics,
    summary="Analytics for a single short link",
)
@limiter.limit(RATE_LIMITS["analytics"])
async def get_link_analytics(
    code: str,
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> LinkAnalytics:
    code = _require_code(code)
    try:
        return await container.stats_service.get_link_analytics(code)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except StoreUnavailableError as e:
        raise _store_unavailable(e)
