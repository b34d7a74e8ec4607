from fastapi import HTTPException, Query, Request, status

from conduit.config import settings


def get_viewer(request: Request) -> str | None:
    """
    Username of the caller, as asserted by the authentication gateway in
    front of the API through ``settings.IDENTITY_HEADER``.  None for
    anonymous requests.
    """
    username = request.headers.get(settings.IDENTITY_HEADER, "").strip()
    return username or None


def require_user(request: Request) -> str:
    """Like ``get_viewer`` but rejects anonymous requests with 401."""
    username = get_viewer(request)
    if username is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return username


class PaginationParams:
    """
    Reusable FastAPI dependency that parses ``limit`` / ``offset`` query
    parameters.

    Attributes
    ----------
    limit:
        Maximum number of items returned, at most ``settings.MAX_PAGE_SIZE``.
    offset:
        Number of matching items skipped before the page starts.
    """

    def __init__(
        self,
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=settings.MAX_PAGE_SIZE,
            description="Number of items returned per page.",
        ),
        offset: int = Query(
            0,
            ge=0,
            description="Number of items to skip.",
        ),
    ) -> None:
        self.limit = limit
        self.offset = offset
