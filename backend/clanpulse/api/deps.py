from collections.abc import Generator

from fastapi import HTTPException, status

from clanpulse.services.coc_client import CocApiClient, CocApiNotConfigured


def get_coc_client() -> Generator[CocApiClient, None, None]:
    try:
        client = CocApiClient()
    except CocApiNotConfigured as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    try:
        yield client
    finally:
        client.close()
