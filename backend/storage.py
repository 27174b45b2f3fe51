"""Object storage collaborator: fetch the source object, post back the result."""

import logging
from urllib.parse import parse_qsl, urlsplit

import httpx

from errors import StorageError

logger = logging.getLogger(__name__)


def extract_url_params(url: str) -> dict[str, str]:
    """Return the query parameters of *url*; later duplicates win."""
    return dict(parse_qsl(urlsplit(url).query, keep_blank_values=True))


async def download_object(client: httpx.AsyncClient, url: str) -> bytes:
    """Download the object behind a presigned *url*.

    Raises:
        StorageError: On transport errors or a non-2xx answer.
    """
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise StorageError("download rejected", status=e.response.status_code)
    except httpx.HTTPError as e:
        raise StorageError("download failed", reason=str(e) or type(e).__name__)
    logger.info("Downloaded %d bytes", len(response.content))
    return response.content


async def send_processed_image(
    client: httpx.AsyncClient,
    endpoint: str,
    output_route: str,
    output_token: str,
    image_data: bytes,
) -> None:
    """Post the processed object back to the storage endpoint.

    Raises:
        StorageError: On transport errors or a non-2xx answer.
    """
    try:
        response = await client.post(
            f"{endpoint}/{output_route}",
            headers={
                "Content-Type": "image/jpeg",
                "x-amz-request-route": output_route,
                "x-amz-request-token": output_token,
            },
            content=image_data,
        )
    except httpx.HTTPError as e:
        raise StorageError("upload failed", route=output_route, reason=str(e) or type(e).__name__)

    if not response.is_success:
        raise StorageError("upload rejected", route=output_route, status=response.status_code)
    logger.info("Sent %d bytes to route %s", len(image_data), output_route)
