"""
ReelTube API Client

Thin JSON-over-HTTPS client for the control-plane API.

Design Decision: HTTP Library
=============================

Options Considered:
1. urllib - No dependencies, but verbose and no connection pooling
2. requests - Familiar, but no built-in test transport
3. httpx - requests-like API, thread-safe pooled client, MockTransport

Decision: httpx
- One pooled Client is shared by the upload worker threads
- httpx.MockTransport lets tests fake the API without sockets
- Same library for the control plane and the presigned part PUTs

Every request carries the bearer token from the configuration. Non-2xx
responses and transport failures are raised as APIError.
"""

import json
import logging
from typing import Any, Iterable, Optional

import httpx
from pydantic import ValidationError as ModelValidationError

from .. import __version__
from ..config import Config
from ..errors import APIError
from .models import (
    MeResponse,
    CreateMediaUploadRequest,
    CreateMediaUploadResponse,
    CompletedPart,
    CompleteUploadRequest,
    CompleteUploadResponse,
)

logger = logging.getLogger(__name__)

USER_AGENT = f"reeltube-cli/{__version__}"


def _error_message(response: httpx.Response) -> str:
    """Pull a readable error out of an error response body."""
    try:
        data = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:200] if text else response.reason_phrase

    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        for key in ('error', 'detail', 'message'):
            if data.get(key):
                return str(data[key])
    return json.dumps(data)[:200]


class ReeltubeClient:
    """
    Client for the ReelTube control-plane API.

    Usage:
        with ReeltubeClient(config) as client:
            print(client.me().profile.handle)
    """

    def __init__(self, config: Config,
                 transport: Optional[httpx.BaseTransport] = None):
        """
        Args:
            config: Client configuration (API key is required)
            transport: Optional httpx transport, used by tests
        """
        self.config = config
        self.debug = config.debug

        self._http = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
            headers={
                'Authorization': f"Bearer {config.require_api_key()}",
                'Content-Type': 'application/json',
                'Accept': 'application/json',
                'User-Agent': USER_AGENT,
            },
        )

    def __enter__(self) -> 'ReeltubeClient':
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        self._http.close()

    # === HTTP Methods ===

    def request(self, method: str, path: str, params: Any = None) -> Any:
        """
        Send a JSON request and return the decoded response body.

        Returns None for an empty body.

        Raises:
            APIError: on transport failure, non-2xx status or invalid JSON
        """
        if self.debug and params is not None:
            logger.debug(f"Request Body: {json.dumps(params)}")

        try:
            request = self._http.build_request(method, path, json=params)
            if self.debug:
                logger.debug(f"Request Method: {request.method}, URL: {request.url}")
            response = self._http.send(request)
        except httpx.HTTPError as e:
            raise APIError(f"{method} {path} failed: {e}") from e

        if self.debug:
            logger.debug(f"Response Status: {response.status_code} {response.reason_phrase}")

        if not response.is_success:
            raise APIError(_error_message(response), status_code=response.status_code)

        if not response.content:
            return None

        try:
            data = response.json()
        except ValueError as e:
            raise APIError(f"invalid JSON response from {path}: {e}",
                           status_code=response.status_code) from e

        if self.debug:
            logger.debug(f"Response Data: {json.dumps(data)}")

        return data

    def get(self, path: str, params: Any = None) -> Any:
        return self.request('GET', path, params)

    def post(self, path: str, params: Any = None) -> Any:
        return self.request('POST', path, params)

    def put(self, path: str, params: Any = None) -> Any:
        return self.request('PUT', path, params)

    def delete(self, path: str, params: Any = None) -> Any:
        return self.request('DELETE', path, params)

    def _parse(self, model, data: Any, path: str):
        try:
            return model.model_validate(data if data is not None else {})
        except ModelValidationError as e:
            raise APIError(f"unexpected response from {path}: {e}") from e

    # === Domain Methods ===

    def me(self) -> MeResponse:
        """Fetch the authenticated profile (verifies the API key)."""
        path = '/api/v0/me'
        return self._parse(MeResponse, self.get(path), path)

    def create_media_upload(self, filename: str, size: int) -> CreateMediaUploadResponse:
        """Open a multipart upload session for a file."""
        path = '/api/v0/media_uploads'
        body = CreateMediaUploadRequest(filename=filename, size=size)
        data = self.post(path, body.model_dump())
        return self._parse(CreateMediaUploadResponse, data, path)

    def complete_multipart_upload(self, media_upload_id: str, upload_id: str,
                                  parts: Iterable) -> CompleteUploadResponse:
        """
        Finalize a multipart upload.

        Args:
            media_upload_id: ID of the media upload being completed
            upload_id: Multipart upload transaction ID
            parts: Objects with part_number and etag, in manifest order
        """
        path = f"/api/v0/media_uploads/{media_upload_id}/complete"
        body = CompleteUploadRequest(
            id=media_upload_id,
            upload_id=upload_id,
            parts=[CompletedPart(part_number=p.part_number, etag=p.etag) for p in parts],
        )
        data = self.post(path, body.model_dump())
        return self._parse(CompleteUploadResponse, data, path)
