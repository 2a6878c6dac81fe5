"""Shared fixtures: a fake ReelTube API and storage backend on httpx.MockTransport."""

import json
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import pytest

from reeltube.api import ReeltubeClient
from reeltube.config import Config

BASE_URL = 'https://api.test'
STORAGE_URL = 'https://storage.test'
MB = 1024 * 1024


class FakeReeltube:
    """
    In-memory stand-in for the control plane and presigned-URL storage.

    Records every call so tests can assert on what was (and wasn't) sent.
    """

    def __init__(self, part_size: int = 4 * MB, etags: Optional[Dict[int, str]] = None,
                 fail_parts: Dict[int, int] = None, put_delay: float = 0.0):
        self.part_size = part_size
        self.etags = etags or {}          # part index -> ETag header value
        self.fail_parts = fail_parts or {}  # part index -> status code
        self.put_delay = put_delay

        self.create_status = 200
        self.complete_status = 200
        self.num_parts_override: Optional[int] = None
        self.omit_etag = False

        self.create_calls: List[dict] = []
        self.complete_calls: List[dict] = []
        self.put_calls: List[int] = []
        self.received: Dict[int, bytes] = {}
        self.headers_seen: List[httpx.Headers] = []

        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == 'storage.test':
            return self._handle_put(request)

        with self._lock:
            self.headers_seen.append(request.headers)

        path = request.url.path
        if request.method == 'GET' and path == '/api/v0/me':
            return httpx.Response(200, json={
                'profile': {
                    'id': 'prof_1',
                    'handle': 'reelmaker',
                    'bio': None,
                    'image_path': None,
                    'is_business': False,
                    'is_verified': True,
                }
            })

        if request.method == 'POST' and path == '/api/v0/media_uploads':
            return self._handle_create(json.loads(request.content))

        if request.method == 'POST' and path.endswith('/complete'):
            body = json.loads(request.content)
            with self._lock:
                self.complete_calls.append(body)
            if self.complete_status != 200:
                return httpx.Response(self.complete_status, json={'error': 'upload expired'})
            return httpx.Response(200, json={'media_upload': {'id': body['id']}})

        return httpx.Response(404, json={'error': f"no route for {request.method} {path}"})

    def _handle_create(self, body: dict) -> httpx.Response:
        self.create_calls.append(body)
        if self.create_status != 200:
            return httpx.Response(self.create_status, json={'error': 'quota exceeded'})

        size = body['size']
        num_parts = (size + self.part_size - 1) // self.part_size
        if self.num_parts_override is not None:
            num_parts = self.num_parts_override

        return httpx.Response(200, json={
            'upload_id': 'mpu-123',
            'part_size': self.part_size,
            'num_parts': num_parts,
            'presigned_urls': [
                f"{STORAGE_URL}/bucket/part/{i}?X-Amz-Signature=sig{i}"
                for i in range(num_parts)
            ],
            'media_upload': {'id': 'mu_42'},
        })

    def _handle_put(self, request: httpx.Request) -> httpx.Response:
        index = int(request.url.path.rsplit('/', 1)[-1])

        with self._lock:
            self.put_calls.append(index)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.put_delay:
                time.sleep(self.put_delay)

            if index in self.fail_parts:
                return httpx.Response(self.fail_parts[index])

            with self._lock:
                self.received[index] = request.content

            if self.omit_etag:
                return httpx.Response(200)
            etag = self.etags.get(index, f'"etag-{index}"')
            return httpx.Response(200, headers={'ETag': etag})
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the developer's REELTUBE_* variables and .env out of tests."""
    for key in ('REELTUBE_API_KEY', 'REELTUBE_BASE_URL', 'REELTUBE_DEBUG',
                'REELTUBE_CONCURRENCY', 'REELTUBE_TIMEOUT'):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def fake_api():
    return FakeReeltube()


@pytest.fixture
def config():
    return Config(api_key='test-key', base_url=BASE_URL, timeout=5.0)


@pytest.fixture
def client(config, fake_api):
    with ReeltubeClient(config, transport=fake_api.transport) as client:
        yield client


@pytest.fixture
def storage_http(fake_api):
    with httpx.Client(transport=fake_api.transport) as http:
        yield http


@pytest.fixture
def make_file(tmp_path):
    """Create a file with deterministic content: make_file('clip.mp4', size)."""
    def _make(name: str, size: int, header: bytes = b'') -> Path:
        path = tmp_path / name
        body = bytes(range(251)) * (size // 251 + 1)
        data = (header + body)[:size]
        path.write_bytes(data)
        return path
    return _make
