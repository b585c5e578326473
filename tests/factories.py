"""
Test doubles and payload builders shared by the test modules.

FakeBackend stands in for the REST backend through httpx.MockTransport, so
the real BackendClient (retries, error mapping, circuit breaker) is exercised.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx

from goodtraining.core.backend import _ServerSideError
from goodtraining.core.circuit_breaker import CircuitBreaker
from goodtraining.core.flash import FLASH_COOKIE_NAME, Flash, _decode

BACKEND_URL = "http://backend.test"
TOKEN_SECRET = "test-secret-not-used-for-verification"

# A queued answer: (status_code, json_body), or an exception to raise
Answer = tuple[int, Any] | Exception | Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """
    Scripted REST backend.

    Answers are queued per (method, path). Each call takes the next answer;
    the last one repeats. Unscripted routes answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Answer]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, *answers: Answer) -> FakeBackend:
        self.routes.setdefault((method.upper(), path), []).extend(answers)
        return self

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": "Not found"})

        answer = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            return answer(request)
        status_code, body = answer
        if body is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=body)


def make_breaker(failure_threshold: int = 5, timeout_seconds: int = 30) -> CircuitBreaker:
    return CircuitBreaker(
        name="test-backend",
        failure_threshold=failure_threshold,
        timeout_seconds=timeout_seconds,
        expected_exception=(httpx.TransportError, _ServerSideError),
    )


def supervisor_payload(**overrides: Any) -> dict[str, Any]:
    """A supervisor as GET /api/supervisors returns it (camelCase, JSON-string lists)."""
    data: dict[str, Any] = {
        "id": 1,
        "userId": "u-1",
        "name": "김*영",
        "gender": "female",
        "affiliation": "마음상담센터",
        "association": "한국상담심리학회",
        "specialization": "우울/불안",
        "summary": "성인 우울과 불안을 주로 다룹니다.",
        "experience": 12,
        "profileImageUrl": None,
        "qualifications": '["상담심리사 1급"]',
        "targetGroups": '["성인", "대학생"]',
        "concernTypes": '["대인관계"]',
        "emotionSymptoms": '["우울"]',
        "specialExperiences": "[]",
        "counselingMethods": '["대면상담", "화상상담"]',
        "counselingRegions": '["서울"]',
        "phoneNumber": "010-1234-5678",
        "kakaoId": None,
        "website": None,
        "contactInfo": None,
        "canProvideClientExperience": True,
        "clientExperienceFee": 50000,
        "participatesInNationalProgram": True,
        "nationalProgramAdditionalFee": 0,
        "isProfilePublic": True,
        "isVisible": True,
        "approvalStatus": "approved",
        "rating": 45,
        "reviewCount": 8,
    }
    data.update(overrides)
    return data


def article_payload(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": 1,
        "title": "인지행동치료의 최신 동향",
        "content": "첫 문단입니다.\n\n둘째 문단입니다.",
        "summary": "CBT 연구 동향을 정리합니다.",
        "category": "연구동향",
        "author": "편집부",
        "readTime": 5,
        "publishedAt": "2024-03-05T09:00:00Z",
    }
    data.update(overrides)
    return data


def flash_of(response: httpx.Response) -> Flash | None:
    """The flash message a redirect carries to the next page."""
    value = response.cookies.get(FLASH_COOKIE_NAME)
    return _decode(value) if value else None


def cookie_cleared(response: httpx.Response, name: str) -> bool:
    return any(
        header.startswith(f"{name}=") and "Max-Age=0" in header
        for header in response.headers.get_list("set-cookie")
    )
