"""RequestLoggingMiddleware 测试"""

import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from interfaces.api.middleware import RequestLoggingMiddleware


def create_test_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    return app


class TestRequestLoggingMiddleware:
    """请求日志"""

    def test_logs_request(self, caplog):
        """测试记录方法、路径、IP 和 User-Agent"""
        client = TestClient(create_test_app())

        with caplog.at_level(logging.INFO, logger="interfaces.api.http"):
            response = client.get(
                "/ping",
                headers={"user-agent": "pytest-agent", "x-forwarded-for": "203.0.113.9, 10.0.0.1"},
            )

        assert response.status_code == 200
        messages = [r.getMessage() for r in caplog.records if r.name == "interfaces.api.http"]
        assert any(
            "GET /ping" in m and "ip=203.0.113.9" in m and "ua=pytest-agent" in m
            for m in messages
        )

    def test_does_not_log_query_string(self, caplog):
        """测试不记录查询参数"""
        client = TestClient(create_test_app())

        with caplog.at_level(logging.INFO, logger="interfaces.api.http"):
            client.get("/ping", params={"password": "secret-value"})

        assert not any("secret-value" in r.getMessage() for r in caplog.records)
