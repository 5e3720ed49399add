"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import os

# Mandatory SATIM credentials for settings validation
os.environ.setdefault("SATIM__TERMINAL_ID", "E010900000")
os.environ.setdefault("SATIM__USERNAME", "SAT2100000")
os.environ.setdefault("SATIM__PASSWORD", "satim120")
os.environ.setdefault("SATIM__SECRET_KEY", "test-secret-key")
os.environ.setdefault("SATIM__RETURN_URL", "https://merchant.example/return")
os.environ.setdefault("SATIM__FAIL_URL", "https://merchant.example/fail")

import pytest

from core.config import SatimSettings


@pytest.fixture
def satim_settings() -> SatimSettings:
    return SatimSettings(
        terminal_id="E010900000",
        username="SAT2100000",
        password="satim120",
        secret_key="test-secret-key",
        return_url="https://merchant.example/return",
        fail_url="https://merchant.example/fail",
    )


class StubGateway:
    """Records requests and answers with canned gateway payloads."""

    provider = "stub"

    def __init__(self, register=None, verify=None, refund=None):
        self.register_response = register or {"errorCode": "0", "orderId": "X", "formUrl": "https://pay.example/pay"}
        self.verify_responses = list(verify or [{"ErrorCode": "0", "OrderStatus": 2}])
        self.refund_response = refund or {"errorCode": "0"}
        self.calls = []
        self.closed = False

    async def register_payment(self, req):
        self.calls.append(("register", req))
        return dict(self.register_response)

    async def verify_payment(self, req):
        self.calls.append(("verify", req))
        # Last response repeats once the queue is drained
        if len(self.verify_responses) > 1:
            return dict(self.verify_responses.pop(0))
        return dict(self.verify_responses[0])

    async def refund_payment(self, req):
        self.calls.append(("refund", req))
        return dict(self.refund_response)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def stub_gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture
def make_gateway():
    return StubGateway
