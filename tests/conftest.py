import os
import pytest
import importlib

# app.core.config refuses to load without a signing key
os.environ.setdefault("secret_key", "test-secret-key")


SERVICE_MODULES = [
    "app.services.event_service",
    "app.services.inventory_service",
    "app.services.issuance_service",
    "app.services.redemption_service",
]

class _StubSpan:
    def __init__(
        self,
        *,
        scope: str,
        action: str,
        object_type: str | None = None,
        object_id: int | None = None,
        event_id: int | None = None,
        order_id: int | None = None,
        ticket_id: int | None = None,
        meta: dict | None = None,
        **_ignored
    ):
        self.scope = scope
        self.action = action
        self.object_type = object_type
        self.object_id = object_id
        self.event_id = event_id
        self.order_id = order_id
        self.ticket_id = ticket_id
        self.meta = dict(meta or {})
        self.entered = False
        self.exited = False
        self.exit_args = None

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.exited = True
        self.exit_args = (exc_type, exc, tb)
        return False


@pytest.fixture(autouse=True)
def auditspan_stub(mocker, request):
    if "integration" in request.keywords:
        return []

    instances = []

    def factory(*a, **k):
        s = _StubSpan(*a, **k)
        instances.append(s)
        return s

    for mod in SERVICE_MODULES:
        importlib.import_module(mod)
        mocker.patch(f"{mod}.AuditSpan", side_effect=factory)

    return instances
