import pytest
from httpx import ASGITransport, AsyncClient

from callgate.main import app


@pytest.mark.asyncio
async def test_health_endpoint(agora_credentials) -> None:
    transport = ASGITransport(app=app)

    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/api/health")
        head = await client.head("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "rtc_configured": True}
    assert head.status_code == 200


@pytest.mark.asyncio
async def test_health_reports_missing_credentials(no_agora_credentials) -> None:
    transport = ASGITransport(app=app)

    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/api/health")

    assert response.json()["rtc_configured"] is False
