"""
Tests for application wiring: health endpoints, headers and the error
envelope for unknown routes.
"""


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["cross-origin-opener-policy"] == "same-origin-allow-popups"


async def test_root(client):
    response = await client.get("/")
    assert response.json() == {"message": "FashionX API", "version": "1.0.0"}


async def test_unknown_route(client):
    response = await client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route /api/nowhere not found"}


async def test_create_tables_promotes_admin():
    import create_tables
    from fashionx.core.database import async_session_maker, engine, init_db
    from fashionx.models.user import User, UserRole

    await init_db()
    async with async_session_maker() as session:
        session.add(User(email="boss@example.com"))
        await session.commit()

    assert await create_tables.promote_admin("Boss@Example.com") is True
    assert await create_tables.promote_admin("ghost@example.com") is False

    async with async_session_maker() as session:
        user = (await session.execute(User.__table__.select().where(User.email == "boss@example.com"))).one()
        assert user.role == UserRole.ADMIN.value
    await engine.dispose()
