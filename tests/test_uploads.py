"""
Tests for image and audio uploads.
"""

from pathlib import Path

from fashionx.core.config import settings

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


async def test_upload_image(client, make_user, auth_headers):
    user = await make_user()

    response = await client.post(
        "/api/upload/image", files={"file": ("look.png", PNG, "image/png")}, headers=auth_headers(user)
    )

    assert response.status_code == 201
    url = response.json()["url"]
    assert url.startswith(f"{settings.PUBLIC_URL}/uploads/images/{user.id}/")
    assert url.endswith(".png")
    stored = Path(settings.UPLOAD_DIR) / url.split("/uploads/", 1)[1]
    assert stored.read_bytes() == PNG

    served = await client.get(url.replace(settings.PUBLIC_URL, ""))
    assert served.status_code == 200


async def test_upload_rejects_wrong_type(client, make_user, auth_headers):
    user = await make_user()
    response = await client.post(
        "/api/upload/audio", files={"file": ("look.png", PNG, "image/png")}, headers=auth_headers(user)
    )
    assert response.status_code == 400


async def test_upload_rejects_large_files(client, make_user, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 16)
    user = await make_user()
    response = await client.post(
        "/api/upload/audio", files={"file": ("song.mp3", b"\x00" * 32, "audio/mpeg")}, headers=auth_headers(user)
    )
    assert response.status_code == 413


async def test_upload_requires_auth(client):
    response = await client.post("/api/upload/image", files={"file": ("look.png", PNG, "image/png")})
    assert response.status_code == 401
