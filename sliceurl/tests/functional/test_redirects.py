from fastapi import status
from sliceurl.models import Link

def shorten(auth_client, url):
    response = auth_client.post("/links/shorten", json={"originalUrl": url})
    return response.json()["data"]["newLink"]

def test_redirect_to_url(auth_client, db):
    link = shorten(auth_client, "https://example.com/redirect-test")

    response = auth_client.get(
        f"/links/redirect/{link['shortId']}",
        params={"source": "newsletter"},
        headers={"User-Agent": "Test Browser"}
    )

    assert response.status_code == status.HTTP_303_SEE_OTHER
    body = response.json()
    assert body["message"] == "Redirect"
    assert body["data"]["url"] == "https://example.com/redirect-test"

    stored = db.query(Link).filter(Link.short_id == link["shortId"]).first()
    db.refresh(stored)
    assert stored.clicks == 1
    assert len(stored.clicked_at) == 1
    assert stored.clicked_at[0].user_agent == "Test Browser"
    assert stored.clicked_at[0].source == "newsletter"

def test_redirect_by_alias(auth_client):
    link = shorten(auth_client, "https://example.com/alias-test")
    auth_client.patch(f"/links/{link['shortId']}", params={"alias": "promo"})

    response = auth_client.get("/links/redirect/promo")
    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.json()["data"]["url"] == "https://example.com/alias-test"

    response = auth_client.get(f"/links/{link['shortId']}")
    data = response.json()["data"]["link"]
    assert data["clicks"] == 1
    assert data["clickedAt"][0]["source"] == "unknown"

def test_repeated_redirects_count_every_click(client, auth_client):
    link = shorten(auth_client, "https://example.com/counter")

    for _ in range(10):
        response = client.get(f"/links/redirect/{link['shortId']}")
        assert response.status_code == status.HTTP_303_SEE_OTHER

    data = auth_client.get(f"/links/{link['shortId']}").json()["data"]["link"]
    assert data["clicks"] == 10
    assert len(data["clickedAt"]) == 10

def test_redirect_unknown_code(client):
    response = client.get("/links/redirect/unknown1")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message"] == "You might have clicked on a broken URL."

def test_redirect_invalid_code_length(client):
    assert client.get("/links/redirect/ab").status_code == status.HTTP_400_BAD_REQUEST
    assert client.get("/links/redirect/abcdefghijk").status_code == status.HTTP_400_BAD_REQUEST

def test_redirect_does_not_require_authentication(client, db):
    response = client.post(
        "/links/shorten-anonymously",
        json={"originalUrl": "https://example.com/public"},
        headers={"anonymous": "1"}
    )
    short_id = response.json()["data"]["newLink"]["shortId"]

    response = client.get(f"/links/redirect/{short_id}")
    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.json()["data"]["url"] == "https://example.com/public"
