"""
End-to-end tests of the HTTP API over an in-memory local store.
"""
import io

from PIL import Image


def image_part(field, name="beach.png"):
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), (20, 120, 200)).save(buffer, format="PNG")
    return (field, (name, buffer.getvalue(), "image/png"))


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "healthy"
    assert client.get("/health").json() == {"status": "healthy"}

    db = client.get("/health/db").json()
    assert db["database"] == "local"
    assert db["status"] == "healthy"


# ---------------------------------------------------------------------------
# Public site
# ---------------------------------------------------------------------------

def test_seeded_public_content(client):
    reviews = client.get("/api/reviews").json()
    assert [r["name"] for r in reviews] == ["John Smith", "Sarah Johnson", "Michael Williams"]
    assert "email" not in reviews[0]

    counters = client.get("/api/counters").json()
    assert [c["name"] for c in counters] == ["clients", "events", "photos"]

    assert client.get("/api/content/services").json()["title"] == "Services"
    missing = client.get("/api/content/pricing-faq")
    assert missing.status_code == 404
    assert missing.json()["error"] == "Content section not found"


def test_submit_review(client):
    response = client.post("/api/reviews", json={
        "name": "Jane Doe", "email": "jane@example.com", "rating": 5, "text": "Wonderful!",
    })

    assert response.status_code == 201
    assert client.get("/api/reviews").json()[0]["name"] == "Jane Doe"


def test_validation_errors_use_error_body(client):
    response = client.post("/api/reviews", json={
        "name": "J", "email": "not-an-email", "rating": 9, "text": "",
    })

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation error"
    fields = {tuple(err["loc"])[-1] for err in body["detail"]}
    assert {"name", "email", "rating", "text"} <= fields


def test_gallery_pagination_bounds(client):
    assert client.get("/api/gallery-images?limit=0").status_code == 400
    assert client.get("/api/gallery-images?limit=101").status_code == 400
    assert client.get("/api/gallery-images?offset=-1").status_code == 400

    page = client.get("/api/gallery-images").json()
    assert page == {"images": [], "pagination": {"next_offset": None, "has_more": False, "total_count": 0}}


def test_contact_form(client):
    ok = client.post("/api/contact", json={
        "name": "Jo", "email": "jo@example.com", "message": "Are you free in June?",
    })
    assert ok.status_code == 200
    assert ok.json() == {"message": "Message sent successfully!"}

    short = client.post("/api/contact", json={"name": "Jo", "email": "jo@example.com", "message": "Hi"})
    assert short.status_code == 400


def test_missing_event_and_project(client):
    assert client.get("/api/events/nope").status_code == 404
    assert client.get("/api/featured-projects/nope").status_code == 404


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def test_cms_requires_login(client):
    response = client.get("/api/cms/gallery-images")
    assert response.status_code == 401
    assert response.json()["error"] == "Missing token"
    assert response.headers["www-authenticate"] == "Bearer"

    bad = client.get("/api/cms/gallery-images", headers={"Authorization": "Bearer nonsense"})
    assert bad.status_code == 401
    assert bad.json()["error"] == "Invalid token"


def test_login_rejects_bad_credentials(client, settings):
    response = client.post("/api/auth/login", json={"email": settings.ADMIN_EMAIL, "password": "wrong"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials", "detail": "Invalid login credentials"}
    assert "cms_token" not in response.cookies


def test_login_sets_cookie_and_bearer_token(client, settings):
    response = client.post(
        "/api/auth/login", json={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == settings.ADMIN_EMAIL
    assert body["token_type"] == "bearer"
    assert "httponly" in response.headers["set-cookie"].lower()

    # Cookie session
    assert client.get("/api/auth/me").json()["email"] == settings.ADMIN_EMAIL

    # Header session, without the cookie
    client.cookies.clear()
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200


def test_logout_deletes_cookie(admin_client):
    response = admin_client.post("/api/auth/logout")

    assert response.status_code == 200
    assert "cms_token=" in response.headers["set-cookie"]
    assert "Max-Age=0" in response.headers["set-cookie"]


# ---------------------------------------------------------------------------
# CMS: gallery and events
# ---------------------------------------------------------------------------

def test_gallery_upload_and_delete(admin_client):
    response = admin_client.post(
        "/api/cms/gallery-images",
        files=[image_part("files", "beach.png"), image_part("files", "forest.png")],
    )
    assert response.status_code == 201
    created = response.json()
    assert sorted(image["title"] for image in created) == ["beach", "forest"]

    page = admin_client.get("/api/gallery-images?limit=1").json()
    assert len(page["images"]) == 1
    assert page["pagination"] == {"next_offset": 1, "has_more": True, "total_count": 2}

    first, second = created
    assert admin_client.delete(f"/api/cms/gallery-images/{first['id']}").status_code == 200
    assert admin_client.delete(f"/api/cms/gallery-images/{first['id']}").status_code == 404

    bulk = admin_client.request(
        "DELETE", "/api/cms/gallery-images/bulk", json={"ids": [second["id"], first["id"]]}
    )
    assert bulk.json() == {"deleted_count": 1, "deleted_ids": [second["id"]], "failed_ids": [first["id"]]}


def test_gallery_upload_rejects_non_images(admin_client):
    response = admin_client.post(
        "/api/cms/gallery-images", files=[("files", ("notes.txt", b"hello", "text/plain"))]
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid file type"


def test_upload_refused_when_storage_plan_is_full(admin_client, ctx):
    ctx.settings.STORAGE_LIMIT_BYTES = 10
    response = admin_client.post("/api/cms/gallery-images", files=[image_part("files")])
    assert response.status_code == 507


def test_event_lifecycle(admin_client):
    response = admin_client.post(
        "/api/cms/events",
        data={"title": "Garden Wedding", "date": "2024-06-01", "description": "June wedding"},
        files=[image_part("cover_image", "cover.png"), image_part("images", "a.png"), image_part("images", "b.png")],
    )
    assert response.status_code == 201
    event = response.json()
    assert event["image_count"] == 2
    assert event["date"] == "2024-06-01"

    detail = admin_client.get(f"/api/events/{event['id']}").json()
    assert detail["event"]["title"] == "Garden Wedding"
    assert [image["title"] for image in detail["images"]] == ["a", "b"]

    added = admin_client.post(f"/api/cms/events/{event['id']}/images", files=[image_part("files", "c.png")])
    assert added.status_code == 201
    assert admin_client.get("/api/events").json()[0]["image_count"] == 3

    image_id = added.json()[0]["id"]
    assert admin_client.delete(f"/api/cms/event-images/{image_id}").status_code == 200
    assert admin_client.get(f"/api/events/{event['id']}").json()["event"]["image_count"] == 2

    assert admin_client.delete(f"/api/cms/events/{event['id']}").status_code == 200
    assert admin_client.get(f"/api/events/{event['id']}").status_code == 404
    assert admin_client.get(f"/api/cms/events/{event['id']}/images").json() == []


def test_add_images_to_missing_event(admin_client):
    response = admin_client.post("/api/cms/events/nope/images", files=[image_part("files")])
    assert response.status_code == 404


def test_single_upload_returns_url(admin_client):
    response = admin_client.post(
        "/api/cms/uploads", data={"folder": "covers"}, files=[image_part("file")]
    )
    assert response.status_code == 201
    assert response.json()["url"].startswith("data:image/png;base64,")

    bad_bucket = admin_client.post("/api/cms/uploads", data={"bucket": "secrets"}, files=[image_part("file")])
    assert bad_bucket.status_code == 400


def test_storage_screen(admin_client):
    admin_client.post("/api/cms/gallery-images", files=[image_part("files")])

    usage = admin_client.get("/api/cms/storage").json()
    assert usage["total_size"] > 0
    assert len(usage["files"]) == 1

    name = usage["files"][0]["name"]
    assert admin_client.get("/api/cms/storage/large-files?threshold=0").json()[0]["name"] == name

    assert admin_client.delete(f"/api/cms/storage/images/{name}").status_code == 200
    assert admin_client.get("/api/cms/gallery-images").json() == []
    assert admin_client.delete(f"/api/cms/storage/images/{name}").status_code == 404


# ---------------------------------------------------------------------------
# CMS: catalog, projects, reviews and team
# ---------------------------------------------------------------------------

def test_pricing_crud(admin_client):
    created = admin_client.post("/api/cms/pricing", json={
        "title": "Basic", "price": 99, "features": ["1 hour", "20 photos"],
    })
    assert created.status_code == 201
    card_id = created.json()["id"]

    assert admin_client.get("/api/pricing").json()[0]["features"] == ["1 hour", "20 photos"]
    assert admin_client.put(f"/api/cms/pricing/{card_id}", json={"price": 129}).json()["price"] == 129
    assert admin_client.put("/api/cms/pricing/missing", json={"price": 1}).status_code == 404
    assert admin_client.delete(f"/api/cms/pricing/{card_id}").status_code == 200
    assert admin_client.delete(f"/api/cms/pricing/{card_id}").status_code == 404


def test_content_editor_hides_about(admin_client):
    names = [s["name"] for s in admin_client.get("/api/cms/content").json()]
    assert names == ["contact", "services"]

    saved = admin_client.put("/api/cms/content/by-name/services", json={"title": "Services", "content": "Weddings"})
    assert saved.status_code == 200
    assert admin_client.get("/api/content/services").json()["content"] == "Weddings"


def test_featured_projects_reorder(admin_client):
    ids = []
    for title in ("A", "B"):
        response = admin_client.post("/api/cms/featured-projects", json={"title": title, "image_url": "https://img/x.jpg"})
        assert response.status_code == 201
        ids.append(response.json()["id"])

    response = admin_client.put("/api/cms/featured-projects/reorder", json={"ids": list(reversed(ids))})
    assert response.status_code == 200
    assert [p["title"] for p in admin_client.get("/api/featured-projects").json()] == ["B", "A"]

    duplicate = admin_client.put("/api/cms/featured-projects/reorder", json={"ids": [ids[0], ids[0]]})
    assert duplicate.status_code == 400


def test_featured_project_images(admin_client):
    project = admin_client.post(
        "/api/cms/featured-projects", json={"title": "Portraits", "image_url": "https://img/x.jpg"}
    ).json()
    base = f"/api/cms/featured-projects/{project['id']}/images"

    admin_client.post(base, json={"title": "one", "url": "https://img/1.jpg"})
    uploaded = admin_client.post(f"{base}/upload", files=[image_part("files", "two.png")])
    assert uploaded.status_code == 201
    assert uploaded.json()[0]["sort_order"] == 1

    detail = admin_client.get(f"/api/featured-projects/{project['id']}").json()
    assert [i["title"] for i in detail["images"]] == ["one", "two"]

    assert admin_client.post("/api/cms/featured-projects/nope/images", json={"title": "x", "url": "y"}).status_code == 404


def test_review_moderation(admin_client):
    reviews = admin_client.get("/api/cms/reviews").json()
    assert len(reviews) == 3
    assert "email" in reviews[0]

    target = reviews[0]["id"]
    hidden = admin_client.put(f"/api/cms/reviews/{target}/status", json={"published": False})
    assert hidden.status_code == 200
    assert target not in [r["id"] for r in admin_client.get("/api/reviews").json()]

    assert admin_client.delete(f"/api/cms/reviews/{target}").status_code == 200
    assert admin_client.delete(f"/api/cms/reviews/{target}").status_code == 404


def test_invite_signup_flow(admin_client):
    invite = admin_client.post("/api/cms/team/invites", headers={"Origin": "http://localhost:8080"})
    assert invite.status_code == 201
    token = invite.json()["token"]
    assert invite.json()["link"] == f"http://localhost:8080/invite/{token}"

    admin_client.post("/api/auth/logout")
    admin_client.cookies.clear()

    assert admin_client.get(f"/api/auth/invites/{token}").json()["valid"] is True

    payload = {"email": "team@lexpix.com", "password": "team-pass", "confirm_password": "team-pass"}
    created = admin_client.post(f"/api/auth/invites/{token}/signup", json=payload)
    assert created.status_code == 201
    assert created.json()["email"] == "team@lexpix.com"

    again = admin_client.post(f"/api/auth/invites/{token}/signup", json=payload)
    assert again.status_code == 400
    assert admin_client.get(f"/api/auth/invites/{token}").status_code == 400

    login = admin_client.post("/api/auth/login", json={"email": "team@lexpix.com", "password": "team-pass"})
    assert login.status_code == 200
    assert admin_client.get("/api/cms/gallery-images").status_code == 200


def test_invite_link_ignores_unknown_origin(admin_client, settings):
    invite = admin_client.post("/api/cms/team/invites", headers={"Origin": "https://evil.example"})
    assert invite.status_code == 201
    assert invite.json()["link"] == f"{settings.SITE_URL}/invite/{invite.json()['token']}"


def test_project_image_reorder_rejects_other_projects_images(admin_client):
    first, second = [
        admin_client.post("/api/cms/featured-projects", json={"title": t, "image_url": "https://img/x.jpg"}).json()
        for t in ("First", "Second")
    ]
    own = admin_client.post(
        f"/api/cms/featured-projects/{first['id']}/images", json={"title": "mine", "url": "https://img/1.jpg"}
    ).json()
    other = admin_client.post(
        f"/api/cms/featured-projects/{second['id']}/images", json={"title": "theirs", "url": "https://img/2.jpg"}
    ).json()

    response = admin_client.put(
        f"/api/cms/featured-projects/{first['id']}/images/reorder", json={"ids": [other["id"], own["id"]]}
    )

    assert response.status_code == 400
    assert other["id"] in response.json()["detail"]
    detail = admin_client.get(f"/api/featured-projects/{second['id']}").json()
    assert detail["images"][0]["sort_order"] == 0

    assert admin_client.put(
        f"/api/cms/featured-projects/{first['id']}/images/reorder", json={"ids": [own["id"]]}
    ).status_code == 200
