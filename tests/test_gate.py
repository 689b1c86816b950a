import io

import pytest

from conftest import csrf_token, login, session_value
from ticket_portal.gate import compute_return_to, is_csrf_exempt, security_headers


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------


class TestCsrfExemption:
    def test_only_upload_path_is_exempt(self):
        assert is_csrf_exempt("/api/upload")

    @pytest.mark.parametrize("path", ["/api/upload/", "/api/uploads", "/login", "/contact", "/api"])
    def test_other_paths_are_checked(self, path):
        assert not is_csrf_exempt(path)


class TestComputeReturnTo:
    def test_anonymous_page_is_remembered(self):
        assert compute_return_to("/ticket", False, None) == "/ticket"

    def test_anonymous_overwrites_previous_value(self):
        assert compute_return_to("/register", False, "/ticket") == "/register"

    @pytest.mark.parametrize("path", ["/login", "/signup", "/auth/google", "/auth/linkedin/callback", "/favicon.ico", "/static/css/main.css"])
    def test_anonymous_excluded_paths_keep_current(self, path):
        assert compute_return_to(path, False, "/ticket") == "/ticket"
        assert compute_return_to(path, False, None) is None

    def test_authenticated_account_page_is_remembered(self):
        assert compute_return_to("/account", True, None) == "/account"
        assert compute_return_to("/account", True, "/ticket") == "/account"

    def test_authenticated_other_pages_keep_current(self):
        assert compute_return_to("/ticket", True, "/register") == "/register"
        assert compute_return_to("/account/profile", True, None) is None

    @pytest.mark.parametrize("path,authenticated,current", [
        ("/ticket", False, None),
        ("/login", False, "/ticket"),
        ("/account", True, None),
        ("/contact", True, "/account"),
    ])
    def test_idempotent(self, path, authenticated, current):
        once = compute_return_to(path, authenticated, current)
        assert compute_return_to(path, authenticated, once) == once


class TestSecurityHeaders:
    def test_defaults(self, app):
        headers = security_headers(app.config)
        assert headers == {
            "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
            "X-Frame-Options": "SAMEORIGIN",
            "X-XSS-Protection": "1; mode=block",
        }

    def test_optional_headers_are_switches(self):
        config = {
            "HSTS_MAX_AGE": 31536000,
            "HSTS_INCLUDE_SUBDOMAINS": True,
            "HSTS_PRELOAD": False,
            "CONTENT_SECURITY_POLICY": "default-src 'self'",
            "REFERRER_POLICY": "same-origin",
            "NOSNIFF": True,
        }
        headers = security_headers(config)
        assert headers["Strict-Transport-Security"] == "max-age=31536000; includeSubDomains"
        assert headers["Content-Security-Policy"] == "default-src 'self'"
        assert headers["Referrer-Policy"] == "same-origin"
        assert headers["X-Content-Type-Options"] == "nosniff"


# ---------------------------------------------------------------------------
# Pipeline behaviour
# ---------------------------------------------------------------------------


def test_security_headers_on_every_response(client):
    for response in (client.get("/"), client.get("/missing-page"), client.post("/contact")):
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert response.headers["X-XSS-Protection"] == "1; mode=block"
        assert "max-age=31536000" in response.headers["Strict-Transport-Security"]
        assert "Content-Security-Policy" not in response.headers


def test_post_without_token_is_rejected_before_handler(client, sent_mail):
    response = client.post("/contact", data={"name": "Eve", "email": "eve@example.com", "message": "hi"})
    assert response.status_code == 400
    assert sent_mail == []
    assert session_value(client, "returnTo") is None


def test_post_with_wrong_token_is_rejected(client, db):
    csrf_token(client)
    response = client.post("/signup", data={
        "csrf_token": "not-the-token",
        "email": "new@example.com",
        "password": "secret123",
        "confirmPassword": "secret123",
    })
    assert response.status_code == 400
    assert db.users.find_one({"email": "new@example.com"}) is None


def test_token_accepted_from_header(client, sent_mail):
    token = csrf_token(client)
    response = client.post(
        "/contact",
        data={"name": "Eve", "email": "eve@example.com", "message": "hi"},
        headers={"X-CSRFToken": token},
    )
    assert response.status_code == 302
    assert len(sent_mail) == 1


def test_upload_skips_csrf_without_session(client, app):
    response = client.post(
        "/api/upload",
        data={"file": (io.BytesIO(b"slides"), "talk.pdf")},
        content_type="multipart/form-data",
    )
    assert response.status_code == 201
    body = response.get_json()
    assert body["status"] == "success"
    assert body["filename"].endswith("_talk.pdf")


def test_upload_without_file_reaches_handler(client):
    response = client.post("/api/upload", data={}, content_type="multipart/form-data")
    assert response.status_code == 400
    assert response.get_json()["message"] == "No file provided."


def test_anonymous_guarded_route_redirects_and_remembers_path(client):
    response = client.get("/account")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/login")
    assert session_value(client, "returnTo") == "/account"


@pytest.mark.parametrize("path", ["/register", "/ticket", "/m/payment/complete"])
def test_every_guarded_get_redirects_to_login(client, path):
    response = client.get(path)
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/login")
    assert session_value(client, "returnTo") == path


def test_guarded_post_without_principal_redirects(client):
    token = csrf_token(client)
    response = client.post("/ticket", data={"csrf_token": token, "name": "Ada"})
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/login")


def test_login_page_does_not_overwrite_return_to(client):
    client.get("/ticket")
    client.get("/login")
    client.get("/static/css/main.css")
    client.get("/auth/google/callback?error=access_denied")
    assert session_value(client, "returnTo") == "/ticket"


def test_authenticated_account_visit_sets_return_to(client, make_user):
    login(client, make_user())
    response = client.get("/account")
    assert response.status_code == 200
    assert session_value(client, "returnTo") == "/account"


def test_authenticated_other_page_leaves_return_to(client, make_user):
    login(client, make_user())
    client.get("/contact")
    assert session_value(client, "returnTo") is None


def test_principal_published_to_templates(client, make_user):
    assert "Login" in client.get("/").get_data(as_text=True)
    login(client, make_user(name="Grace"))
    page = client.get("/").get_data(as_text=True)
    assert "Grace" in page
    assert "Logout" in page


def test_stale_principal_is_dropped(client):
    with client.session_transaction() as sess:
        sess["user_id"] = "64b7f0c2a1b2c3d4e5f60718"
    response = client.get("/account")
    assert response.headers["Location"].endswith("/login")
    assert session_value(client, "user_id") is None


def test_csrf_rejection_leaves_session_untouched(client):
    stale_id = "64b7f0c2a1b2c3d4e5f60718"
    with client.session_transaction() as sess:
        sess["user_id"] = stale_id
        sess["returnTo"] = "/ticket"
    response = client.post("/contact", data={"message": "hi"})
    assert response.status_code == 400
    assert session_value(client, "user_id") == stale_id
    assert session_value(client, "returnTo") == "/ticket"
