"""End-to-end tests for the admin post routes through the FastAPI app."""

import pytest

from conftest import ADMIN_PASSWORD, ADMIN_USERNAME, PNG_BYTES
from postdesk.modules.posts.models.post import Post

AJAX = {"X-Requested-With": "XMLHttpRequest"}


def flash_of(client, path="/admin/posts"):
    return client.get(path).json()["flash"]


def post_fields(admin, csrf_token, **overrides):
    fields = {
        "csrf_token": csrf_token,
        "submit_post": "1",
        "post_title": "Hello API",
        "post_content": "<p>Body text</p>",
        "post_author_id": str(admin.id),
        "post_status": "published",
    }
    fields.update(overrides)
    return fields


class TestAuthentication:
    def test_views_redirect_to_login(self, client):
        response = client.get("/admin/posts")
        assert response.status_code == 303
        assert response.headers["location"] == "/admin/login"
        assert flash_of(client, "/admin/login")["message"] == "You must be logged in to perform this action."

    def test_ajax_callers_get_json(self, client):
        response = client.post("/admin/actions/delete-post", data={"post_id": "1"}, headers=AJAX)
        assert response.status_code == 200
        assert response.json() == {
            "success": False,
            "message": "You must be logged in to perform this action.",
            "data": None,
        }

    def test_login_checked_before_csrf(self, client, db_session):
        response = client.post("/admin/actions/add-post", data={"submit_post": "1", "post_title": "x"})
        assert response.headers["location"] == "/admin/login"
        assert db_session.query(Post).count() == 0

    def test_wrong_password(self, client, admin):
        token = client.get("/admin/login").json()["csrf_token"]
        response = client.post("/admin/login", data={
            "username": ADMIN_USERNAME, "password": "nope", "csrf_token": token,
        })
        assert response.headers["location"] == "/admin/login"
        assert flash_of(client, "/admin/login")["message"] == "Invalid username or password."

    def test_login_requires_csrf(self, client, admin):
        client.get("/admin/login")
        response = client.post("/admin/login", data={
            "username": ADMIN_USERNAME, "password": ADMIN_PASSWORD, "csrf_token": "forged",
        })
        assert response.headers["location"] == "/admin/login"
        assert client.get("/admin/posts").status_code == 303

    def test_logout(self, admin_client, csrf_token):
        response = admin_client.post("/admin/logout", data={"csrf_token": csrf_token})
        assert response.headers["location"] == "/admin/login"
        assert admin_client.get("/admin/posts").status_code == 303


class TestListView:
    def test_page_state(self, admin_client, make_post, category):
        for _ in range(3):
            make_post(category_id=category.id)

        body = admin_client.get("/admin/posts", params={"per_page": "2", "paged": "2", "status": "bogus"}).json()

        assert body["total_posts"] == 3
        assert body["total_pages"] == 2
        assert body["current_page"] == 2
        assert len(body["posts"]) == 1
        assert body["filters"]["status"] is None
        assert body["categories"] == [{"id": category.id, "name": "News"}]
        assert [a["username"] for a in body["authors"]] == [ADMIN_USERNAME]
        assert body["csrf_token"]

    def test_malformed_paging_falls_back(self, admin_client):
        body = admin_client.get("/admin/posts", params={"paged": "abc", "per_page": "-5"}).json()
        assert body["current_page"] == 1
        assert body["per_page"] == 10


class TestAddPost:
    def test_new_form_defaults_author(self, admin_client, admin):
        body = admin_client.get("/admin/posts/new").json()
        assert body["mode"] == "create"
        assert body["form_data"] == {"post_author_id": str(admin.id)}

    def test_created_post_opens_in_edit_form(self, admin_client, admin, csrf_token):
        response = admin_client.post("/admin/actions/add-post", data=post_fields(admin, csrf_token))

        assert response.status_code == 303
        location = response.headers["location"]
        assert location.startswith("/admin/posts/") and location.endswith("/edit")

        body = admin_client.get(location).json()
        assert body["mode"] == "update"
        assert body["post"]["title"] == "Hello API"
        assert body["post"]["slug"] == "hello-api"
        assert body["flash"] == {
            "message": f"Post created successfully! (ID: {body['post']['id']})",
            "type": "success",
        }

    def test_csrf_failure_keeps_input_and_writes_nothing(self, admin_client, admin, csrf_token, db_session):
        fields = post_fields(admin, "forged", post_title="Kept title")
        response = admin_client.post("/admin/actions/add-post", data=fields)

        assert response.headers["location"] == "/admin/posts/new"
        assert db_session.query(Post).count() == 0
        body = admin_client.get("/admin/posts/new").json()
        assert body["flash"]["message"] == "Invalid or missing CSRF token. Please try again."
        assert body["form_data"]["post_title"] == "Kept title"
        assert "csrf_token" not in body["form_data"]

    def test_missing_submit_marker(self, admin_client, admin, csrf_token):
        fields = post_fields(admin, csrf_token)
        del fields["submit_post"]
        response = admin_client.post("/admin/actions/add-post", data=fields)
        assert response.headers["location"] == "/admin/posts/new"
        assert flash_of(admin_client, "/admin/posts/new")["message"] == (
            "Invalid request method or missing submission data."
        )

    def test_validation_errors_shown_on_form(self, admin_client, admin, csrf_token):
        fields = post_fields(admin, csrf_token, post_title="", post_excerpt="kept excerpt")
        response = admin_client.post("/admin/actions/add-post", data=fields)

        assert response.headers["location"] == "/admin/posts/new"
        body = admin_client.get("/admin/posts/new").json()
        assert body["errors"] == ["Post title is required."]
        assert body["form_data"]["post_excerpt"] == "kept excerpt"

    def test_featured_image_upload_and_preview(self, admin_client, admin, csrf_token, db_session):
        response = admin_client.post(
            "/admin/actions/add-post",
            data=post_fields(admin, csrf_token),
            files={"featured_image": ("cover.png", PNG_BYTES, "image/png")},
        )
        assert response.status_code == 303

        image = db_session.query(Post).one().featured_image
        assert image.endswith(".png")
        media = admin_client.get(f"/admin/media/{image}")
        assert media.status_code == 200
        assert media.content == PNG_BYTES


class TestEditPost:
    def edit_fields(self, admin, csrf_token, post, **overrides):
        fields = post_fields(admin, csrf_token, submit_post="update", post_id=str(post.id))
        fields.update(overrides)
        return fields

    def test_update_returns_to_list(self, admin_client, admin, csrf_token, make_post, db_session):
        post = make_post()
        fields = self.edit_fields(admin, csrf_token, post, post_title="Renamed", post_status="draft")

        response = admin_client.post("/admin/actions/edit-post", data=fields)

        assert response.headers["location"] == "/admin/posts"
        assert flash_of(admin_client)["message"] == "Post updated successfully with status: 'draft'"
        db_session.expire_all()
        assert db_session.get(Post, post.id).title == "Renamed"

    @pytest.mark.parametrize("overrides, message", [
        ({"submit_post": "1"}, "Invalid form submission"),
        ({"post_id": ""}, "Invalid or missing post ID"),
        ({"post_id": "999"}, "Post not found or already deleted (ID: 999)."),
    ])
    def test_rejected_submissions_return_to_list(self, admin_client, admin, csrf_token, make_post, overrides, message):
        post = make_post()
        response = admin_client.post("/admin/actions/edit-post", data=self.edit_fields(admin, csrf_token, post, **overrides))
        assert response.headers["location"] == "/admin/posts"
        assert flash_of(admin_client)["message"] == message

    def test_csrf_failure_returns_to_form(self, admin_client, admin, csrf_token, make_post, db_session):
        post = make_post(title="Original")
        fields = self.edit_fields(admin, "forged", post, post_title="Changed")

        response = admin_client.post("/admin/actions/edit-post", data=fields)

        assert response.headers["location"] == f"/admin/posts/{post.id}/edit"
        body = admin_client.get(response.headers["location"]).json()
        assert body["flash"]["message"] == "Invalid security token. Please try again."
        assert body["form_data"]["post_title"] == "Changed"
        db_session.expire_all()
        assert db_session.get(Post, post.id).title == "Original"

    def test_validation_failure_returns_to_form(self, admin_client, admin, csrf_token, make_post):
        post = make_post()
        fields = self.edit_fields(admin, csrf_token, post, post_content="")

        response = admin_client.post("/admin/actions/edit-post", data=fields)

        assert response.headers["location"] == f"/admin/posts/{post.id}/edit"
        assert admin_client.get(response.headers["location"]).json()["errors"] == ["Post content is required."]

    def test_edit_form_for_unknown_post(self, admin_client):
        response = admin_client.get("/admin/posts/999/edit")
        assert response.headers["location"] == "/admin/posts"
        assert flash_of(admin_client)["message"] == "Post not found (ID: 999)."


class TestBulkActions:
    def test_publish_selected(self, admin_client, csrf_token, make_post):
        first, second = make_post(), make_post()
        response = admin_client.post("/admin/actions/bulk-post-actions", data={
            "csrf_token": csrf_token,
            "bulk_action": "publish",
            "post_ids[]": [str(first.id), str(second.id), "999"],
        })
        assert response.headers["location"] == "/admin/posts"
        assert flash_of(admin_client) == {"message": "2 post(s) status updated to 'published'.", "type": "success"}

    def test_csrf_failure_aborts(self, admin_client, make_post, db_session):
        post = make_post()
        admin_client.post("/admin/actions/bulk-post-actions", data={
            "csrf_token": "forged", "bulk_action": "delete", "post_ids": [str(post.id)],
        })
        assert flash_of(admin_client)["message"] == "CSRF token validation failed. Action aborted."
        assert db_session.query(Post).count() == 1


class TestDeletePost:
    def test_ajax_delete(self, admin_client, csrf_token, make_post):
        post = make_post(title="Doomed")
        post_id = post.id
        response = admin_client.post(
            "/admin/actions/delete-post", data={"csrf_token": csrf_token, "post_id": str(post_id)}, headers=AJAX,
        )
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": f'Post "Doomed" (ID: {post_id}) deleted successfully.',
            "data": {"deleted_id": post_id},
        }
        # XHR callers get their answer in the body, not as a pending flash
        assert flash_of(admin_client) is None

    def test_ajax_not_found_is_still_http_200(self, admin_client, csrf_token):
        response = admin_client.post(
            "/admin/actions/delete-post", data={"csrf_token": csrf_token, "post_id": "77"}, headers=AJAX,
        )
        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["message"] == "Post not found or already deleted (ID: 77)."

    def test_ajax_csrf_failure(self, admin_client, make_post):
        post = make_post()
        response = admin_client.post(
            "/admin/actions/delete-post", data={"csrf_token": "forged", "post_id": str(post.id)}, headers=AJAX,
        )
        assert response.json()["success"] is False

    def test_form_delete_redirects_with_flash(self, admin_client, csrf_token, make_post):
        post = make_post()
        response = admin_client.post("/admin/actions/delete-post", data={"csrf_token": csrf_token, "post_id": str(post.id)})
        assert response.headers["location"] == "/admin/posts"
        assert flash_of(admin_client)["type"] == "success"


class TestMedia:
    def test_unknown_file(self, admin_client):
        assert admin_client.get("/admin/media/missing.png").status_code == 404

    def test_requires_login(self, client):
        assert client.get("/admin/media/anything.png").status_code == 303


class TestOversizedIds:
    HUGE = "9" * 23

    def test_list_ignores_oversized_paging_and_filters(self, admin_client, make_post):
        make_post()
        response = admin_client.get("/admin/posts", params={
            "paged": self.HUGE, "author_id": self.HUGE, "category_id": self.HUGE,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["current_page"] == 1
        assert body["total_posts"] == 1
        assert body["filters"]["author_id"] is None

    def test_bulk_with_oversized_ids(self, admin_client, csrf_token):
        response = admin_client.post("/admin/actions/bulk-post-actions", data={
            "csrf_token": csrf_token, "bulk_action": "publish", "post_ids[]": [self.HUGE],
        })
        assert response.headers["location"] == "/admin/posts"
        assert flash_of(admin_client)["message"] == "No valid posts selected."

    def test_delete_with_oversized_id(self, admin_client, csrf_token):
        response = admin_client.post(
            "/admin/actions/delete-post", data={"csrf_token": csrf_token, "post_id": self.HUGE}, headers=AJAX,
        )
        assert response.status_code == 200
        assert response.json()["success"] is False

    def test_edit_form_with_oversized_id(self, admin_client):
        response = admin_client.get(f"/admin/posts/{self.HUGE}/edit")
        assert response.headers["location"] == "/admin/posts"
        assert flash_of(admin_client)["message"] == f"Post not found (ID: {self.HUGE})."

    def test_edit_submission_with_oversized_id(self, admin_client, admin, csrf_token):
        response = admin_client.post("/admin/actions/edit-post", data=post_fields(
            admin, csrf_token, submit_post="update", post_id=self.HUGE,
        ))
        assert response.headers["location"] == "/admin/posts"
        assert flash_of(admin_client)["message"] == "Invalid or missing post ID"
