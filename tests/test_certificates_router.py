"""Integration tests for /wp-json/tutorpress/v1/certificate (tutorpress/routers/certificates.py)"""
import pytest
from unittest.mock import patch

from conftest import INSTRUCTOR_ID, OTHER_INSTRUCTOR_ID, FakeTemplateProvider
from main import app
from tutorpress.services.certificates import TEMPLATE_META_KEY, get_template_provider
from tutorpress.services.store import WordPressStore

BASE = "/wp-json/tutorpress/v1/certificate"


@pytest.fixture
def courses(wp):
    wp.course(10, "Python 101", author=INSTRUCTOR_ID)
    wp.course(11, "Statistics", author=OTHER_INSTRUCTOR_ID)
    wp.bundle(100, "Data Science Track", author=INSTRUCTOR_ID)
    return wp


class TestGetTemplates:
    def test_lists_templates_without_off(self, client, courses, instructor_headers, template_provider):
        response = client.get(f"{BASE}/templates", headers=instructor_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Certificate templates retrieved successfully."
        assert [t["key"] for t in body["data"]] == ["none", "default", "template_1"]
        assert template_provider.calls == [True]

    def test_template_fields(self, client, courses, instructor_headers):
        response = client.get(f"{BASE}/templates", headers=instructor_headers)

        default = response.json()["data"][1]
        assert default == {
            "key": "default",
            "slug": "default",
            "name": "Default",
            "orientation": "landscape",
            "is_default": True,
            "path": "/templates/default/",
            "url": "https://example.com/templates/default/",
            "preview_src": "https://example.com/templates/default/preview.png",
            "background_src": "https://example.com/templates/default/background.png",
        }

    def test_missing_fields_fall_back(self, client, courses, instructor_headers):
        response = client.get(f"{BASE}/templates", headers=instructor_headers)

        classic = response.json()["data"][2]
        assert classic["orientation"] == "portrait"
        assert classic["is_default"] is False
        assert classic["path"] == ""
        assert classic["preview_src"] == ""

    def test_include_none_false_still_lists_none(self, client, courses, instructor_headers, template_provider):
        response = client.get(f"{BASE}/templates", params={"include_none": "false"}, headers=instructor_headers)

        assert response.status_code == 200
        assert [t["key"] for t in response.json()["data"]] == ["none", "default", "template_1"]
        assert template_provider.calls == [True]

    def test_anonymous_gets_401(self, client, courses):
        response = client.get(f"{BASE}/templates")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_subscriber_gets_403(self, client, courses, subscriber_headers):
        response = client.get(f"{BASE}/templates", headers=subscriber_headers)

        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to access certificate templates."

    def test_addon_disabled_returns_404(self, client, courses, instructor_headers):
        courses.activate(addons=("course_bundle",))

        response = client.get(f"{BASE}/templates", headers=instructor_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "certificate_addon_disabled"

    def test_tutor_lms_inactive_returns_500(self, client, courses, instructor_headers):
        courses.activate(tutor=False)

        response = client.get(f"{BASE}/templates", headers=instructor_headers)

        assert response.status_code == 500
        assert response.json()["code"] == "tutor_not_active"

    def test_no_provider_returns_500(self, client, courses, instructor_headers):
        app.dependency_overrides[get_template_provider] = lambda: None

        response = client.get(f"{BASE}/templates", headers=instructor_headers)

        assert response.status_code == 500
        assert response.json()["code"] == "certificate_class_missing"

    def test_no_templates_returns_404(self, client, courses, instructor_headers):
        app.dependency_overrides[get_template_provider] = lambda: FakeTemplateProvider(templates={})

        response = client.get(f"{BASE}/templates", headers=instructor_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "no_templates"

    def test_provider_error_returns_500(self, client, courses, instructor_headers, template_provider):
        template_provider.error = RuntimeError("disk on fire")

        response = client.get(f"{BASE}/templates", headers=instructor_headers)

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "template_fetch_error"
        assert "disk on fire" in body["message"]


class TestSaveSelection:
    def test_save_and_read_back(self, client, courses, store, instructor_headers):
        response = client.post(f"{BASE}/save", json={"course_id": 10, "template_key": "template_1"}, headers=instructor_headers)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Certificate template selection saved successfully.",
            "data": {"course_id": 10, "template_key": "template_1", "meta_key": TEMPLATE_META_KEY},
        }
        assert store.get_post_meta(10, TEMPLATE_META_KEY) == "template_1"

        selection = client.get(f"{BASE}/selection/10", headers=instructor_headers)
        assert selection.json()["data"]["template_key"] == "template_1"

    def test_saving_same_key_twice_succeeds(self, client, courses, instructor_headers):
        payload = {"course_id": 10, "template_key": "default"}
        client.post(f"{BASE}/save", json=payload, headers=instructor_headers)

        response = client.post(f"{BASE}/save", json=payload, headers=instructor_headers)

        assert response.status_code == 200

    def test_none_is_a_valid_key(self, client, courses, instructor_headers):
        response = client.post(f"{BASE}/save", json={"course_id": 10, "template_key": "none"}, headers=instructor_headers)

        assert response.status_code == 200

    def test_unknown_template_returns_400(self, client, courses, instructor_headers):
        response = client.post(f"{BASE}/save", json={"course_id": 10, "template_key": "fancy"}, headers=instructor_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "rest_invalid_param"
        assert "template_key" in body["data"]["params"]

    @pytest.mark.parametrize("course_id", [0, 999, 100])
    def test_invalid_course_returns_400(self, client, courses, instructor_headers, course_id):
        response = client.post(f"{BASE}/save", json={"course_id": course_id, "template_key": "default"}, headers=instructor_headers)

        assert response.status_code == 400
        assert "course_id" in response.json()["data"]["params"]

    def test_missing_template_key_returns_400(self, client, courses, instructor_headers):
        response = client.post(f"{BASE}/save", json={"course_id": 10}, headers=instructor_headers)

        assert response.status_code == 400
        assert "template_key" in response.json()["data"]["params"]

    def test_cannot_save_for_another_instructors_course(self, client, courses, instructor_headers):
        response = client.post(f"{BASE}/save", json={"course_id": 11, "template_key": "default"}, headers=instructor_headers)

        assert response.status_code == 403

    def test_co_instructor_can_save(self, client, courses, instructor_headers):
        courses.meta(11, "_tutor_course_instructors", [INSTRUCTOR_ID])

        response = client.post(f"{BASE}/save", json={"course_id": 11, "template_key": "default"}, headers=instructor_headers)

        assert response.status_code == 200

    def test_admin_can_save_for_any_course(self, client, courses, admin_headers):
        response = client.post(f"{BASE}/save", json={"course_id": 11, "template_key": "default"}, headers=admin_headers)

        assert response.status_code == 200

    def test_anonymous_gets_403(self, client, courses):
        response = client.post(f"{BASE}/save", json={"course_id": 10, "template_key": "default"})

        assert response.status_code == 403

    def test_addon_disabled_returns_404(self, client, courses, instructor_headers):
        courses.activate(addons=())

        response = client.post(f"{BASE}/save", json={"course_id": 10, "template_key": "default"}, headers=instructor_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "certificate_addon_disabled"

    def test_key_accepted_when_provider_fails(self, client, courses, store, instructor_headers, template_provider):
        template_provider.error = RuntimeError("unavailable")

        response = client.post(f"{BASE}/save", json={"course_id": 10, "template_key": "custom"}, headers=instructor_headers)

        assert response.status_code == 200
        assert store.get_post_meta(10, TEMPLATE_META_KEY) == "custom"

    def test_serialized_looking_key_reads_back_unchanged(self, client, courses, store, instructor_headers, template_provider):
        template_provider.error = RuntimeError("unavailable")

        response = client.post(f"{BASE}/save", json={"course_id": 10, "template_key": "i:5;"}, headers=instructor_headers)

        assert response.status_code == 200
        assert response.json()["data"]["template_key"] == "i:5;"
        assert store.get_post_meta(10, TEMPLATE_META_KEY) == "i:5;"

    def test_key_rejected_without_provider(self, client, courses, instructor_headers):
        app.dependency_overrides[get_template_provider] = lambda: None

        response = client.post(f"{BASE}/save", json={"course_id": 10, "template_key": "default"}, headers=instructor_headers)

        assert response.status_code == 400

    def test_read_back_mismatch_returns_500(self, client, courses, instructor_headers):
        with patch.object(WordPressStore, "get_post_meta", return_value="default"):
            response = client.post(f"{BASE}/save", json={"course_id": 10, "template_key": "template_1"}, headers=instructor_headers)

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "save_failed"
        assert "Expected: template_1, Got: default" in body["message"]


class TestGetSelection:
    def test_defaults_to_default_template(self, client, courses, instructor_headers):
        response = client.get(f"{BASE}/selection/10", headers=instructor_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {
            "course_id": 10,
            "template_key": "default",
            "meta_key": TEMPLATE_META_KEY,
        }

    def test_unknown_course_returns_400(self, client, courses, instructor_headers):
        response = client.get(f"{BASE}/selection/999", headers=instructor_headers)

        assert response.status_code == 400

    def test_other_instructors_course_returns_403(self, client, courses, instructor_headers):
        response = client.get(f"{BASE}/selection/11", headers=instructor_headers)

        assert response.status_code == 403

    def test_trashed_course_cannot_be_edited(self, client, courses, db, admin_headers):
        from tutorpress.models import Post

        db.query(Post).filter(Post.id == 10).update({"post_status": "trash"})
        db.commit()

        response = client.get(f"{BASE}/selection/10", headers=admin_headers)

        assert response.status_code == 403
