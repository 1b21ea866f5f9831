"""
Supabase adapters against fake clients (no network).

The fakes mimic the supabase-py builder chain closely enough to check which
calls are issued and how backend errors are translated.
"""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from backend.catalog.errors import BackendQueryError, BackendWriteError
from backend.catalog.repo_supabase import SupabaseCatalogRepo
from backend.catalog.storage_supabase import SupabaseStorageAdapter
from backend.identity_access.supabase_auth import AuthError, SupabaseAuthService


class FakeAPIError(Exception):
    def __init__(self, message: str, status=None):
        super().__init__(message)
        self.message = message
        self.status = status


class FakeQuery:
    def __init__(self, client, table: str):
        self.client = client
        self.calls = [("table", table)]

    def __getattr__(self, name):
        def step(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return step

    def execute(self):
        self.client.queries.append(self.calls)
        if self.client.error is not None:
            raise self.client.error
        return SimpleNamespace(data=self.client.data)


class FakeClient:
    def __init__(self, data=None, error=None):
        self.data = data if data is not None else []
        self.error = error
        self.queries = []

    def table(self, name):
        return FakeQuery(self, name)


# --- Catalog repo ----------------------------------------------------------------


def test_list_courses_orders_by_order_then_creation():
    client = FakeClient(data=[{"id": "c1", "title": "Excel", "order": 1}])
    rows = SupabaseCatalogRepo(client).list_courses()

    assert rows == [{"id": "c1", "title": "Excel", "order": 1}]
    calls = client.queries[0]
    assert calls[0] == ("table", "courses")
    assert ("order", ("order",), {"nullsfirst": False}) in calls
    assert ("order", ("created_at",), {}) in calls


def test_list_lessons_filters_by_course():
    client = FakeClient()
    assert SupabaseCatalogRepo(client).list_lessons("c1") == []
    assert ("eq", ("course_id", "c1"), {}) in client.queries[0]


def test_get_course_returns_none_when_no_row_matches():
    assert SupabaseCatalogRepo(FakeClient(data=[])).get_course("c1") is None


def test_read_errors_become_query_errors_with_backend_message():
    repo = SupabaseCatalogRepo(FakeClient(error=FakeAPIError("JWT expired")))
    with pytest.raises(BackendQueryError) as excinfo:
        repo.list_courses()
    assert excinfo.value.message == "JWT expired"


def test_write_errors_become_write_errors():
    repo = SupabaseCatalogRepo(FakeClient(error=FakeAPIError("new row violates row-level security policy")))
    with pytest.raises(BackendWriteError) as excinfo:
        repo.insert_course({"title": "Excel"})
    assert "row-level security" in excinfo.value.message


def test_insert_sends_only_known_columns():
    client = FakeClient(data=[{"id": "c1", "title": "Excel"}])
    SupabaseCatalogRepo(client).insert_course({"title": "Excel", "order": 2, "id": "forged", "created_at": "x"})

    insert = next(c for c in client.queries[0] if c[0] == "insert")
    assert insert[1][0] == {"title": "Excel", "order": 2}


def test_lesson_update_never_moves_a_lesson_to_another_course():
    client = FakeClient()
    with pytest.raises(BackendWriteError):
        SupabaseCatalogRepo(client).update_lesson("l1", {"course_id": "c2"})
    assert client.queries == []


def test_delete_reports_whether_a_row_was_removed():
    assert SupabaseCatalogRepo(FakeClient(data=[{"id": "c1"}])).delete_course("c1") is True
    assert SupabaseCatalogRepo(FakeClient(data=[])).delete_lesson("l1") is False


# --- Storage ---------------------------------------------------------------------


class FakeBucket:
    def __init__(self, public_url_result):
        self.public_url_result = public_url_result
        self.uploads = []
        self.removed = []

    def upload(self, path, body, options):
        self.uploads.append((path, body, options))

    def get_public_url(self, path):
        return self.public_url_result

    def remove(self, paths):
        self.removed.extend(paths)


def _storage_client(bucket: FakeBucket):
    return SimpleNamespace(storage=SimpleNamespace(from_=lambda name: bucket))


def test_upload_strips_bucket_prefix_and_sets_content_type():
    bucket = FakeBucket("https://x.supabase.co/storage/v1/object/public/course-images/courses/a.png")
    adapter = SupabaseStorageAdapter(_storage_client(bucket))

    adapter.put_object(bucket="course-images", key="course-images/courses/a.png", body=b"img", content_type="image/png")

    path, body, options = bucket.uploads[0]
    assert path == "courses/a.png"
    assert options["content-type"] == "image/png"
    assert options["upsert"] == "false"


@pytest.mark.parametrize(
    "result",
    [
        "https://x.supabase.co/storage/v1/object/public/course-images/courses/a.png?",
        {"publicURL": "https://x.supabase.co/storage/v1/object/public/course-images/courses/a.png"},
        {"data": {"publicUrl": "https://x.supabase.co/storage/v1/object/public/course-images/courses/a.png"}},
    ],
)
def test_public_url_accepts_every_client_shape(result):
    adapter = SupabaseStorageAdapter(_storage_client(FakeBucket(result)))
    url = adapter.public_url(bucket="course-images", key="courses/a.png")
    assert url == "https://x.supabase.co/storage/v1/object/public/course-images/courses/a.png"


def test_missing_public_url_raises():
    adapter = SupabaseStorageAdapter(_storage_client(FakeBucket({})))
    with pytest.raises(RuntimeError):
        adapter.public_url(bucket="course-images", key="courses/a.png")


def test_delete_object_removes_one_path():
    bucket = FakeBucket("")
    SupabaseStorageAdapter(_storage_client(bucket)).delete_object(bucket="course-images", key="/courses/a.png")
    assert bucket.removed == ["courses/a.png"]


# --- Auth ------------------------------------------------------------------------


class FakeAuth:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def _response(self, email="admin@lgc.test"):
        return SimpleNamespace(
            user=SimpleNamespace(id="uuid-1", email=email),
            session=SimpleNamespace(access_token="at", refresh_token="rt", expires_at=123),
        )

    def sign_in_with_password(self, credentials):
        self.calls.append(("sign_in", credentials["email"]))
        if self.error:
            raise self.error
        return self._response(credentials["email"])

    def refresh_session(self, refresh_token):
        self.calls.append(("refresh", refresh_token))
        if self.error:
            raise self.error
        return self._response()

    def set_session(self, access_token, refresh_token):
        self.calls.append(("set_session", access_token))

    def sign_out(self):
        self.calls.append(("sign_out",))


def _auth_service(auth: FakeAuth) -> SupabaseAuthService:
    return SupabaseAuthService(lambda: SimpleNamespace(auth=auth))


def test_sign_in_returns_the_backend_tokens():
    tokens = _auth_service(FakeAuth()).sign_in("admin@lgc.test", "pw")
    assert (tokens.user_id, tokens.access_token, tokens.refresh_token, tokens.expires_at) == ("uuid-1", "at", "rt", 123)


@pytest.mark.parametrize(
    "status, code",
    [(400, "invalid_credentials"), (429, "rate_limited"), (None, "auth_unavailable")],
)
def test_sign_in_errors_are_classified(status, code):
    service = _auth_service(FakeAuth(error=FakeAPIError("nope", status=status)))
    with pytest.raises(AuthError) as excinfo:
        service.sign_in("admin@lgc.test", "pw")
    assert excinfo.value.code == code


def test_refresh_distinguishes_rejection_from_outage():
    with pytest.raises(AuthError) as rejected:
        _auth_service(FakeAuth(error=FakeAPIError("invalid refresh token", status=400))).refresh("rt")
    with pytest.raises(AuthError) as outage:
        _auth_service(FakeAuth(error=ConnectionError("timeout"))).refresh("rt")
    assert rejected.value.code == "refresh_failed"
    assert outage.value.code == "auth_unavailable"


def test_sign_out_acts_on_the_given_session():
    auth = FakeAuth()
    _auth_service(auth).sign_out("at", "rt")
    assert auth.calls == [("set_session", "at"), ("sign_out",)]
