import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from tutorpress.auth.security import create_access_token
from tutorpress.database import get_db
from tutorpress.models import Base, Option, Post, PostMeta, PostType, User, UserMeta
from tutorpress.services.certificates import get_template_provider
from tutorpress.services.feature_flags import ADDON_BASENAMES, TUTOR_LMS_PLUGIN, TUTOR_PRO_PLUGIN
from tutorpress.services.meta import maybe_serialize
from tutorpress.services.store import WordPressStore


ADMIN_ID = 1
INSTRUCTOR_ID = 2
OTHER_INSTRUCTOR_ID = 3
SUBSCRIBER_ID = 4


class WordPressFactory:
    """Seeds rows in the WordPress tables"""

    def __init__(self, db):
        self.db = db

    def user(self, id, login, roles=(), email=None, display_name=None, job_title=None, password_hash=""):
        user = User(
            id=id,
            user_login=login,
            user_email=email or f"{login}@example.com",
            display_name=display_name or login.title(),
            user_pass=password_hash,
            user_registered=datetime(2024, 1, 1),
        )
        self.db.add(user)
        self.db.add(UserMeta(user_id=id, meta_key="wp_capabilities", meta_value=maybe_serialize({r: True for r in roles})))
        if job_title is not None:
            self.db.add(UserMeta(user_id=id, meta_key="_tutor_profile_job_title", meta_value=job_title))
        self.db.commit()
        return user

    def post(self, id, post_type, title, author=ADMIN_ID, status="publish", name=None, content="", date=None, guid=""):
        date = date or datetime(2024, 1, 1, 10, 0, 0)
        post = Post(
            id=id,
            post_type=post_type,
            post_title=title,
            post_author=author,
            post_status=status,
            post_name=name if name is not None else title.lower().replace(" ", "-"),
            post_content=content,
            post_date=date,
            post_modified=date,
            guid=guid,
        )
        self.db.add(post)
        self.db.commit()
        return post

    def course(self, id, title, author=ADMIN_ID, price_type="paid", price=None, sale_price=None, **meta):
        course = self.post(id, PostType.COURSE, title, author=author)
        self.meta(id, "_tutor_course_price_type", price_type)
        if price is not None:
            self.meta(id, "tutor_course_price", price)
        if sale_price is not None:
            self.meta(id, "tutor_course_sale_price", sale_price)
        for key, value in meta.items():
            self.meta(id, key, value)
        return course

    def bundle(self, id, title, author=ADMIN_ID, course_ids=None, **kwargs):
        bundle = self.post(id, PostType.BUNDLE, title, author=author, **kwargs)
        if course_ids is not None:
            self.meta(id, "bundle-course-ids", course_ids)
        return bundle

    def meta(self, post_id, key, value):
        self.db.add(PostMeta(post_id=post_id, meta_key=key, meta_value=maybe_serialize(value)))
        self.db.commit()

    def option(self, name, value):
        row = self.db.query(Option).filter(Option.option_name == name).first()
        if row is None:
            row = Option(option_name=name, option_value="")
            self.db.add(row)
        row.option_value = maybe_serialize(value)
        self.db.commit()

    def activate(self, tutor=True, pro=True, addons=("certificate", "course_bundle")):
        plugins = []
        if tutor:
            plugins.append(TUTOR_LMS_PLUGIN)
        if pro:
            plugins.append(TUTOR_PRO_PLUGIN)
        self.option("active_plugins", plugins)
        self.option(
            "tutor_addons_config",
            {ADDON_BASENAMES[key]: {"is_enable": 1 if key in addons else 0} for key in ADDON_BASENAMES},
        )


class FakeTemplateProvider:
    """In-memory stand-in for the certificate addon"""

    def __init__(self, templates=None, error=None):
        self.templates = templates if templates is not None else {
            "none": {"name": "None"},
            "off": {"name": "Off"},
            "default": {
                "name": "Default",
                "orientation": "landscape",
                "is_default": True,
                "path": "/templates/default/",
                "url": "https://example.com/templates/default/",
                "preview_src": "https://example.com/templates/default/preview.png",
                "background_src": "https://example.com/templates/default/background.png",
            },
            "template_1": {"name": "Classic", "orientation": "portrait"},
        }
        self.error = error
        self.calls = []

    def list_templates(self, include_off_and_none):
        self.calls.append(include_off_and_none)
        if self.error:
            raise self.error
        if include_off_and_none:
            return dict(self.templates)
        return {k: v for k, v in self.templates.items() if k not in ("none", "off")}


@pytest.fixture
def db():
    """Fresh in-memory WordPress database"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def store(db):
    return WordPressStore(db)


@pytest.fixture
def wp(db):
    """Site with Tutor LMS, Tutor Pro and both addons active, plus four users"""
    factory = WordPressFactory(db)
    factory.activate()
    factory.user(ADMIN_ID, "admin", roles=["administrator"])
    factory.user(INSTRUCTOR_ID, "jane", roles=["tutor_instructor"], display_name="Jane Doe", job_title="Data Scientist")
    factory.user(OTHER_INSTRUCTOR_ID, "omar", roles=["tutor_instructor"], display_name="Omar Ali")
    factory.user(SUBSCRIBER_ID, "sam", roles=["subscriber"])
    return factory


@pytest.fixture
def template_provider():
    return FakeTemplateProvider()


@pytest.fixture
def client(db, template_provider):
    """TestClient bound to the in-memory database and fake template provider"""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_template_provider] = lambda: template_provider
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def auth_headers(user_id):
    token = create_access_token({"sub": str(user_id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return auth_headers(ADMIN_ID)


@pytest.fixture
def instructor_headers():
    return auth_headers(INSTRUCTOR_ID)


@pytest.fixture
def subscriber_headers():
    return auth_headers(SUBSCRIBER_ID)
