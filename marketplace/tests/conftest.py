import pytest
from rest_framework.test import APIClient

from marketplace import catalog, identity
from marketplace.models import User


@pytest.fixture(autouse=True)
def fast_password_hasher(settings):
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']


@pytest.fixture
def teacher(db):
    return identity.register('Tina Teacher', 'tina@example.com', 'secret123', role=User.TEACHER)


@pytest.fixture
def other_teacher(db):
    return identity.register('Omar Other', 'omar@example.com', 'secret123', role=User.TEACHER)


@pytest.fixture
def student(db):
    return identity.register('Sam Student', 'sam@example.com', 'secret123', role=User.STUDENT)


@pytest.fixture
def second_student(db):
    return identity.register('Sara Second', 'sara@example.com', 'secret123', role=User.STUDENT)


@pytest.fixture
def admin_user(db):
    return identity.register('Ada Admin', 'ada@example.com', 'secret123', role=User.ADMIN)


@pytest.fixture
def make_course(teacher):
    def _make(owner=None, publish=True, **fields):
        data = {
            'title': 'Intro to Algebra',
            'description': 'Numbers and letters',
            'subject': 'math',
            'price': 10,
            'duration': 5,
        }
        data.update(fields)
        owner = owner or teacher
        course = catalog.create_course(owner.pk, data)
        if publish:
            course = catalog.publish_toggle(course.pk, owner.pk, True)
        return course
    return _make


@pytest.fixture
def course(make_course):
    return make_course()


@pytest.fixture
def client_for():
    def _client(user=None):
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client
    return _client
