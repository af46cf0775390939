import itertools
from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from rest_framework.test import APIClient

from competitions.models import Competition, CompetitionLevel, CompetitionType
from competitions.services import create_team
from userManage.models import Major
from userManage.permissions import COMP_ADMIN_ROLE, STUDENT_ROLE

User = get_user_model()

PASSWORD = 'secret-pass-123'


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / 'media')


@pytest.fixture
def major(db):
    return Major.objects.create(name='Informatics')


@pytest.fixture
def make_user(db, major):
    counter = itertools.count(1)

    def _make(name=None, student_id=None, **extra):
        n = next(counter)
        student_id = student_id or f"{2024000000 + n}"
        user = User.objects.create_user(
            student_id=student_id,
            email=f"{student_id}@campus.test",
            password=PASSWORD,
            name=name or f"Student {n}",
            cohort='2024',
            major=major,
            **extra
        )
        group, _ = Group.objects.get_or_create(name=STUDENT_ROLE)
        user.groups.add(group)
        return user

    return _make


@pytest.fixture
def leader(make_user):
    return make_user(name='Lena Leader')


@pytest.fixture
def alice(make_user):
    return make_user(name='Alice')


@pytest.fixture
def bob(make_user):
    return make_user(name='Bob')


@pytest.fixture
def comp_admin(make_user):
    user = make_user(name='Admin')
    group, _ = Group.objects.get_or_create(name=COMP_ADMIN_ROLE)
    user.groups.add(group)
    return user


@pytest.fixture
def make_competition(db):
    def _make(title='Hackathon', type=CompetitionType.TEAM, ends_in=timedelta(days=30)):
        now = timezone.now()
        return Competition.objects.create(
            title=title,
            description='Annual campus hackathon',
            category='Programming',
            level=CompetitionLevel.NATIONAL,
            type=type,
            poster='poster/hackathon.png',
            start_date=now - timedelta(days=1),
            end_date=now + ends_in,
        )

    return _make


@pytest.fixture
def competition(make_competition):
    return make_competition()


@pytest.fixture
def make_team(competition):
    def _make(leader, name='Alpha', open_slots=2, competition=competition):
        return create_team(competition, leader, {'name': name, 'open_slots': open_slots})

    return _make


@pytest.fixture
def team(make_team, leader):
    return make_team(leader)


@pytest.fixture
def client_for():
    def _client(user=None):
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture
def upload():
    def _upload(name='receipt.png', content=b'\x89PNG\r\n\x1a\nfake', content_type='image/png'):
        return SimpleUploadedFile(name, content, content_type=content_type)

    return _upload
