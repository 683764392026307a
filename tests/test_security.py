"""Tests for bearer tokens and actor roles."""

from datetime import timedelta

from jose import jwt

from classroom.core.security import ALGORITHM, Actor, Role, create_access_token, verify_token
from classroom.core.settings import settings


class TestTokens:
    """Token round trip."""

    def test_round_trip(self, student_actor):
        token = create_access_token(student_actor)

        actor = verify_token(token)

        assert actor == student_actor

    def test_student_id_travels_in_token(self, student_actor, lecturer):
        assert verify_token(create_access_token(student_actor)).student_id == 5
        assert verify_token(create_access_token(lecturer)).student_id is None

    def test_expired_token(self, lecturer):
        token = create_access_token(lecturer, expires_delta=timedelta(minutes=-1))

        assert verify_token(token) is None

    def test_garbage_token(self):
        assert verify_token("not-a-token") is None

    def test_wrong_signature(self, lecturer):
        token = jwt.encode({"sub": "x", "role": "ADMIN"}, "other-secret", algorithm=ALGORITHM)

        assert verify_token(token) is None

    def test_unknown_role(self):
        token = jwt.encode({"sub": "x", "role": "JANITOR"}, settings.secret_key, algorithm=ALGORITHM)

        assert verify_token(token) is None


class TestActor:
    """Role checks."""

    def test_staff_roles(self, lecturer):
        assert lecturer.is_staff
        assert Actor(user_id="root", role=Role.ADMIN).is_staff

    def test_student_is_not_staff(self, student_actor):
        assert not student_actor.is_staff
        assert str(student_actor) == "STUDENT:se170005@example.edu"
