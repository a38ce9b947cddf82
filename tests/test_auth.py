import re
from datetime import datetime
from fastapi import status

from tests.conf_tests import (
    TEST_PASSWORD,
    clear_db,
    client,
    clock,
    notifier,
    reservation_engine,
    test_db,
    test_user,
    timers,
)

SIGNUP_DATA = {
    "student_id": "212345",
    "first_name": "Juan",
    "last_name": "Dela Cruz",
    "email": "Juan.DelaCruz@student.ateneo.edu",
    "password": "securepass",
}


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


# Tests
def test_signup_success():
    response = client.post("/auth/signup", json=SIGNUP_DATA)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["student_id"] == "212345"
    assert data["user"]["email"] == "juan.delacruz@student.ateneo.edu"
    assert data["user"]["name"] == "Juan Dela Cruz"
    assert data["user"]["is_admin"] is False

    response = client.get("/auth/me", headers=bearer(data["access_token"]))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == data["user"]["id"]


def test_signup_wrong_domain():
    response = client.post("/auth/signup", json={**SIGNUP_DATA, "email": "juan@gmail.com"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_signup_invalid_student_id():
    response = client.post("/auth/signup", json={**SIGNUP_DATA, "student_id": "12345"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_signup_short_password():
    response = client.post("/auth/signup", json={**SIGNUP_DATA, "password": "short"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_signup_duplicate():
    assert client.post("/auth/signup", json=SIGNUP_DATA).status_code == status.HTTP_201_CREATED

    response = client.post("/auth/signup", json=SIGNUP_DATA)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["detail"] == "Email already registered"

    other_email = {**SIGNUP_DATA, "email": "someone.else@student.ateneo.edu"}
    response = client.post("/auth/signup", json=other_email)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["detail"] == "Student ID already registered"


# pylint: disable-next=redefined-outer-name
def test_login_success(test_user):
    response = client.post("/auth/login", json={"student_id": test_user.student_id, "password": TEST_PASSWORD})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["user"]["id"] == test_user.id
    assert data["access_token"]


# pylint: disable-next=redefined-outer-name
def test_login_wrong_password(test_user):
    response = client.post("/auth/login", json={"student_id": test_user.student_id, "password": "wrongpassword"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Invalid credentials"


def test_login_unknown_student():
    response = client.post("/auth/login", json={"student_id": "299999", "password": TEST_PASSWORD})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_me_requires_token():
    response = client.get("/auth/me")
    assert response.status_code in [
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
    ]

    response = client.get("/auth/me", headers=bearer("not-a-token"))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


# pylint: disable-next=redefined-outer-name
def test_change_password(test_user):
    token = client.post(
        "/auth/login", json={"student_id": test_user.student_id, "password": TEST_PASSWORD}
    ).json()["access_token"]

    response = client.post(
        "/auth/change-password",
        json={"current_password": "wrongpassword", "new_password": "newpassword"},
        headers=bearer(token),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.post(
        "/auth/change-password",
        json={"current_password": TEST_PASSWORD, "new_password": "newpassword"},
        headers=bearer(token),
    )
    assert response.status_code == status.HTTP_200_OK

    old = client.post("/auth/login", json={"student_id": test_user.student_id, "password": TEST_PASSWORD})
    assert old.status_code == status.HTTP_401_UNAUTHORIZED
    new = client.post("/auth/login", json={"student_id": test_user.student_id, "password": "newpassword"})
    assert new.status_code == status.HTTP_200_OK


def emailed_token(notifier):
    return re.search(r"token=([0-9a-f]+)", notifier.sent[-1].body).group(1)


def login(user, password):
    return client.post("/auth/login", json={"student_id": user.student_id, "password": password})


# pylint: disable-next=redefined-outer-name
def test_password_reset_flow(reservation_engine, notifier, test_user):
    response = client.post("/auth/forgot-password", json={"email": test_user.email.upper()})
    assert response.status_code == status.HTTP_200_OK
    assert notifier.sent[-1].to == test_user.email
    assert notifier.sent[-1].subject == "Reset your RoomReserve password"
    token = emailed_token(notifier)

    response = client.post("/auth/reset-password", json={"token": token, "new_password": "brandnewpass"})
    assert response.status_code == status.HTTP_200_OK
    assert login(test_user, TEST_PASSWORD).status_code == status.HTTP_401_UNAUTHORIZED
    assert login(test_user, "brandnewpass").status_code == status.HTTP_200_OK

    # a token works once
    response = client.post("/auth/reset-password", json={"token": token, "new_password": "anotherpass"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Invalid or expired reset token"


# pylint: disable-next=redefined-outer-name
def test_forgot_password_unknown_email(reservation_engine, notifier):
    response = client.post("/auth/forgot-password", json={"email": "nobody@student.ateneo.edu"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "If an account exists for that email, a reset link has been sent."
    assert notifier.sent == []


# pylint: disable-next=redefined-outer-name
def test_reset_token_expires_after_an_hour(reservation_engine, notifier, clock, test_user):
    client.post("/auth/forgot-password", json={"email": test_user.email})
    token = emailed_token(notifier)

    clock.set(datetime(2024, 6, 1, 13, 1))
    response = client.post("/auth/reset-password", json={"token": token, "new_password": "brandnewpass"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert login(test_user, TEST_PASSWORD).status_code == status.HTTP_200_OK


# pylint: disable-next=redefined-outer-name
def test_reset_with_unknown_token(reservation_engine):
    response = client.post("/auth/reset-password", json={"token": "0123456789abcdef", "new_password": "brandnewpass"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
