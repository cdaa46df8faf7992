from datetime import datetime, timedelta, timezone

from taskdesk.models.user import User
from taskdesk.services.auth_service import generate_otp

from helpers import DEFAULT_PASSWORD


def request_otp(client, email="alice@example.com"):
    return client.post("/api/auth/forgot-password", json={"email": email})


def test_generate_otp_is_six_digits():
    for _ in range(200):
        otp = generate_otp()
        assert len(otp) == 6
        assert 100000 <= int(otp) <= 999999


def test_forgot_password_stores_and_mails_otp(client, db, email_sender, alice):
    response = request_otp(client)

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Password reset OTP sent to your email"}

    assert len(email_sender.sent) == 1
    mail = email_sender.sent[0]
    assert mail.to_address == "alice@example.com"
    assert mail.user_name == "Alice Tester"
    assert mail.expires_minutes == 10

    user = db.query(User).filter(User.username == "alice").one()
    assert user.reset_password_otp == mail.otp
    assert user.reset_password_otp_expires is not None


def test_forgot_password_email_lookup_is_case_insensitive(client, email_sender, alice):
    assert request_otp(client, "ALICE@Example.com").status_code == 200
    assert email_sender.sent[-1].to_address == "alice@example.com"


def test_forgot_password_unknown_email(client, email_sender):
    response = request_otp(client, "nobody@example.com")

    assert response.status_code == 404
    assert response.json()["message"] == "No user found with this email address"
    assert email_sender.sent == []


def test_forgot_password_rejects_malformed_email(client):
    assert request_otp(client, "not-an-email").status_code == 400


def test_new_request_replaces_previous_otp(client, email_sender, alice, monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr("taskdesk.services.auth_service.generate_otp", lambda: next(codes))

    request_otp(client)
    request_otp(client)

    old = client.post("/api/auth/verify-otp", json={"email": "alice@example.com", "otp": "111111"})
    new = client.post("/api/auth/verify-otp", json={"email": "alice@example.com", "otp": "222222"})
    assert old.status_code == 400
    assert new.status_code == 200


def test_verify_otp_does_not_consume_it(client, email_sender, alice):
    request_otp(client)
    payload = {"email": "alice@example.com", "otp": email_sender.last_otp}

    first = client.post("/api/auth/verify-otp", json=payload)
    second = client.post("/api/auth/verify-otp", json=payload)

    assert first.status_code == second.status_code == 200
    assert first.json()["message"] == "OTP verified successfully"


def test_verify_otp_wrong_code(client, email_sender, alice):
    request_otp(client)
    wrong = "000000" if email_sender.last_otp != "000000" else "999999"

    response = client.post("/api/auth/verify-otp", json={"email": "alice@example.com", "otp": wrong})
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid or expired OTP"}


def test_verify_otp_after_expiry(client, db, email_sender, alice):
    request_otp(client)
    user = db.query(User).filter(User.username == "alice").one()
    user.reset_password_otp_expires = datetime.now(timezone.utc) - timedelta(seconds=1)
    db.commit()

    response = client.post("/api/auth/verify-otp", json={"email": "alice@example.com", "otp": email_sender.last_otp})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid or expired OTP"


def test_verify_otp_without_request(client, alice):
    response = client.post("/api/auth/verify-otp", json={"email": "alice@example.com", "otp": "123456"})
    assert response.status_code == 400


def test_update_password_clears_otp_and_changes_login(client, db, email_sender, alice):
    request_otp(client)
    client.post("/api/auth/verify-otp", json={"email": "alice@example.com", "otp": email_sender.last_otp})

    response = client.post(
        "/api/auth/update-password",
        json={"email": "alice@example.com", "newPassword": "brand-new-pass"},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Password updated successfully"

    user = db.query(User).filter(User.username == "alice").one()
    assert user.reset_password_otp is None
    assert user.reset_password_otp_expires is None

    old = client.post("/api/auth/login", json={"username": "alice", "password": DEFAULT_PASSWORD})
    new = client.post("/api/auth/login", json={"username": "alice", "password": "brand-new-pass"})
    assert old.status_code == 401
    assert new.status_code == 200

    # The cleared OTP no longer verifies
    reuse = client.post("/api/auth/verify-otp", json={"email": "alice@example.com", "otp": email_sender.last_otp})
    assert reuse.status_code == 400


def test_update_password_clears_otp_that_was_never_verified(client, db, settings, email_sender, alice):
    request_otp(client)
    issued = db.query(User).filter(User.username == "alice").one()
    assert issued.reset_password_otp == email_sender.last_otp
    db.expire_all()

    response = client.post(
        "/api/auth/update-password",
        json={"email": "alice@example.com", "newPassword": "changed-directly"},
    )
    assert response.status_code == 200

    user = db.query(User).filter(User.username == "alice").one()
    assert user.reset_password_otp is None
    assert user.reset_password_otp_expires is None
    assert user.hashed_password.startswith(f"$2b${settings.BCRYPT_ROUNDS:02d}$")
    assert client.post("/api/auth/login", json={"username": "alice", "password": "changed-directly"}).status_code == 200


def test_update_password_too_short(client, alice):
    response = client.post("/api/auth/update-password", json={"email": "alice@example.com", "newPassword": "12345"})
    assert response.status_code == 400
    assert response.json()["message"] == "Password must be at least 6 characters long"


def test_update_password_unknown_user(client):
    response = client.post("/api/auth/update-password", json={"email": "ghost@example.com", "newPassword": "123456"})
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_mail_outage_surfaces_as_server_error(client, email_sender, alice):
    email_sender.fail = True

    response = request_otp(client)
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to send OTP email"}
