# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from smartplate.db.models import AppRole
from smartplate.services.storage import NGO_DOCUMENTS_BUCKET, VOLUNTEER_DOCUMENTS_BUCKET
from smartplate.services.verification import REQUIRED_DOCUMENTS
from tests.test_helpers import NGO_DETAILS, VOLUNTEER_DETAILS, auth_headers, create_user, food_request_payload


def _ngo_user(db_session, email="ngo@example.com"):
    user = create_user(db_session, email, AppRole.NGO, full_name="Asha Rao")
    return user, auth_headers(user)


def _upload_required(client, headers, role="ngo"):
    for document_type in REQUIRED_DOCUMENTS[AppRole(role)]:
        response = client.post(
            f"/api/v1/{role}/verification/documents",
            data={"document_type": document_type},
            files={"file": (f"{document_type}.pdf", b"%PDF-1.4 test", "application/pdf")},
            headers=headers,
        )
        assert response.status_code == 201, response.text


def test_ngo_gate_before_submission(client: TestClient, db_session: Session):
    _, headers = _ngo_user(db_session)

    assert client.get("/api/v1/ngo/verification", headers=headers).status_code == 404
    gate = client.get("/api/v1/ngo/verification/gate", headers=headers).json()

    assert gate["state"] == "unsubmitted"
    assert gate["title"] == "Verification Required"
    assert gate["can_submit"] is True


def test_submission_waits_for_required_documents(client: TestClient, db_session: Session):
    _, headers = _ngo_user(db_session)

    gate = client.get("/api/v1/ngo/verification/gate", headers=headers).json()
    assert gate["missing_documents"] == ["registration_certificate", "address_proof"]
    blocked = client.put("/api/v1/ngo/verification", json=NGO_DETAILS, headers=headers)
    assert blocked.status_code == 400
    assert blocked.json()["detail"] == "Upload the required documents first: registration_certificate, address_proof"

    _upload_required(client, headers)

    assert client.get("/api/v1/ngo/verification/gate", headers=headers).json()["missing_documents"] == []
    assert client.put("/api/v1/ngo/verification", json=NGO_DETAILS, headers=headers).status_code == 200


def test_unverified_ngo_cannot_create_requests(client: TestClient, db_session: Session):
    _, headers = _ngo_user(db_session)
    _upload_required(client, headers)
    client.put("/api/v1/ngo/verification", json=NGO_DETAILS, headers=headers)

    response = client.post("/api/v1/food-requests", json={"title": "Lunch", "quantity_needed": 5}, headers=headers)

    assert response.status_code == 403
    assert "being reviewed" in response.json()["detail"]


def test_ngo_rejection_and_resubmission_flow(client: TestClient, db_session: Session, admin, notifications):
    _, admin_headers = admin
    _, headers = _ngo_user(db_session)

    _upload_required(client, headers)
    submitted = client.put("/api/v1/ngo/verification", json=NGO_DETAILS, headers=headers)
    assert submitted.status_code == 200
    details_id = submitted.json()["id"]
    assert submitted.json()["verification_status"] == "pending"

    pending = client.get("/api/v1/admin/ngos/pending", headers=admin_headers).json()
    assert [item["id"] for item in pending] == [details_id]
    assert pending[0]["contact_name"] == "Asha Rao"

    rejected = client.post(
        f"/api/v1/admin/ngos/{details_id}/reject", json={"reason": "Registration number mismatch"}, headers=admin_headers
    )
    assert rejected.status_code == 200
    assert rejected.json()["verification_status"] == "rejected"
    notifications["verification"].assert_called_once_with("ngo_details", details_id)

    gate = client.get("/api/v1/ngo/verification/gate", headers=headers).json()
    assert gate["state"] == "rejected"
    assert gate["message"] == "Registration number mismatch"

    resubmitted = client.put(
        "/api/v1/ngo/verification", json={**NGO_DETAILS, "registration_number": "REG-009"}, headers=headers
    )
    assert resubmitted.json()["verification_status"] == "pending"
    assert resubmitted.json()["rejection_reason"] is None

    approved = client.post(f"/api/v1/admin/ngos/{details_id}/approve", headers=admin_headers)
    assert approved.json()["verification_status"] == "approved"
    assert client.get("/api/v1/ngo/verification/gate", headers=headers).json()["allowed"] is True

    locked = client.put("/api/v1/ngo/verification", json=NGO_DETAILS, headers=headers)
    assert locked.status_code == 409


def test_reject_without_reason_uses_default(client: TestClient, db_session: Session, admin):
    _, admin_headers = admin
    _, headers = _ngo_user(db_session)
    _upload_required(client, headers)
    details_id = client.put("/api/v1/ngo/verification", json=NGO_DETAILS, headers=headers).json()["id"]

    response = client.post(f"/api/v1/admin/ngos/{details_id}/reject", headers=admin_headers)

    assert response.json()["rejection_reason"] == "Documents could not be verified"


def test_review_twice_conflicts(client: TestClient, db_session: Session, admin):
    _, admin_headers = admin
    _, headers = _ngo_user(db_session)
    _upload_required(client, headers)
    details_id = client.put("/api/v1/ngo/verification", json=NGO_DETAILS, headers=headers).json()["id"]

    assert client.post(f"/api/v1/admin/ngos/{details_id}/approve", headers=admin_headers).status_code == 200
    repeated = client.post(f"/api/v1/admin/ngos/{details_id}/approve", headers=admin_headers)
    assert repeated.status_code == 409
    assert repeated.json()["detail"] == "Verification is already approved"
    assert client.post("/api/v1/admin/ngos/999/approve", headers=admin_headers).status_code == 404


def test_admin_can_revoke_an_approval(client: TestClient, db_session: Session, admin):
    _, admin_headers = admin
    _, headers = _ngo_user(db_session)
    _upload_required(client, headers)
    details_id = client.put("/api/v1/ngo/verification", json=NGO_DETAILS, headers=headers).json()["id"]
    client.post(f"/api/v1/admin/ngos/{details_id}/approve", headers=admin_headers)

    response = client.post(
        f"/api/v1/admin/ngos/{details_id}/reject", json={"reason": "Licence revoked"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["verification_status"] == "rejected"
    assert response.json()["rejection_reason"] == "Licence revoked"
    assert client.post("/api/v1/food-requests", json=food_request_payload(), headers=headers).status_code == 403


def test_review_requires_admin(client: TestClient, db_session: Session):
    _, headers = _ngo_user(db_session)
    _upload_required(client, headers)
    details_id = client.put("/api/v1/ngo/verification", json=NGO_DETAILS, headers=headers).json()["id"]

    assert client.post(f"/api/v1/admin/ngos/{details_id}/approve", headers=headers).status_code == 403


def test_volunteer_verification_flow(client: TestClient, db_session: Session, admin):
    _, admin_headers = admin
    user = create_user(db_session, "volunteer@example.com", AppRole.VOLUNTEER)
    headers = auth_headers(user)

    assert client.get("/api/v1/volunteer/food-requests", headers=headers).status_code == 403

    _upload_required(client, headers, "volunteer")
    submitted = client.put("/api/v1/volunteer/verification", json=VOLUNTEER_DETAILS, headers=headers)
    assert submitted.status_code == 200
    details_id = submitted.json()["id"]

    pending = client.get("/api/v1/admin/volunteers/pending", headers=admin_headers).json()
    assert [item["id"] for item in pending] == [details_id]

    client.post(f"/api/v1/admin/volunteers/{details_id}/approve", headers=admin_headers)

    assert client.get("/api/v1/volunteer/verification/gate", headers=headers).json()["state"] == "approved"
    assert client.get("/api/v1/volunteer/food-requests", headers=headers).status_code == 200


def test_volunteer_details_validate_id_type(client: TestClient, db_session: Session):
    user = create_user(db_session, "volunteer@example.com", AppRole.VOLUNTEER)

    response = client.put(
        "/api/v1/volunteer/verification",
        json={**VOLUNTEER_DETAILS, "government_id_type": "library_card"},
        headers=auth_headers(user),
    )

    assert response.status_code == 422


def test_upload_and_verify_documents(client: TestClient, db_session: Session, admin, storage):
    admin_user, admin_headers = admin
    user, headers = _ngo_user(db_session)

    response = client.post(
        "/api/v1/ngo/verification/documents",
        data={"document_type": "registration_certificate"},
        files={"file": ("certificate.pdf", b"%PDF-1.4 test", "application/pdf")},
        headers=headers,
    )

    assert response.status_code == 201
    document = response.json()
    assert document["document_url"].startswith(f"/files/{NGO_DOCUMENTS_BUCKET}/{user.id}/registration_certificate-")
    assert document["document_url"].endswith(".pdf")
    assert document["verified"] is False
    key = document["document_url"].split(f"/files/{NGO_DOCUMENTS_BUCKET}/", 1)[1]
    assert storage.exists(NGO_DOCUMENTS_BUCKET, key)

    listed = client.get("/api/v1/ngo/verification/documents", headers=headers).json()
    assert [item["id"] for item in listed] == [document["id"]]

    verified = client.post(f"/api/v1/admin/documents/{document['id']}/verify", headers=admin_headers)
    assert verified.status_code == 200
    assert verified.json()["verified"] is True
    assert client.post(f"/api/v1/admin/documents/{document['id']}/verify", headers=admin_headers).status_code == 409


def test_upload_rejects_unknown_document_type(client: TestClient, db_session: Session):
    _, headers = _ngo_user(db_session)

    response = client.post(
        "/api/v1/ngo/verification/documents",
        data={"document_type": "government_id"},
        files={"file": ("id.png", b"png-bytes", "image/png")},
        headers=headers,
    )

    assert response.status_code == 400


def test_volunteer_document_goes_to_volunteer_bucket(client: TestClient, db_session: Session):
    user = create_user(db_session, "volunteer@example.com", AppRole.VOLUNTEER)

    response = client.post(
        "/api/v1/volunteer/verification/documents",
        data={"document_type": "government_id"},
        files={"file": ("aadhaar.JPG", b"jpeg-bytes", "image/jpeg")},
        headers=auth_headers(user),
    )

    assert response.status_code == 201
    assert response.json()["document_url"].startswith(f"/files/{VOLUNTEER_DOCUMENTS_BUCKET}/{user.id}/government_id-")
    assert response.json()["document_url"].endswith(".jpg")


def test_empty_upload_is_rejected(client: TestClient, db_session: Session):
    _, headers = _ngo_user(db_session)

    response = client.post(
        "/api/v1/ngo/verification/documents",
        data={"document_type": "address_proof"},
        files={"file": ("empty.pdf", b"", "application/pdf")},
        headers=headers,
    )

    assert response.status_code == 400
