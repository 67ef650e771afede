# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import threading

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from smartplate.crud import crud_food_request
from smartplate.crud.conditional import TransitionOutcome
from smartplate.db.database import Base
from smartplate.db.models import AppRole, FoodRequestStatus
from smartplate.events.realtime import change_feed
from smartplate.schemas import schemas
from tests.test_helpers import MockBackgroundTasks, approved_ngo, approved_volunteer, create_user, food_request_payload


def _create(db, ngo_user, ngo, **overrides):
    return crud_food_request.create_food_request(
        db, schemas.FoodRequestCreate(**food_request_payload(**overrides)), ngo, ngo_user.id
    )


def test_create_food_request_starts_pending(db_session):
    ngo_user, ngo = approved_ngo(db_session)

    db_request = _create(db_session, ngo_user, ngo, description="   ", address="")

    assert db_request.status == FoodRequestStatus.PENDING
    assert db_request.ngo_id == ngo.id
    assert db_request.description is None
    assert db_request.address is None
    assert db_request.donor_id is None


def test_second_accept_sees_the_first_winner(db_session):
    ngo_user, ngo = approved_ngo(db_session)
    first = create_user(db_session, "first@example.com", AppRole.DONOR)
    second = create_user(db_session, "second@example.com", AppRole.DONOR)
    db_request = _create(db_session, ngo_user, ngo)
    crud_food_request.approve_food_request(db_session, db_request.id)

    outcomes = [
        crud_food_request.accept_by_donor(db_session, db_request.id, first.id),
        crud_food_request.accept_by_donor(db_session, db_request.id, second.id),
    ]

    assert outcomes == [TransitionOutcome.APPLIED, TransitionOutcome.NOT_AVAILABLE]
    refreshed = crud_food_request.get_food_request(db_session, db_request.id)
    assert refreshed.donor_id == first.id
    assert refreshed.status == FoodRequestStatus.MATCHED


def test_accept_unknown_request_reports_not_found(db_session):
    donor = create_user(db_session, "donor@example.com", AppRole.DONOR)

    assert crud_food_request.accept_by_donor(db_session, 999, donor.id) == TransitionOutcome.NOT_FOUND


def test_pending_request_cannot_be_accepted_by_donor(db_session):
    ngo_user, ngo = approved_ngo(db_session)
    donor = create_user(db_session, "donor@example.com", AppRole.DONOR)
    db_request = _create(db_session, ngo_user, ngo)

    outcome = crud_food_request.accept_by_donor(db_session, db_request.id, donor.id)

    assert outcome == TransitionOutcome.NOT_AVAILABLE
    assert crud_food_request.get_food_request(db_session, db_request.id).donor_id is None


def test_delete_only_while_pending(db_session):
    ngo_user, ngo = approved_ngo(db_session)
    pending_id = _create(db_session, ngo_user, ngo, title="Pending one").id
    approved = _create(db_session, ngo_user, ngo, title="Approved one")
    crud_food_request.approve_food_request(db_session, approved.id)

    assert crud_food_request.delete_food_request(db_session, pending_id, ngo_user.id) == TransitionOutcome.APPLIED
    assert crud_food_request.get_food_request(db_session, pending_id) is None

    assert crud_food_request.delete_food_request(db_session, approved.id, ngo_user.id) == TransitionOutcome.NOT_AVAILABLE
    assert crud_food_request.get_food_request(db_session, approved.id).status == FoodRequestStatus.APPROVED


def test_delete_requires_owner(db_session):
    ngo_user, ngo = approved_ngo(db_session)
    other, _ = approved_ngo(db_session, email="other-ngo@example.com", registration_number="REG-002")
    db_request = _create(db_session, ngo_user, ngo)

    assert crud_food_request.delete_food_request(db_session, db_request.id, other.id) == TransitionOutcome.NOT_AVAILABLE
    assert crud_food_request.get_food_request(db_session, db_request.id) is not None


def test_reject_records_reason_and_cancels(db_session):
    ngo_user, ngo = approved_ngo(db_session)
    db_request = _create(db_session, ngo_user, ngo)

    outcome = crud_food_request.reject_food_request(db_session, db_request.id, "  Duplicate request ")

    assert outcome == TransitionOutcome.APPLIED
    refreshed = crud_food_request.get_food_request(db_session, db_request.id)
    assert refreshed.status == FoodRequestStatus.CANCELLED
    assert refreshed.rejection_reason == "Duplicate request"
    assert crud_food_request.approve_food_request(db_session, db_request.id) == TransitionOutcome.NOT_AVAILABLE


def test_only_assigned_volunteer_completes(db_session):
    ngo_user, ngo = approved_ngo(db_session)
    donor = create_user(db_session, "donor@example.com", AppRole.DONOR)
    volunteer, _ = approved_volunteer(db_session)
    other, _ = approved_volunteer(db_session, email="other-volunteer@example.com")
    db_request = _create(db_session, ngo_user, ngo)
    crud_food_request.approve_food_request(db_session, db_request.id)
    crud_food_request.accept_by_donor(db_session, db_request.id, donor.id)
    crud_food_request.accept_by_volunteer(db_session, db_request.id, volunteer.id)

    assert crud_food_request.complete_food_request(db_session, db_request.id, other.id) == TransitionOutcome.NOT_AVAILABLE
    assert crud_food_request.complete_food_request(db_session, db_request.id, volunteer.id) == TransitionOutcome.APPLIED

    refreshed = crud_food_request.get_food_request(db_session, db_request.id)
    assert refreshed.status == FoodRequestStatus.COMPLETED
    assert refreshed.completed_at is not None


def test_admin_can_complete_any_delivery(db_session):
    ngo_user, ngo = approved_ngo(db_session)
    admin = create_user(db_session, "admin@example.com", AppRole.ADMIN)
    donor = create_user(db_session, "donor@example.com", AppRole.DONOR)
    volunteer, _ = approved_volunteer(db_session)
    db_request = _create(db_session, ngo_user, ngo)
    crud_food_request.approve_food_request(db_session, db_request.id)
    crud_food_request.accept_by_donor(db_session, db_request.id, donor.id)
    crud_food_request.accept_by_volunteer(db_session, db_request.id, volunteer.id)

    outcome = crud_food_request.complete_food_request(db_session, db_request.id, admin.id, role=AppRole.ADMIN)

    assert outcome == TransitionOutcome.APPLIED


def test_transitions_queue_notification_and_publish_change(db_session):
    ngo_user, ngo = approved_ngo(db_session)
    db_request = _create(db_session, ngo_user, ngo)
    received = []
    change_feed.subscribe(crud_food_request.TABLE, received.append)
    background_tasks = MockBackgroundTasks()

    crud_food_request.approve_food_request(db_session, db_request.id, background_tasks=background_tasks)
    crud_food_request.approve_food_request(db_session, db_request.id, background_tasks=background_tasks)

    assert len(background_tasks.tasks) == 1
    func, args, _ = background_tasks.tasks[0]
    assert func.__name__ == "notify_food_request_status"
    assert args == (db_request.id,)
    assert [(event.event, event.record_id) for event in received] == [("UPDATE", db_request.id)]


def test_listings_per_role(db_session):
    ngo_user, ngo = approved_ngo(db_session)
    donor = create_user(db_session, "donor@example.com", AppRole.DONOR)
    pending = _create(db_session, ngo_user, ngo, title="Pending")
    approved = _create(db_session, ngo_user, ngo, title="Approved")
    matched = _create(db_session, ngo_user, ngo, title="Matched")
    for request_id in (approved.id, matched.id):
        crud_food_request.approve_food_request(db_session, request_id)
    crud_food_request.accept_by_donor(db_session, matched.id, donor.id)

    assert [r.id for r in crud_food_request.get_pending_food_requests(db_session)] == [pending.id]
    assert [r.id for r in crud_food_request.get_available_for_donors(db_session)] == [approved.id]
    assert [r.id for r in crud_food_request.get_available_for_volunteers(db_session)] == [matched.id]
    assert [r.id for r in crud_food_request.get_donations(db_session, donor.id)] == [matched.id]
    assert crud_food_request.count_by_status(db_session, FoodRequestStatus.APPROVED, unassigned=True) == 1
    assert crud_food_request.count_by_status(db_session, FoodRequestStatus.MATCHED, donor_id=donor.id) == 1


def test_transition_outside_the_role_table_is_forbidden(db_session):
    ngo_user, ngo = approved_ngo(db_session)
    donor = create_user(db_session, "donor@example.com", AppRole.DONOR)
    db_request = _create(db_session, ngo_user, ngo)

    assert crud_food_request.approve_food_request(db_session, db_request.id, role=AppRole.DONOR) == (
        TransitionOutcome.FORBIDDEN
    )
    assert crud_food_request.complete_food_request(db_session, db_request.id, donor.id, role=AppRole.DONOR) == (
        TransitionOutcome.FORBIDDEN
    )
    assert crud_food_request.get_food_request(db_session, db_request.id).status == FoodRequestStatus.PENDING


def test_concurrent_donor_accepts_have_one_winner(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}", connect_args={"check_same_thread": False, "timeout": 30}
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with Session() as setup:
        ngo_user, ngo = approved_ngo(setup)
        donor_ids = [create_user(setup, f"donor{i}@example.com", AppRole.DONOR).id for i in range(2)]
        request_id = _create(setup, ngo_user, ngo).id
        crud_food_request.approve_food_request(setup, request_id)

    barrier = threading.Barrier(len(donor_ids))
    outcomes = {}

    def accept(donor_id):
        with Session() as db:
            barrier.wait()
            outcomes[donor_id] = crud_food_request.accept_by_donor(db, request_id, donor_id)

    threads = [threading.Thread(target=accept, args=(donor_id,)) for donor_id in donor_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes.values()) == sorted([TransitionOutcome.APPLIED, TransitionOutcome.NOT_AVAILABLE])
    winner = next(donor_id for donor_id, outcome in outcomes.items() if outcome == TransitionOutcome.APPLIED)
    with Session() as db:
        stored = crud_food_request.get_food_request(db, request_id)
        assert (stored.status, stored.donor_id) == (FoodRequestStatus.MATCHED, winner)
    engine.dispose()
