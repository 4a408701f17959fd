"""Tests for the in-app notification service."""

import logging

import pytest
from sqlalchemy.exc import OperationalError

from procurement.db.models import Notification, Supplier
from procurement.services import NotificationService, NotificationTemplates

from tests.factories import create_profile, create_supplier, create_tender

pytestmark = pytest.mark.db


@pytest.fixture
def service(db_session):
    return NotificationService(db_session)


def notifications_for(db_session, profile):
    return db_session.query(Notification).filter(Notification.user_id == profile.id).all()


def test_create_notification(service, db_session, approver):
    tender = create_tender(db_session)

    notification = service.create_notification(
        approver.id,
        **NotificationTemplates.tender_opened(tender.title, tender.id),
    )

    assert notification.type == "tender"
    assert notification.entity_type == "tender"
    assert notification.entity_id == tender.id
    assert notification.action_url == f"/tenders/{tender.id}"
    assert notification.read is False


def test_notify_admins_skips_inactive(service, db_session, admin):
    inactive = create_profile(db_session, role="admin", is_active=False)

    sent = service.notify_admins(title="Hello", message="Admins only")

    assert len(sent) == 1
    assert len(notifications_for(db_session, admin)) == 1
    assert notifications_for(db_session, inactive) == []


def test_notify_admins_without_admins(service, caplog):
    assert service.notify_admins(title="Hello", message="Nobody home") == []
    assert "No admins found" in caplog.text


def test_notify_active_suppliers(service, db_session, supplier_user):
    inactive_supplier = create_supplier(db_session, status="inactivo")
    inactive_user = create_profile(db_session, role="supplier", supplier=inactive_supplier)
    plain_user = create_profile(db_session, role="user")

    sent = service.notify_active_suppliers(title="New tender", message="Go")

    assert [n.user_id for n in sent] == [supplier_user.id]
    assert notifications_for(db_session, inactive_user) == []
    assert notifications_for(db_session, plain_user) == []


def test_notify_supplier(service, db_session, supplier, supplier_user):
    colleague = create_profile(db_session, role="supplier", supplier=supplier)

    sent = service.notify_supplier(supplier.id, title="Status", message="Changed")

    assert {n.user_id for n in sent} == {supplier_user.id, colleague.id}


def test_notify_email_matches_case_insensitively(service, approver):
    notification = service.notify_email("A@X.COM", title="Approve", message="Please")
    assert notification.user_id == approver.id


def test_notify_email_unknown(service):
    assert service.notify_email("nobody@nowhere.com", title="Approve", message="Please") is None


def test_approval_decided_template():
    approved = NotificationTemplates.approval_decided("LIC-1 - Servers", "approved", None)
    rejected = NotificationTemplates.approval_decided("LIC-1 - Servers", "rejected", None)

    assert approved["title"] == "Approval granted"
    assert rejected["title"] == "Approval rejected"
    assert "rejected" in rejected["message"]


def test_invoice_templates():
    received = NotificationTemplates.invoice_received(1500, None)
    paid = NotificationTemplates.invoice_paid(1500, None)
    rejected = NotificationTemplates.invoice_rejected("Wrong RNC", None)

    assert received["type"] == "invoice"
    assert paid["type"] == "success"
    assert rejected["type"] == "error"
    assert "Wrong RNC" in rejected["message"]
    assert {t["action_url"] for t in (received, paid, rejected)} == {"/invoices"}


def test_send_safely_delivers(service, db_session, admin):
    service.send_safely(service.notify_admins, title="Heads up", message="Something happened")

    assert [n.title for n in notifications_for(db_session, admin)] == ["Heads up"]


def test_send_safely_keeps_callers_work(service, db_session, caplog):
    supplier = create_supplier(db_session, name="Kept")

    def fail(**params):
        raise OperationalError("INSERT INTO notifications", {}, Exception("disk full"))

    with caplog.at_level(logging.WARNING, logger="procurement.services.notifications"):
        service.send_safely(fail, title="Lost", message="Never stored")

    assert "Failed to create notification" in caplog.text
    assert db_session.query(Supplier).filter(Supplier.id == supplier.id).one().name == "Kept"
    assert db_session.query(Notification).count() == 0
