"""HTTP tests for supplier invoices."""

import pytest
from sqlalchemy.exc import OperationalError

from procurement.db.models import Event, Invoice, Notification
from procurement.services.notifications import NotificationService

from tests.factories import (
    auth_headers,
    create_invoice,
    create_proposal,
    create_service_order,
    create_supplier,
    create_tender,
)

pytestmark = pytest.mark.integration

URL = "/api/invoices"


@pytest.fixture
def awarded(db_session, supplier):
    tender = create_tender(db_session, code="LIC-2025-400", title="Backup appliances", status="adjudicada")
    proposal = create_proposal(db_session, tender=tender, supplier=supplier, amount=100000, status="adjudicada")
    db_session.commit()
    return proposal


@pytest.fixture
def rival_award(db_session):
    rival = create_supplier(db_session, name="Rival")
    tender = create_tender(db_session, status="adjudicada")
    proposal = create_proposal(db_session, tender=tender, supplier=rival, status="adjudicada")
    db_session.commit()
    return proposal


def invoice_body(proposal, **overrides):
    body = {"proposal_id": str(proposal.id), "invoice_url": "invoices/f-001.pdf", "amount": 40000}
    body.update(overrides)
    return body


class TestCreateInvoice:
    def test_supplier_invoices_own_award(self, client, supplier_user, admin, awarded, db_session):
        response = client.post(URL, json=invoice_body(awarded), headers=auth_headers(supplier_user))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "recibida"
        assert data["amount"] == 40000
        event = db_session.query(Event).filter(Event.entity_type == "invoice").one()
        assert event.action == "created"
        note = db_session.query(Notification).filter(Notification.user_id == admin.id).one()
        assert note.type == "invoice"
        assert note.action_url == "/invoices"

    def test_other_suppliers_award_forbidden(self, client, supplier_user, rival_award):
        response = client.post(URL, json=invoice_body(rival_award), headers=auth_headers(supplier_user))
        assert response.status_code == 403

    def test_plain_user_forbidden(self, client, approver, awarded):
        response = client.post(URL, json=invoice_body(awarded), headers=auth_headers(approver))
        assert response.status_code == 403

    def test_proposal_must_be_awarded(self, client, supplier_user, supplier, db_session):
        tender = create_tender(db_session, status="abierta")
        proposal = create_proposal(db_session, tender=tender, supplier=supplier)
        db_session.commit()

        response = client.post(URL, json=invoice_body(proposal), headers=auth_headers(supplier_user))
        assert response.status_code == 422

    def test_amount_capped_by_award(self, client, supplier_user, awarded):
        response = client.post(
            URL, json=invoice_body(awarded, amount=100000.01), headers=auth_headers(supplier_user)
        )

        assert response.status_code == 422
        assert "exceeds" in response.json()["detail"]

    def test_non_positive_amount(self, client, supplier_user, awarded):
        response = client.post(URL, json=invoice_body(awarded, amount=0), headers=auth_headers(supplier_user))

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "amount"

    def test_service_order_must_be_approved(self, client, supplier_user, awarded, db_session):
        order = create_service_order(db_session, proposal=awarded, status="en_firma")
        db_session.commit()

        response = client.post(
            URL,
            json=invoice_body(awarded, service_order_id=str(order.id)),
            headers=auth_headers(supplier_user),
        )
        assert response.status_code == 422

    def test_service_order_of_another_proposal(self, client, supplier_user, awarded, rival_award, db_session):
        order = create_service_order(db_session, proposal=rival_award, status="aprobada")
        db_session.commit()

        response = client.post(
            URL,
            json=invoice_body(awarded, service_order_id=str(order.id)),
            headers=auth_headers(supplier_user),
        )

        assert response.status_code == 422
        assert "another proposal" in response.json()["detail"]

    def test_with_approved_service_order(self, client, supplier_user, awarded, db_session):
        order = create_service_order(db_session, proposal=awarded, status="aprobada")
        db_session.commit()

        response = client.post(
            URL,
            json=invoice_body(awarded, service_order_id=str(order.id)),
            headers=auth_headers(supplier_user),
        )

        assert response.status_code == 201
        assert response.json()["service_order_id"] == str(order.id)

    def test_survives_notification_failure(self, client, supplier_user, admin, awarded, db_session, monkeypatch):
        def fail(self, user_ids, **params):
            raise OperationalError("INSERT INTO notifications", {}, Exception("disk full"))

        monkeypatch.setattr(NotificationService, "create_bulk_notifications", fail)

        response = client.post(URL, json=invoice_body(awarded), headers=auth_headers(supplier_user))

        assert response.status_code == 201
        assert db_session.query(Invoice).count() == 1


class TestListInvoices:
    def test_supplier_sees_own_only(self, client, supplier_user, admin, awarded, rival_award, db_session):
        create_invoice(db_session, proposal=awarded)
        create_invoice(db_session, proposal=rival_award)
        db_session.commit()

        mine = client.get(URL, headers=auth_headers(supplier_user)).json()
        everything = client.get(URL, headers=auth_headers(admin)).json()

        assert mine["total"] == 1
        assert mine["items"][0]["proposal_id"] == str(awarded.id)
        assert everything["total"] == 2
        assert everything["limit"] == 10

    def test_admin_filters_by_supplier(self, client, admin, supplier, awarded, rival_award, db_session):
        create_invoice(db_session, proposal=awarded)
        create_invoice(db_session, proposal=rival_award)
        db_session.commit()

        response = client.get(URL, params={"supplier_id": str(supplier.id)}, headers=auth_headers(admin))

        assert response.json()["total"] == 1

    def test_plain_user_forbidden(self, client, approver):
        assert client.get(URL, headers=auth_headers(approver)).status_code == 403


class TestUpdateInvoice:
    def test_supplier_corrects_amount(self, client, supplier_user, awarded, db_session):
        invoice = create_invoice(db_session, proposal=awarded)
        db_session.commit()

        response = client.patch(f"{URL}/{invoice.id}", json={"amount": 45000}, headers=auth_headers(supplier_user))

        assert response.status_code == 200
        assert response.json()["amount"] == 45000

    def test_supplier_cannot_change_status(self, client, supplier_user, awarded, db_session):
        invoice = create_invoice(db_session, proposal=awarded)
        db_session.commit()

        response = client.patch(
            f"{URL}/{invoice.id}", json={"status": "pagada"}, headers=auth_headers(supplier_user)
        )
        assert response.status_code == 403

    def test_amount_capped_by_award(self, client, admin, awarded, db_session):
        invoice = create_invoice(db_session, proposal=awarded)
        db_session.commit()

        response = client.patch(f"{URL}/{invoice.id}", json={"amount": 250000}, headers=auth_headers(admin))
        assert response.status_code == 422

    def test_admin_moves_through_payment(self, client, admin, supplier_user, awarded, db_session):
        invoice = create_invoice(db_session, proposal=awarded)
        db_session.commit()
        headers = auth_headers(admin)

        for step in ("validada", "en_pago", "pagada"):
            response = client.patch(f"{URL}/{invoice.id}", json={"status": step}, headers=headers)
            assert response.status_code == 200

        assert response.json()["status"] == "pagada"
        note = db_session.query(Notification).filter(Notification.user_id == supplier_user.id).one()
        assert note.title == "Invoice paid"
        assert note.type == "success"
        previous = [e.payload["previous_status"] for e in db_session.query(Event).filter(Event.action == "updated")]
        assert sorted(previous) == ["en_pago", "recibida", "validada"]

    def test_rejection_tells_supplier_why(self, client, admin, supplier_user, awarded, db_session):
        invoice = create_invoice(db_session, proposal=awarded)
        db_session.commit()

        response = client.patch(
            f"{URL}/{invoice.id}",
            json={"status": "rechazada", "reason": "Missing tax receipt"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        note = db_session.query(Notification).filter(Notification.user_id == supplier_user.id).one()
        assert note.type == "error"
        assert "Missing tax receipt" in note.message

    def test_cannot_skip_to_paid(self, client, admin, awarded, db_session):
        invoice = create_invoice(db_session, proposal=awarded)
        db_session.commit()

        response = client.patch(f"{URL}/{invoice.id}", json={"status": "pagada"}, headers=auth_headers(admin))

        assert response.status_code == 422
        assert response.json()["error"] == "unprocessable"

    def test_unknown_invoice(self, client, admin):
        response = client.patch(
            f"{URL}/00000000-0000-0000-0000-000000000000", json={"amount": 1}, headers=auth_headers(admin)
        )
        assert response.status_code == 404


class TestDeleteInvoice:
    def test_owner_withdraws_received_invoice(self, client, supplier_user, awarded, db_session):
        invoice = create_invoice(db_session, proposal=awarded)
        invoice_id = invoice.id
        db_session.commit()

        response = client.delete(f"{URL}/{invoice_id}", headers=auth_headers(supplier_user))

        assert response.status_code == 200
        assert db_session.get(Invoice, invoice_id) is None
        event = db_session.query(Event).filter(Event.action == "deleted").one()
        assert event.entity_id == invoice_id
        assert event.payload["deleted_by_role"] == "supplier"

    def test_processed_invoice_cannot_be_deleted(self, client, admin, awarded, db_session):
        invoice = create_invoice(db_session, proposal=awarded, status="validada")
        db_session.commit()

        response = client.delete(f"{URL}/{invoice.id}", headers=auth_headers(admin))
        assert response.status_code == 422

    def test_other_supplier_forbidden(self, client, supplier_user, rival_award, db_session):
        invoice = create_invoice(db_session, proposal=rival_award)
        db_session.commit()

        response = client.delete(f"{URL}/{invoice.id}", headers=auth_headers(supplier_user))
        assert response.status_code == 403
