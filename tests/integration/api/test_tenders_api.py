"""HTTP tests for tender management."""

from datetime import datetime, timedelta

import pytest

from procurement.db.models import Event, Tender

from tests.factories import (
    auth_headers,
    create_approval,
    create_invoice,
    create_proposal,
    create_rfp_doc,
    create_tender,
)

pytestmark = pytest.mark.integration

URL = "/api/tenders"


def tender_body(**overrides):
    body = {
        "code": "LIC-2025-100",
        "title": "Data center cooling",
        "budget": 500000,
        "delivery_max_months": 9,
        "deadline": (datetime.utcnow() + timedelta(days=20)).isoformat(),
    }
    body.update(overrides)
    return body


def test_admin_creates_draft(client, admin, db_session):
    response = client.post(URL, json=tender_body(), headers=auth_headers(admin))

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "borrador"
    assert data["created_by"] == str(admin.id)
    event = db_session.query(Event).filter(Event.entity_type == "tender").one()
    assert event.action == "created"


def test_past_deadline_rejected(client, admin):
    body = tender_body(deadline=(datetime.utcnow() - timedelta(days=1)).isoformat())

    response = client.post(URL, json=body, headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "deadline"


def test_duplicate_code_conflicts(client, admin, db_session):
    create_tender(db_session, code="LIC-2025-100")
    db_session.commit()

    response = client.post(URL, json=tender_body(), headers=auth_headers(admin))
    assert response.status_code == 409


def test_non_admin_cannot_create(client, approver):
    response = client.post(URL, json=tender_body(), headers=auth_headers(approver))
    assert response.status_code == 403


def test_list_filters_and_search(client, approver, db_session):
    create_tender(db_session, code="LIC-A", title="Laptops", status="abierta")
    create_tender(db_session, code="LIC-B", title="Printers", status="borrador")
    create_tender(db_session, code="LIC-C", title="Laptop docks", status="abierta")
    db_session.commit()
    headers = auth_headers(approver)

    open_only = client.get(URL, params={"status": "abierta"}, headers=headers).json()
    laptops = client.get(URL, params={"q": "laptop", "order_by": "code", "order_dir": "asc"}, headers=headers).json()

    assert open_only["total"] == 2
    assert [t["code"] for t in laptops["items"]] == ["LIC-A", "LIC-C"]


def test_status_change_is_audited(client, admin, db_session):
    tender = create_tender(db_session)
    db_session.commit()

    response = client.patch(f"{URL}/{tender.id}", json={"status": "cerrada"}, headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["status"] == "cerrada"
    changed = db_session.query(Event).filter(Event.action == "status_changed").one()
    assert changed.payload == {"old_status": "borrador", "new_status": "cerrada"}


def test_update_unknown_tender(client, admin):
    response = client.patch(
        f"{URL}/00000000-0000-0000-0000-000000000000",
        json={"title": "x"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 404


def test_delete(client, admin, db_session):
    tender = create_tender(db_session, code="LIC-DEL")
    tender_id = tender.id
    db_session.commit()

    response = client.delete(f"{URL}/{tender_id}", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["message"] == "Tender LIC-DEL deleted"
    assert db_session.get(Tender, tender_id) is None


def test_delete_with_rfp_docs_removes_them(client, admin, db_session):
    tender = create_tender(db_session, code="LIC-RFP")
    create_rfp_doc(db_session, tender=tender)
    tender_id = tender.id
    db_session.commit()

    response = client.delete(f"{URL}/{tender_id}", headers=auth_headers(admin))

    assert response.status_code == 200
    assert db_session.get(Tender, tender_id) is None


def test_delete_refused_while_tender_has_approvals(client, admin, db_session):
    tender = create_tender(db_session, code="LIC-APR")
    create_approval(db_session, tender=tender, scope="apertura_tender")
    tender_id = tender.id
    db_session.commit()

    response = client.delete(f"{URL}/{tender_id}", headers=auth_headers(admin))

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"
    assert db_session.get(Tender, tender_id) is not None


def test_delete_refused_while_a_proposal_has_approvals(client, admin, supplier, db_session):
    tender = create_tender(db_session, code="LIC-PRA", status="en_evaluacion")
    proposal = create_proposal(db_session, tender=tender, supplier=supplier)
    create_approval(db_session, proposal=proposal, scope="comite_rfp")
    tender_id = tender.id
    db_session.commit()

    response = client.delete(f"{URL}/{tender_id}", headers=auth_headers(admin))

    assert response.status_code == 409
    assert db_session.get(Tender, tender_id) is not None
    assert db_session.query(Event).filter(Event.action == "deleted").count() == 0


def test_delete_refused_while_invoices_exist(client, admin, supplier, db_session):
    tender = create_tender(db_session, code="LIC-INV", status="adjudicada")
    proposal = create_proposal(db_session, tender=tender, supplier=supplier, status="adjudicada")
    create_invoice(db_session, proposal=proposal)
    tender_id = tender.id
    db_session.commit()

    response = client.delete(f"{URL}/{tender_id}", headers=auth_headers(admin))

    assert response.status_code == 409
    assert "invoices" in response.json()["detail"]
