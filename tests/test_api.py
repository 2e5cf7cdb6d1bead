from datetime import date
from inspect import iscoroutinefunction

from fastapi.routing import APIRoute

from studiobook.main import app


def new_job(client, **overrides):
    payload = {
        "category": "EDITING",
        "customer_name": "Asha",
        "customer_phone": "98765 43210",
        "event_type": "Wedding",
        "start_date": date.today().isoformat(),
        "total_price": 10000,
        "amount_paid": 4000,
    }
    payload.update(overrides)
    r = client.post("/jobs", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def test_root_and_health(client):
    assert client.get("/").json() == {"name": "studiobook-api"}
    assert client.get("/health").json() == {"ok": True}
    body = client.get("/health/db").json()
    assert body == {"local": 1, "remote_configured": True, "errors": []}


def test_health_db_local_only(local_client):
    assert local_client.get("/health/db").json()["remote_configured"] is False


def test_job_crud(client, supabase):
    job = new_job(client)
    assert job["sync_status"] == "synced"
    assert job["start_date"] == date.today().isoformat()
    assert len(supabase.tables["jobs"]) == 1

    assert client.get(f"/jobs/{job['id']}").json()["customer_name"] == "Asha"

    r = client.put(f"/jobs/{job['id']}", json={"amount_paid": 10000, "payment_status": "COMPLETED"})
    assert r.status_code == 200
    assert r.json()["amount_paid"] == 10000
    assert supabase.tables["jobs"][0]["payment_status"] == "COMPLETED"

    r = client.patch(f"/jobs/{job['id']}/priority", json={"priority": "high"})
    assert r.json()["priority"] == "high"

    assert client.delete(f"/jobs/{job['id']}").status_code == 204
    assert client.get(f"/jobs/{job['id']}").status_code == 404
    assert client.delete(f"/jobs/{job['id']}").status_code == 404


def test_delete_remote_only_job_while_supabase_is_down(client, supabase):
    job = new_job(client)
    supabase.tables["jobs"].append({**supabase.tables["jobs"][0], "id": "from-phone"})
    supabase.fail = True
    r = client.delete("/jobs/from-phone")
    assert r.status_code == 503
    assert client.delete(f"/jobs/{job['id']}").status_code == 204


def test_route_handlers_run_in_threadpool():
    handlers = [r.endpoint for r in app.routes if isinstance(r, APIRoute)]
    assert handlers
    assert not [h.__name__ for h in handlers if iscoroutinefunction(h)]


def test_create_validation(client):
    r = client.post("/jobs", json={"category": "EDITING", "customer_name": "", "start_date": "2024-01-01"})
    assert r.status_code == 422
    r = client.post("/jobs", json={"category": "WEDDING", "customer_name": "A", "start_date": "2024-01-01"})
    assert r.status_code == 422


def test_price_from_hours(client):
    job = new_job(client, category="EXPOSING", total_price=0, amount_paid=0, duration_hours=2.5, rate_per_hour=1500)
    assert job["total_price"] == 3750


def test_list_filters_by_category_and_owner(client):
    new_job(client, customer_name="A")
    new_job(client, customer_name="B", category="OTHER")
    assert [j["customer_name"] for j in client.get("/jobs", params={"category": "OTHER"}).json()] == ["B"]
    assert len(client.get("/jobs").json()) == 2
    # remote rows are per owner; the local list is per device
    assert len(client.get("/jobs", headers={"x-user-id": "someone-else"}).json()) == 2


def test_local_only_mode_still_saves(local_client):
    job = new_job(local_client)
    assert job["sync_status"] == "local_only"
    assert [j["id"] for j in local_client.get("/jobs").json()] == [job["id"]]


def test_update_missing_job(client):
    assert client.put("/jobs/nope", json={"notes": "x"}).status_code == 404
    assert client.patch("/jobs/nope/priority", json={"priority": "low"}).status_code == 404


def test_job_reminder(client):
    job = new_job(client)
    body = client.get(f"/jobs/{job['id']}/reminder").json()
    assert "Balance Due: Rs.6,000" in body["message"]
    assert body["url"].startswith("https://wa.me/919876543210?text=Hi%20Asha")


def test_job_reminder_without_phone(client):
    job = new_job(client, customer_phone=None)
    assert client.get(f"/jobs/{job['id']}/reminder").json()["url"] is None


def test_status_messages(client):
    job = new_job(client, status="IN_PROGRESS", payment_status="PARTIAL")
    body = client.get(f"/jobs/{job['id']}/status-message").json()
    assert "*IN PROGRESS*" in body["message"]
    body = client.get(f"/jobs/{job['id']}/status-message", params={"kind": "payment_status"}).json()
    assert "Remaining Balance: Rs.6,000" in body["message"]
    r = client.get(f"/jobs/{job['id']}/status-message", params={"kind": "single"})
    assert r.status_code == 400


def test_consolidated_reminder(client):
    new_job(client, event_type="Wedding", total_price=100, amount_paid=0)
    new_job(client, event_type="Reception", total_price=500, amount_paid=250, payment_status="PARTIAL")
    new_job(client, event_type="Album", total_price=300, amount_paid=300, payment_status="COMPLETED")

    body = client.get("/reminders/consolidated", params={"phone": "9876543210"}).json()
    assert "TOTAL BALANCE DUE: Rs.350" in body["message"]
    assert "Pending Services (2)" in body["message"]
    assert body["url"].startswith("https://wa.me/919876543210?text=")

    r = client.get("/reminders/consolidated", params={"phone": "11111 22222"})
    assert r.status_code == 404


def test_template_override_flow(client):
    r = client.get("/templates", params={"kind": "single", "category": "EDITING"})
    assert r.json()["source"] == "default"

    r = client.put("/templates", json={"kind": "single", "category": "EDITING", "content": "Hey {customer_name}"})
    assert r.status_code == 200
    r = client.get("/templates", params={"kind": "single", "category": "EDITING"})
    assert r.json() == {"kind": "single", "category": "EDITING", "source": "EDITING", "content": "Hey {customer_name}"}
    assert client.get("/templates/single").json()["templates"] == {"EDITING": "Hey {customer_name}"}

    job = new_job(client)
    assert client.get(f"/jobs/{job['id']}/reminder").json()["message"] == "Hey Asha"

    assert client.delete("/templates/single", params={"category": "EDITING"}).status_code == 204
    assert client.delete("/templates/single", params={"category": "EDITING"}).status_code == 404
    assert client.get("/templates", params={"kind": "single", "category": "EDITING"}).json()["source"] == "default"


def test_template_shape_is_validated(client):
    r = client.put("/templates", json={"kind": "job_status", "content": "plain text"})
    assert r.status_code == 422
    r = client.put("/templates", json={"kind": "single", "content": {"PENDING": "x"}})
    assert r.status_code == 422


def test_dashboard_and_monthly_report(client):
    new_job(client, total_price=10000, amount_paid=4000)
    new_job(client, category="OTHER", total_price=500, amount_paid=500, status="COMPLETED")
    new_job(client, start_date="2001-05-05", total_price=999)

    summary = client.get("/dashboard/summary").json()
    assert summary["period"] == "this_month"
    assert summary["total_jobs"] == 2
    assert summary["total_income"] == 10500
    assert summary["total_pending"] == 6000
    assert summary["status_counts"] == {"pending": 1, "in_progress": 0, "completed": 1}
    assert summary["by_category"]["OTHER"]["paid"] == 500

    editing = client.get("/dashboard/summary", params={"period": "all_time", "category": "EDITING"}).json()
    assert editing["total_jobs"] == 2

    report = client.get("/reports/monthly", params={"period": "all_time"}).json()
    assert [m["month"] for m in report["months"]][-1] == "May 2001"
    assert report["total"]["jobs"] == 3


def test_dashboard_bad_period(client):
    assert client.get("/dashboard/summary", params={"period": "fortnight"}).status_code == 400
    r = client.get("/reports/monthly", params={"period": "custom", "start": "2024-02-01", "end": "2024-01-01"})
    assert r.status_code == 400
    r = client.get("/reports/monthly", params={"period": "custom", "start": "2024-01-01", "end": "2024-01-31"})
    assert r.status_code == 200
    assert r.json()["label"] == "2024-01-01 to 2024-01-31"


def test_customers(client):
    new_job(client)
    new_job(client, customer_name="Ravi", customer_phone="90000 00000", amount_paid=10000, payment_status="COMPLETED")
    customers = {c["name"]: c for c in client.get("/customers").json()}
    assert customers["Asha"]["pending_jobs"] == 1
    assert customers["Ravi"]["pending_jobs"] == 0


def test_migrate_requires_remote(local_client):
    new_job(local_client)
    assert local_client.post("/migrate/jobs").status_code == 503
    assert local_client.post("/migrate/templates").status_code == 503


def test_migrate_jobs_and_templates(client, supabase):
    job = new_job(client)
    supabase.tables["jobs"] = []
    r = client.post("/migrate/jobs")
    assert r.json() == {"ok": True, "inserted": 1}
    assert supabase.tables["jobs"][0]["id"] == job["id"]

    client.put("/templates", json={"kind": "consolidated", "content": "All: {total_balance}"})
    supabase.tables["whatsapp_templates"] = []
    assert client.post("/migrate/templates").json() == {"ok": True, "inserted": 1}


def test_migrate_explicit_jobs(client, supabase):
    job = new_job(client)
    job["notes"] = "imported"
    r = client.post("/migrate/jobs", json={"jobs": [job]})
    assert r.json()["inserted"] == 1
    assert supabase.tables["jobs"][0]["notes"] == "imported"
