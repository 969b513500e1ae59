import os

import pytest

from lapor.core.config import settings
from lapor.core.errors import ClaimConflict
from lapor.models.profile import ProfileRole
from lapor.models.report import Report, ReportStatus
from lapor.models.report_update import ReportUpdate
from lapor.services import reports as report_service
from lapor.services.storage import bucket_dir
from lapor.services.workflow import CLAIM_NOTE, Actor


def _form(category_id, **overrides):
    data = {
        "title": "Jalan berlubang besar",
        "description": "Lubang besar membahayakan pengendara motor",
        "category_id": category_id,
        "location_text": "Jl. Sudirman depan pasar",
    }
    data.update(overrides)
    return data


def test_create_report_without_image(client, make_profile, make_category, auth_header, db_session, monkeypatch):
    user = make_profile("Siti")
    cat = make_category()

    def _no_upload(*args, **kwargs):
        raise AssertionError("storage must not be called")

    monkeypatch.setattr(report_service, "save_image", _no_upload)

    resp = client.post("/reports", data=_form(cat.id), headers=auth_header(user))
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "Open"
    assert body["assigned_to"] is None
    assert body["image_url"] is None
    assert body["owner_name"] == "Siti"
    assert body["category_name"] == cat.name

    row = db_session.query(Report).filter(Report.id == body["id"]).one()
    assert row.image_url is None
    assert row.status == ReportStatus.OPEN


def test_create_report_with_image_and_coordinates(client, make_profile, make_category, auth_header):
    user = make_profile()
    cat = make_category()

    resp = client.post(
        "/reports",
        data=_form(cat.id, latitude="-6.200000", longitude="106.816666"),
        files={"image": ("lubang.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")},
        headers=auth_header(user),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["latitude"] == pytest.approx(-6.2)
    url = body["image_url"]
    prefix = f"{settings.PUBLIC_BASE_URL}/storage/{settings.STORAGE_BUCKET}/{user.id}-"
    assert url.startswith(prefix)
    assert url.endswith(".jpg")

    key = url.rsplit("/", 1)[-1]
    assert os.path.exists(os.path.join(bucket_dir(), key))

    served = client.get(f"/storage/{settings.STORAGE_BUCKET}/{key}")
    assert served.status_code == 200
    assert served.content == b"\xff\xd8\xff\xe0fake-jpeg"


def test_create_report_validation_blocks_write(client, make_profile, make_category, auth_header, db_session):
    user = make_profile()
    cat = make_category()

    resp = client.post("/reports", data=_form(cat.id, title="abcd"), headers=auth_header(user))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Judul minimal 5 karakter"
    assert resp.json()["errors"] == {"title": "Judul minimal 5 karakter"}
    assert db_session.query(Report).count() == 0


def test_create_report_rejects_non_image(client, make_profile, make_category, auth_header, db_session):
    user = make_profile()
    cat = make_category()

    resp = client.post(
        "/reports",
        data=_form(cat.id),
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=auth_header(user),
    )
    assert resp.status_code == 400
    assert "image" in resp.json()["errors"]
    assert db_session.query(Report).count() == 0


def test_create_report_unknown_category(client, make_profile, auth_header):
    user = make_profile()
    resp = client.post("/reports", data=_form("missing"), headers=auth_header(user))
    assert resp.status_code == 400
    assert resp.json()["errors"] == {"category_id": "Kategori tidak ditemukan"}


def test_only_pelapor_creates_reports(client, make_profile, make_category, auth_header):
    petugas = make_profile(role=ProfileRole.PETUGAS)
    cat = make_category()
    resp = client.post("/reports", data=_form(cat.id), headers=auth_header(petugas))
    assert resp.status_code == 403


def test_claim_sets_assignee_and_logs_update(client, make_profile, make_report, auth_header, db_session):
    owner = make_profile()
    petugas = make_profile("Andi", role=ProfileRole.PETUGAS)
    report = make_report(owner)

    resp = client.post(f"/reports/{report.id}/claim", headers=auth_header(petugas))
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "On Progress"
    assert body["assigned_to"] == petugas.id
    assert body["assignee_role"] == "petugas"

    updates = db_session.query(ReportUpdate).filter(ReportUpdate.report_id == report.id).all()
    assert len(updates) == 1
    assert updates[0].status_update == ReportStatus.ON_PROGRESS
    assert updates[0].note == CLAIM_NOTE
    assert updates[0].petugas_id == petugas.id


def test_second_claim_loses(client, make_profile, make_report, auth_header, db_session):
    owner = make_profile()
    first = make_profile(role=ProfileRole.PETUGAS)
    second = make_profile(role=ProfileRole.PETUGAS)
    report = make_report(owner)

    assert client.post(f"/reports/{report.id}/claim", headers=auth_header(first)).status_code == 200
    resp = client.post(f"/reports/{report.id}/claim", headers=auth_header(second))
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Gagal mengambil laporan"

    db_session.expire_all()
    row = db_session.query(Report).filter(Report.id == report.id).one()
    assert row.assigned_to == first.id
    assert db_session.query(ReportUpdate).filter(ReportUpdate.report_id == report.id).count() == 1


def test_claim_is_a_conditional_write(db_session, make_profile, make_report):
    owner = make_profile()
    report = make_report(owner, status=ReportStatus.REJECTED)
    petugas = Actor.from_profile(make_profile(role=ProfileRole.PETUGAS))

    with pytest.raises(ClaimConflict):
        report_service.claim_report(db_session, petugas, report.id)

    db_session.expire_all()
    row = db_session.query(Report).filter(Report.id == report.id).one()
    assert row.status == ReportStatus.REJECTED
    assert row.assigned_to is None


def test_pelapor_cannot_claim(client, make_profile, make_report, auth_header):
    owner = make_profile()
    report = make_report(owner)
    assert client.post(f"/reports/{report.id}/claim", headers=auth_header(owner)).status_code == 403


def test_progress_update_writes_status_and_log(client, make_profile, make_report, auth_header, db_session):
    owner = make_profile()
    holder = make_profile("Andi", role=ProfileRole.PETUGAS)
    colleague = make_profile("Rina", role=ProfileRole.PETUGAS)
    report = make_report(owner, status=ReportStatus.ON_PROGRESS, assigned_to=holder.id)

    resp = client.post(
        f"/reports/{report.id}/updates",
        data={"status": "Resolved", "note": "Lubang sudah ditambal dengan aspal"},
        files={"image": ("hasil.png", b"\x89PNG fake", "image/png")},
        headers=auth_header(colleague),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["status_update"] == "Resolved"
    assert body["author_name"] == "Rina"
    assert body["image_url"].endswith(".png")

    db_session.expire_all()
    row = db_session.query(Report).filter(Report.id == report.id).one()
    assert row.status == ReportStatus.RESOLVED
    # a progress update never moves the assignment
    assert row.assigned_to == holder.id


def test_progress_update_allows_loose_transitions(client, make_profile, make_report, auth_header):
    owner = make_profile()
    petugas = make_profile(role=ProfileRole.PETUGAS)
    report = make_report(owner, status=ReportStatus.REJECTED, assigned_to=petugas.id)

    resp = client.post(
        f"/reports/{report.id}/updates",
        data={"status": "Resolved", "note": "Ditinjau ulang dan diselesaikan"},
        headers=auth_header(petugas),
    )
    assert resp.status_code == 201


def test_progress_update_rejects_open_status(client, make_profile, make_report, auth_header, db_session):
    owner = make_profile()
    petugas = make_profile(role=ProfileRole.PETUGAS)
    report = make_report(owner, status=ReportStatus.ON_PROGRESS, assigned_to=petugas.id)

    resp = client.post(
        f"/reports/{report.id}/updates",
        data={"status": "Open", "note": "Kembalikan ke antrian"},
        headers=auth_header(petugas),
    )
    assert resp.status_code == 400
    assert "status" in resp.json()["errors"]
    assert db_session.query(ReportUpdate).count() == 0


def test_progress_update_short_note(client, make_profile, make_report, auth_header):
    owner = make_profile()
    petugas = make_profile(role=ProfileRole.PETUGAS)
    report = make_report(owner)

    resp = client.post(
        f"/reports/{report.id}/updates",
        data={"status": "On Progress", "note": "oke"},
        headers=auth_header(petugas),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Catatan minimal 10 karakter"


def test_petugas_blocked_when_admin_holds_report(client, make_profile, make_report, auth_header, db_session):
    owner = make_profile()
    admin = make_profile(role=ProfileRole.ADMIN)
    petugas = make_profile(role=ProfileRole.PETUGAS)
    report = make_report(owner, status=ReportStatus.ON_PROGRESS, assigned_to=admin.id)

    resp = client.post(
        f"/reports/{report.id}/updates",
        data={"status": "Resolved", "note": "Sudah diperbaiki oleh tim"},
        headers=auth_header(petugas),
    )
    assert resp.status_code == 403

    db_session.expire_all()
    assert db_session.query(Report).filter(Report.id == report.id).one().status == ReportStatus.ON_PROGRESS

    detail = client.get(f"/reports/{report.id}", headers=auth_header(petugas)).json()
    assert detail["can_update"] is False

    as_admin = client.get(f"/reports/{report.id}", headers=auth_header(admin)).json()
    assert as_admin["can_update"] is True


def test_detail_lists_updates_newest_first(client, make_profile, make_report, auth_header):
    owner = make_profile()
    petugas = make_profile("Andi", role=ProfileRole.PETUGAS)
    report = make_report(owner)

    client.post(f"/reports/{report.id}/claim", headers=auth_header(petugas))
    client.post(
        f"/reports/{report.id}/updates",
        data={"status": "Resolved", "note": "Perbaikan selesai dikerjakan"},
        headers=auth_header(petugas),
    )

    resp = client.get(f"/reports/{report.id}", headers=auth_header(owner))
    assert resp.status_code == 200
    body = resp.json()
    assert body["report"]["status"] == "Resolved"
    assert body["can_update"] is False
    assert [u["status_update"] for u in body["updates"]] == ["Resolved", "On Progress"]
    assert body["updates"][0]["author_name"] == "Andi"

    updates = client.get(f"/reports/{report.id}/updates", headers=auth_header(owner)).json()
    assert [u["status_update"] for u in updates] == ["Resolved", "On Progress"]


def test_any_signed_in_profile_can_read_a_report(client, make_profile, make_report, auth_header):
    owner = make_profile()
    neighbour = make_profile()
    report = make_report(owner)

    resp = client.get(f"/reports/{report.id}", headers=auth_header(neighbour))
    assert resp.status_code == 200
    assert resp.json()["report"]["id"] == report.id
    assert resp.json()["can_update"] is False

    updates = client.get(f"/reports/{report.id}/updates", headers=auth_header(neighbour))
    assert updates.status_code == 200
    assert updates.json() == []


def test_missing_report(client, make_profile, auth_header):
    petugas = make_profile(role=ProfileRole.PETUGAS)
    resp = client.get("/reports/nope", headers=auth_header(petugas))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Laporan tidak ditemukan"


def test_admin_deletes_any_report_with_its_updates(client, make_profile, make_report, auth_header, db_session):
    owner = make_profile()
    admin = make_profile(role=ProfileRole.ADMIN)
    petugas = make_profile(role=ProfileRole.PETUGAS)
    report = make_report(owner)
    client.post(f"/reports/{report.id}/claim", headers=auth_header(petugas))

    assert client.delete(f"/reports/{report.id}", headers=auth_header(petugas)).status_code == 403

    resp = client.delete(f"/reports/{report.id}", headers=auth_header(admin))
    assert resp.status_code == 200

    db_session.expire_all()
    assert db_session.query(Report).count() == 0
    assert db_session.query(ReportUpdate).count() == 0


def test_requires_token(client, make_profile, make_report):
    report = make_report(make_profile())
    assert client.get(f"/reports/{report.id}").status_code == 401


def test_claim_missing_report(client, make_profile, auth_header, db_session):
    petugas = make_profile(role=ProfileRole.PETUGAS)
    resp = client.post("/reports/nope/claim", headers=auth_header(petugas))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Laporan tidak ditemukan"
    assert db_session.query(ReportUpdate).count() == 0


# -------- uploads --------
def test_stored_key_follows_content_type_not_filename(client, make_profile, make_category, auth_header):
    user = make_profile()
    cat = make_category()
    payload = b"<script>alert(document.cookie)</script>"

    resp = client.post(
        "/reports",
        data=_form(cat.id),
        files={"image": ("evil.html", payload, "image/png")},
        headers=auth_header(user),
    )
    assert resp.status_code == 201
    key = resp.json()["image_url"].rsplit("/", 1)[-1]
    assert key.startswith(f"{user.id}-")
    assert key.endswith(".png")

    served = client.get(f"/storage/{settings.STORAGE_BUCKET}/{key}")
    assert served.status_code == 200
    assert served.headers["content-type"].startswith("image/png")


def test_filename_with_slash_after_dot_is_ignored(client, make_profile, make_category, auth_header):
    user = make_profile()
    cat = make_category()

    resp = client.post(
        "/reports",
        data=_form(cat.id),
        files={"image": ("a.b/c", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")},
        headers=auth_header(user),
    )
    assert resp.status_code == 201
    key = resp.json()["image_url"].rsplit("/", 1)[-1]
    assert "/" not in key
    assert key.endswith(".jpg")
    assert os.path.exists(os.path.join(bucket_dir(), key))


def test_oversized_image_is_rejected_and_removed(
    client, make_profile, make_category, auth_header, db_session, monkeypatch
):
    user = make_profile()
    cat = make_category()
    monkeypatch.setattr(settings, "MAX_UPLOAD_MB", 1)

    resp = client.post(
        "/reports",
        data=_form(cat.id),
        files={"image": ("besar.jpg", b"\xff" * (1024 * 1024 + 1), "image/jpeg")},
        headers=auth_header(user),
    )
    assert resp.status_code == 413
    assert resp.json()["detail"] == "Ukuran file maksimal 1MB"
    assert db_session.query(Report).count() == 0
    leftovers = [name for name in os.listdir(bucket_dir()) if name.startswith(f"{user.id}-")]
    assert leftovers == []


def test_non_numeric_latitude_message(client, make_profile, make_category, auth_header, db_session):
    user = make_profile()
    cat = make_category()

    resp = client.post(
        "/reports",
        data=_form(cat.id, latitude="abc", longitude="106.8"),
        headers=auth_header(user),
    )
    assert resp.status_code == 400
    assert resp.json()["errors"] == {"latitude": "Latitude harus berupa angka"}
    assert db_session.query(Report).count() == 0
