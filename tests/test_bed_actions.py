import pytest
from sqlalchemy.exc import OperationalError

from smart_er.core.errors import ConflictError
from smart_er.models import BedStatus, HistoryAction, PatientBedHistory
from smart_er.services import bed_action_service
from smart_er.utils.datetime_utils import utc_now


def _open_episodes(db_session, patient_id):
    db_session.expire_all()
    return (
        db_session.query(PatientBedHistory)
        .filter(
            PatientBedHistory.patient_id == patient_id,
            PatientBedHistory.discharge_time.is_(None),
        )
        .all()
    )


@pytest.fixture
def admitted(make_patient, post_action):
    """Patient HN 0000007 in bed 5."""
    patient = make_patient("0000007")
    resp = post_action(action="scan_barcode", bedNumber="5", hn="0000007")
    assert resp.status_code == 200, resp.text
    return patient


def test_scan_barcode_admits_patient(db_session, admitted, bed_row):
    bed = bed_row("5")
    assert bed.status == BedStatus.OCCUPIED
    assert bed.patient_id == admitted.id
    assert bed.admitted_at is not None
    assert bed.esi_level is None

    episodes = _open_episodes(db_session, admitted.id)
    assert len(episodes) == 1
    assert episodes[0].action == HistoryAction.ADMIT.value
    assert episodes[0].delivery_status == "รอตรวจ"
    assert bed.current_history_id == episodes[0].id


def test_scan_barcode_response_shape(make_patient, post_action):
    make_patient("0000007")
    resp = post_action(action="scan_barcode", bedNumber=5, hn="0000007")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "รับผู้ป่วยเข้าเตียงสำเร็จ"}


def test_discharge_frees_bed_and_closes_episode(db_session, admitted, post_action, bed_row):
    resp = post_action(action="discharge", bedNumber="5")
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    bed = bed_row("5")
    assert bed.status == BedStatus.AVAILABLE
    assert bed.patient_id is None
    assert bed.esi_level is None
    assert bed.admitted_at is None
    assert bed.current_history_id is None

    assert _open_episodes(db_session, admitted.id) == []
    closed = db_session.query(PatientBedHistory).filter_by(patient_id=admitted.id).one()
    assert closed.discharge_time is not None
    assert closed.delivery_status == "จำหน่ายแล้ว"


def test_discharge_available_bed_is_rejected(post_action):
    resp = post_action(action="discharge", bedNumber="5")
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Bed is not occupied"}


def test_transfer_to_occupied_bed_conflicts(db_session, admitted, make_patient, post_action, bed_row):
    other = make_patient("0000009", "Somsri", "Rakdee")
    assert post_action(action="scan_barcode", bedNumber="9", hn="0000009").status_code == 200

    resp = post_action(action="transfer", bedNumber="5", targetBedNumber="9")
    assert resp.status_code == 409
    assert resp.json()["error"] == "Target bed is occupied"

    assert bed_row("5").patient_id == admitted.id
    assert bed_row("9").patient_id == other.id


def test_transfer_moves_patient_and_carries_episode(db_session, admitted, post_action, bed_row):
    assert post_action(action="update_esi", bedNumber="5", esiLevel=2).status_code == 200
    assert post_action(
        action="update_status",
        bedNumber="5",
        deliveryStatus="รอผลเลือด",
        otherSymptoms="เจ็บหน้าอก",
    ).status_code == 200

    resp = post_action(action="transfer", bedNumber="5", targetBedNumber="9")
    assert resp.status_code == 200
    assert resp.json()["message"] == "ย้ายเตียงไป 9 สำเร็จ"

    source = bed_row("5")
    target = bed_row("9")
    assert source.status == BedStatus.AVAILABLE
    assert source.patient_id is None
    assert source.esi_level is None
    assert target.status == BedStatus.OCCUPIED
    assert target.patient_id == admitted.id
    assert target.esi_level == 2

    episodes = _open_episodes(db_session, admitted.id)
    assert len(episodes) == 1
    episode = episodes[0]
    assert episode.bed_id == target.id
    assert episode.action == HistoryAction.TRANSFER_IN.value
    assert episode.delivery_status == "รอผลเลือด"
    assert episode.other_symptoms == "เจ็บหน้าอก"
    assert episode.esi_level == 2
    assert target.current_history_id == episode.id

    closed = (
        db_session.query(PatientBedHistory)
        .filter_by(patient_id=admitted.id, bed_id=source.id)
        .one()
    )
    assert closed.discharge_time is not None
    assert closed.delivery_status == "รอผลเลือด (ย้ายเตียง)"


def test_esi_out_of_range_is_rejected(admitted, post_action, bed_row):
    assert post_action(action="update_esi", bedNumber="5", esiLevel=3).status_code == 200

    resp = post_action(action="update_esi", bedNumber="5", esiLevel=6)
    assert resp.status_code == 400
    assert resp.json()["error"] == "ESI must be 1-5"
    assert bed_row("5").esi_level == 3


def test_esi_update_writes_bed_and_episode(db_session, admitted, post_action, bed_row):
    resp = post_action(action="update_esi", bedNumber="5", esiLevel=1)
    assert resp.status_code == 200
    assert resp.json()["message"] == "อัปเดต ESI Level 1 สำเร็จ"
    assert bed_row("5").esi_level == 1
    assert _open_episodes(db_session, admitted.id)[0].esi_level == 1


def test_esi_on_empty_bed_is_rejected(post_action, bed_row):
    resp = post_action(action="update_esi", bedNumber="5", esiLevel=2)
    assert resp.status_code == 400
    assert resp.json()["error"] == "No patient in bed"
    assert bed_row("5").esi_level is None


def test_update_status_with_bad_esi_writes_nothing(db_session, admitted, post_action):
    resp = post_action(
        action="update_status",
        bedNumber="5",
        deliveryStatus="รอ Admit",
        esiLevel=0,
    )
    assert resp.status_code == 400
    assert _open_episodes(db_session, admitted.id)[0].delivery_status == "รอตรวจ"


def test_update_status_shows_on_bed_listing(admitted, client, post_action):
    post_action(
        action="update_status",
        bedNumber="5",
        deliveryStatus="ปรึกษาแพทย์เฉพาะทาง",
        otherSymptoms="  ",
    )

    resp = client.get("/api/beds/5")
    assert resp.status_code == 200
    bed = resp.json()["bed"]
    assert bed["deliveryStatus"] == "ปรึกษาแพทย์เฉพาะทาง"
    assert bed["otherSymptoms"] is None
    assert bed["patient"]["hn"] == "0000007"


def test_blank_status_falls_back_to_pending_exam(db_session, admitted, post_action):
    post_action(action="update_status", bedNumber="5", deliveryStatus="รอรับยา")
    post_action(action="update_status", bedNumber="5", deliveryStatus="")
    assert _open_episodes(db_session, admitted.id)[0].delivery_status == "รอตรวจ"


def test_custom_status_is_accepted(db_session, admitted, post_action):
    resp = post_action(action="update_status", bedNumber="5", deliveryStatus="รอญาติ")
    assert resp.status_code == 200
    assert _open_episodes(db_session, admitted.id)[0].delivery_status == "รอญาติ"


def test_admit_into_occupied_bed_conflicts(admitted, make_patient, post_action, bed_row):
    make_patient("0000008")
    resp = post_action(action="scan_barcode", bedNumber="5", hn="0000008")
    assert resp.status_code == 409
    assert resp.json()["error"] == "Bed is already occupied"
    assert bed_row("5").patient_id == admitted.id


def test_admit_patient_already_in_another_bed_conflicts(admitted, post_action, bed_row):
    resp = post_action(action="scan_barcode", bedNumber="6", hn="0000007")
    assert resp.status_code == 409
    assert bed_row("6").status == BedStatus.AVAILABLE


def test_admit_unknown_patient(post_action):
    resp = post_action(action="scan_barcode", bedNumber="5", hn="9999999")
    assert resp.status_code == 404
    assert resp.json()["error"] == "Patient HN 9999999 not found"


def test_admit_without_hn(post_action):
    resp = post_action(action="scan_barcode", bedNumber="5")
    assert resp.status_code == 400


def test_unknown_bed(post_action):
    resp = post_action(action="discharge", bedNumber="99")
    assert resp.status_code == 404
    assert resp.json()["error"] == "Bed 99 not found"


def test_unknown_action(post_action):
    resp = post_action(action="teleport", bedNumber="5")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Unknown action: teleport"


def test_missing_bed_number_is_bad_request(client):
    resp = client.post("/api/bed-actions", json={"action": "discharge"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.parametrize("bed_number", ["", "   "])
def test_blank_bed_number_is_bad_request(post_action, bed_number):
    resp = post_action(action="discharge", bedNumber=bed_number)
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "action and bedNumber required"}


@pytest.mark.parametrize(
    "body, status_code, error",
    [
        ({"targetBedNumber": None}, 400, "targetBedNumber required"),
        ({"targetBedNumber": "5"}, 400, "Target bed must be different from source bed"),
        ({"targetBedNumber": "77"}, 404, "Target bed not found"),
    ],
)
def test_transfer_validation(admitted, post_action, body, status_code, error):
    resp = post_action(action="transfer", bedNumber="5", **body)
    assert resp.status_code == status_code
    assert resp.json()["error"] == error


def test_transfer_from_empty_bed(post_action):
    resp = post_action(action="transfer", bedNumber="5", targetBedNumber="9")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Source bed is not occupied"


def test_transfer_failure_rolls_back_everything(db_session, admitted, post_action, bed_row, monkeypatch):
    def _fail(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("boom"))

    monkeypatch.setattr(bed_action_service, "_start_episode", _fail)

    resp = post_action(action="transfer", bedNumber="5", targetBedNumber="9")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Failed to process bed action"}

    source = bed_row("5")
    target = bed_row("9")
    assert source.status == BedStatus.OCCUPIED
    assert source.patient_id == admitted.id
    assert target.status == BedStatus.AVAILABLE
    assert target.patient_id is None

    episodes = _open_episodes(db_session, admitted.id)
    assert len(episodes) == 1
    assert episodes[0].bed_id == source.id


def test_readmit_after_discharge_opens_new_episode(db_session, admitted, post_action):
    post_action(action="discharge", bedNumber="5")
    resp = post_action(action="scan_barcode", bedNumber="5", hn="0000007")
    assert resp.status_code == 200

    assert len(_open_episodes(db_session, admitted.id)) == 1
    assert db_session.query(PatientBedHistory).filter_by(patient_id=admitted.id).count() == 2


def _set_maintenance(db_session, bed_row, bed_number):
    bed = bed_row(bed_number)
    bed.status = BedStatus.MAINTENANCE
    db_session.commit()


def test_admit_into_maintenance_bed_conflicts(db_session, make_patient, post_action, bed_row):
    patient = make_patient("0000007")
    _set_maintenance(db_session, bed_row, "5")

    resp = post_action(action="scan_barcode", bedNumber="5", hn="0000007")
    assert resp.status_code == 409
    assert resp.json()["error"] == "Bed 5 is under maintenance"

    bed = bed_row("5")
    assert bed.status == BedStatus.MAINTENANCE
    assert bed.patient_id is None
    assert _open_episodes(db_session, patient.id) == []


def test_transfer_to_maintenance_bed_conflicts(db_session, admitted, post_action, bed_row):
    _set_maintenance(db_session, bed_row, "9")

    resp = post_action(action="transfer", bedNumber="5", targetBedNumber="9")
    assert resp.status_code == 409
    assert resp.json()["error"] == "Target bed 9 is under maintenance"

    assert bed_row("5").patient_id == admitted.id
    assert bed_row("9").status == BedStatus.MAINTENANCE
    assert _open_episodes(db_session, admitted.id)[0].bed_id == bed_row("5").id


def test_admit_losing_the_bed_race_conflicts(db_session, make_patient, post_action, bed_row, monkeypatch):
    patient = make_patient("0000007")
    monkeypatch.setattr(bed_action_service, "_occupy_bed", lambda *args, **kwargs: False)

    resp = post_action(action="scan_barcode", bedNumber="5", hn="0000007")
    assert resp.status_code == 409
    assert resp.json()["error"] == "Bed is already occupied"
    assert bed_row("5").status == BedStatus.AVAILABLE
    assert _open_episodes(db_session, patient.id) == []


def test_transfer_losing_the_target_race_rolls_back(db_session, admitted, post_action, bed_row, monkeypatch):
    monkeypatch.setattr(bed_action_service, "_occupy_bed", lambda *args, **kwargs: False)

    resp = post_action(action="transfer", bedNumber="5", targetBedNumber="9")
    assert resp.status_code == 409
    assert resp.json()["error"] == "Target bed is occupied"

    assert bed_row("5").patient_id == admitted.id
    assert bed_row("9").status == BedStatus.AVAILABLE
    episodes = _open_episodes(db_session, admitted.id)
    assert len(episodes) == 1
    assert episodes[0].bed_id == bed_row("5").id


def test_discharge_losing_the_bed_race_reopens_episode(db_session, admitted, post_action, bed_row, monkeypatch):
    # the bed's occupant changes between the read and the clearing UPDATE
    monkeypatch.setattr(bed_action_service, "_require_occupied", lambda bed, message: -1)

    resp = post_action(action="discharge", bedNumber="5")
    assert resp.status_code == 409
    assert resp.json()["error"] == "Bed state changed by another request, please retry"

    assert bed_row("5").patient_id == admitted.id
    assert len(_open_episodes(db_session, admitted.id)) == 1


def test_close_episode_twice_conflicts(db_session, admitted, bed_row):
    episode = _open_episodes(db_session, admitted.id)[0]
    now = utc_now()
    bed_action_service._close_episode(db_session, episode, delivery_status="จำหน่ายแล้ว", now=now)

    with pytest.raises(ConflictError):
        bed_action_service._close_episode(db_session, episode, delivery_status="จำหน่ายแล้ว", now=now)
    db_session.rollback()


def test_esi_write_for_departed_patient_conflicts(db_session, admitted, bed_row):
    bed = bed_row("5")

    with pytest.raises(ConflictError):
        bed_action_service._set_episode_esi(db_session, bed, admitted.id + 1, 2)
    db_session.rollback()
    assert bed_row("5").esi_level is None


def test_unique_index_violation_maps_to_conflict(db_session, make_patient, post_action, bed_row):
    # a stray open episode for the patient, left by a request that won a race
    other = make_patient("0000008")
    db_session.add(
        PatientBedHistory(
            patient_id=other.id,
            bed_id=bed_row("6").id,
            action=HistoryAction.ADMIT.value,
            delivery_status="รอตรวจ",
        )
    )
    db_session.commit()

    resp = post_action(action="scan_barcode", bedNumber="7", hn="0000008")
    assert resp.status_code == 409
    assert resp.json()["error"] == "Bed state changed by another request, please retry"

    bed = bed_row("7")
    assert bed.status == BedStatus.AVAILABLE
    assert bed.patient_id is None
