from datetime import datetime, timezone

from leadring.models.messages import MonitoringError, NewLeads, StartAck, StartMonitoring


def test_new_leads_payload():
    observed = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    msg = NewLeads(leads=[["Ada", "ada@example.com"]], total=7, observed_at=observed)
    payload = msg.to_payload()
    assert payload == {
        "leads": [["Ada", "ada@example.com"]],
        "total": 7,
        "observedAt": "2024-05-01T12:00:00Z",
    }
    assert NewLeads.model_validate(payload).observed_at == observed
    assert msg.event == "new-leads"


def test_new_leads_as_leads_share_observation_time():
    msg = NewLeads(leads=[["a"], ["b"]], total=2)
    leads = msg.as_leads()
    assert [lead.cells for lead in leads] == [["a"], ["b"]]
    assert {lead.observed_at for lead in leads} == {msg.observed_at}


def test_monitoring_error_payload():
    msg = MonitoringError(message="Lost connection to spreadsheet.")
    assert msg.to_payload() == {"message": "Lost connection to spreadsheet."}
    assert msg.event == "monitoring-error"


def test_start_monitoring_accepts_both_key_styles():
    assert StartMonitoring.model_validate({"spreadsheetId": "abc"}).spreadsheet_id == "abc"
    assert StartMonitoring.model_validate({"spreadsheet_id": "abc"}).spreadsheet_id == "abc"
    assert StartMonitoring.model_validate({}).spreadsheet_id is None


def test_start_ack_payload_omits_empty_fields():
    assert StartAck(accepted=True, spreadsheet_id="abc").to_payload() == {"accepted": True, "spreadsheetId": "abc"}
    assert StartAck(accepted=False, reason="nope").to_payload() == {"accepted": False, "reason": "nope"}
    assert StartAck.model_validate({"accepted": True, "spreadsheetId": "x"}).spreadsheet_id == "x"
