import csv
import json
import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from payroll_activities import cli
from payroll_activities.errors import ReferenceDataError
from payroll_activities.models import DayType, EntryMode, WorkEntryKey, WorkRole
from payroll_activities.storage import JsonStore, load_batch

STORE = {
    "jobs": {
        "MEE_ROOM": [
            {"id": "BASE_HR", "description": "Basic", "pay_type": "Base", "rate_unit": "Hour",
             "rate_biasa": "10.00", "rate_ahad": "15.00", "rate_umum": "20.00", "is_default_setting": True},
            {"id": "OT", "description": "Overtime", "pay_type": "Overtime", "rate_unit": "Hour",
             "rate_biasa": "5.00", "is_default_setting": True},
            {"id": "HARI_AHAD_JAM", "description": "Sunday cleaning", "pay_type": "Base", "rate_unit": "Hour",
             "rate_ahad": "8.00"},
        ],
        "SALESMAN": [
            {"id": "1-2UDG", "description": "Mee 2 udang", "pay_type": "Base", "rate_unit": "Bag",
             "rate_biasa": "0.30"},
        ],
    },
    "employee_pay_codes": {
        "e1": [{"id": "BASE_HR", "description": "Senior rate", "rate_unit": "Hour", "rate_biasa": "12.00",
                "is_default_setting": True}],
    },
    "holidays": [{"holiday_date": "2024-08-31", "description": "Merdeka"}],
    "leave_balances": [
        {"employee_id": "e1", "year": 2024, "sick_total": 14, "sick_taken": 14,
         "annual_total": 8, "annual_taken": 3},
        {"employee_id": "e3", "year": 2024},
    ],
    "product_sales": [
        {"employee_id": "s1", "log_date": "2024-06-03", "product_id": "1-2UDG", "quantity": 10},
    ],
}

BATCH = {
    "log_date": "2024-06-03",
    "entries": [
        {"employee_id": "e1", "job_id": "MEE_ROOM", "hours": 9},
        {"employee_id": "s1", "job_id": "SALESMAN", "role": "salesman"},
    ],
    "leave": [{"employee_id": "e2", "job_id": "MEE_ROOM"}],
}


@pytest.fixture
def data_path(tmp_path, monkeypatch):
    path = tmp_path / "store.json"
    path.write_text(json.dumps(STORE))
    monkeypatch.setattr(cli, "DEFAULT_DATA_PATH", path)
    return path


@pytest.fixture
def batch_path(tmp_path):
    path = tmp_path / "batch.json"
    path.write_text(json.dumps(BATCH))
    return path


def test_store_validates_and_converts_records(data_path):
    store = JsonStore(data_path)

    [base] = store.employee_pay_codes("e1")
    assert str(base.rate_biasa) == "12.00"
    assert store.leave_balance("e1", 2024).sick_taken == 14
    assert store.leave_balance("e1", 2023) is None
    assert store.product_sales("s1", date(2024, 6, 3))[0].quantity == 10
    assert store.pay_code("HARI_AHAD_JAM").rate_unit == "Hour"


def test_invalid_store_file_raises(tmp_path):
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"holidays": [{"holiday_date": "not a date"}]}))

    with pytest.raises(ReferenceDataError):
        JsonStore(path)


def test_load_batch_builds_entries(data_path, tmp_path):
    path = tmp_path / "edit.json"
    path.write_text(json.dumps({
        "log_date": "2024-06-02",
        "mode": "edit",
        "day_type": "Ahad",
        "entries": [
            {"employee_id": "e1", "job_id": "MEE_ROOM", "hours": 7, "cleaning_mode": True,
             "saved_activities": [{"pay_code_id": "HARI_AHAD_JAM", "rate_unit": "Hour"}]},
            {"employee_id": "f1", "job_id": "IKUT", "role": "follower", "lead_id": "s1", "doubled": True,
             "bag_counts": {"muat_mee": 2}},
        ],
    }))

    batch = load_batch(path, JsonStore(data_path))

    assert batch.mode is EntryMode.EDIT
    assert batch.day_type is DayType.AHAD
    cleaning, ikut = batch.entries
    assert cleaning.inputs.cleaning_pay_code.id == "HARI_AHAD_JAM"
    assert "HARI_AHAD_JAM" in cleaning.snapshot
    assert ikut.key == WorkEntryKey("f1", "IKUT")
    assert ikut.inputs.role is WorkRole.FOLLOWER
    assert ikut.role_link.lead_id == "s1"
    assert ikut.role_link.bag_counts.muat_mee == 2


def test_loaded_activities_are_independent_of_the_snapshot(data_path, tmp_path):
    path = tmp_path / "edit.json"
    saved = [{"pay_code_id": "TRIP", "rate_unit": "Trip", "units_produced": 4}]
    path.write_text(json.dumps({
        "log_date": "2024-06-03",
        "mode": "edit",
        "entries": [{"employee_id": "e1", "job_id": "MEE_ROOM", "saved_activities": saved}],
        "leave": [{"employee_id": "e2", "job_id": "MEE_ROOM", "saved_activities": saved}],
    }))

    batch = load_batch(path, JsonStore(data_path))
    [entry] = batch.entries
    [leave] = batch.leave
    entry.activities[0].units_produced = 99
    leave.activities[0].is_selected = False

    assert entry.snapshot.get("TRIP").units_produced == 4
    assert leave.snapshot.get("TRIP").is_selected
    assert entry.snapshot.restore()[0] is not entry.snapshot.restore()[0]


def test_recalc_prints_activities_and_totals(capsys, data_path, batch_path):
    cli.main(["recalc", str(batch_path)])

    out = capsys.readouterr().out
    assert "Work log 2024-06-03 (Biasa)" in out
    assert "e1 / MEE_ROOM" in out
    assert "Total: 113.00" in out
    assert "Total: 3.00" in out
    assert "e2 / leave" in out
    assert "Grand total: 196.00" in out


def test_export_writes_selected_activities(capsys, data_path, batch_path, tmp_path):
    out_path = tmp_path / "activities.csv"

    cli.main(["export", str(batch_path), str(out_path)])

    with out_path.open() as handle:
        rows = list(csv.DictReader(handle))
    assert "Exported 4 activities" in capsys.readouterr().out
    assert [(r["employee_id"], r["job_id"], r["pay_code_id"]) for r in rows] == [
        ("e1", "MEE_ROOM", "BASE_HR"),
        ("e1", "MEE_ROOM", "OT"),
        ("e2", "LEAVE", "BASE_HR"),
        ("s1", "SALESMAN", "1-2UDG"),
    ]
    assert rows[0]["calculated_amount"] == "108.00"
    assert rows[3]["units_produced"] == "10"


def test_leave_command_reports_fallback_and_rejection(capsys, data_path):
    cli.main(["leave", "e1", "2024-06-03"])
    out = capsys.readouterr().out
    assert "Sick Leave balance exhausted (14/14 days used)" in out
    assert "Annual Leave selected - 5 days remaining" in out

    cli.main(["leave", "e3", "2024-06-03"])
    assert "Rejected: No leave types available" in capsys.readouterr().out


def test_day_type_command(capsys, data_path):
    cli.main(["day-type", "2024-08-31"])
    lines = capsys.readouterr().out.strip().splitlines()

    assert lines[0] == "2024-08-31 Umum (Merdeka)"
    assert lines[1] == "Default hours: 5  Overtime after: 5"
