from __future__ import annotations

import json
import mailbox
from datetime import date, datetime, timedelta, timezone
from email.message import EmailMessage
from email.utils import format_datetime

import pytest
from openpyxl import load_workbook

from contact_enricher import __main__ as entrypoint
from contact_enricher import cli
from contact_enricher.config import StoreSettings
from contact_enricher.storage import WorkbookContactStore


def test_module_without_arguments_prints_help(capsys) -> None:
    assert entrypoint.main([]) == 2

    captured = capsys.readouterr()
    assert "python -m contact_enricher" in captured.out
    assert "reconcile" in captured.out


def _write_config(tmp_path, **extra) -> str:
    config = {
        "store": {"path": "staging.xlsx"},
        "maildir": "Maildir",
        "stop_lists": {"phones": ["0760769872"], "domains": ["mycorp.com"]},
        **extra,
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return str(path)


def test_init_then_scan_stages_contacts(tmp_path) -> None:
    sent = datetime.now(timezone.utc) - timedelta(days=2)
    box = mailbox.Maildir(tmp_path / "Maildir", create=True)
    for sender, body in [
        ("Jane <jane@example.com>", "Call me on 06 12 34 56 78"),
        ("Me <me@mycorp.com>", "My line is 0760769872"),
    ]:
        message = EmailMessage()
        message["From"] = sender
        message["Date"] = format_datetime(sent)
        message.set_content(body)
        box.add(message)
    box.close()

    config = _write_config(tmp_path)
    since = (sent - timedelta(days=2)).date()

    assert cli.main(["init-store", "--config", config, "--since", f"{since.year}/{since.month}/{since.day}"]) == 0
    assert cli.main(["--log-level", "DEBUG", "scan", "--config", config]) == 0

    store = WorkbookContactStore(StoreSettings(path=tmp_path / "staging.xlsx"))
    [contact] = store.list_contacts()
    assert contact.email == "jane@example.com"
    assert contact.phone_number == "06 12 34 56 78"
    assert store.get_last_checked_date() == date.today()
    assert load_workbook(tmp_path / "staging.xlsx")["Parameters"]["B2"].value == "0760769872"


def test_scan_without_store_fails(tmp_path) -> None:
    (tmp_path / "Maildir").mkdir()
    assert cli.main(["scan", "--config", _write_config(tmp_path)]) == 1


def test_reconcile_without_crm_section_fails(tmp_path) -> None:
    assert cli.main(["reconcile", "--config", _write_config(tmp_path)]) == 1


def test_bad_since_value_is_rejected(tmp_path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["init-store", "--config", _write_config(tmp_path), "--since", "yesterday"])

    assert excinfo.value.code == 2


def test_scan_since_a_future_date_fails(tmp_path) -> None:
    (tmp_path / "Maildir").mkdir()
    config = _write_config(tmp_path)
    assert cli.main(["init-store", "--config", config, "--since", "2022/2/6"]) == 0

    assert cli.main(["scan", "--config", config, "--since", "2999/1/1"]) == 1


def test_scan_with_missing_maildir_fails(tmp_path) -> None:
    config = _write_config(tmp_path)
    assert cli.main(["init-store", "--config", config, "--since", "2022/2/6"]) == 0

    assert cli.main(["scan", "--config", config, "--maildir", str(tmp_path / "absent")]) == 1
