"""Staging store backed by an Excel workbook.

The workbook holds two sheets:

* ``Contacts`` with the columns ``email``, ``phone``, ``status`` and
  ``lastStatusUpdate`` (header on the first row);
* ``Parameters`` with the last-check date in a single cell (``A2`` by default)
  and the operator's phone and domain stop lists in their own columns.

Every operation loads the workbook, works on the snapshot and saves it back.
Concurrent writers are not supported.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.utils import column_index_from_string
from openpyxl.worksheet.worksheet import Worksheet

from ..config import StoreSettings
from ..extraction.phones import strip_text_marker
from ..extraction.stop_list import StopLists
from ..inbox import format_checkpoint_date, parse_checkpoint_date
from ..models import ContactStatus, ReconciliationOutcome, StagedContact
from .base import StoreError, email_key, merge_outcome, plan_new_contacts

LOGGER = logging.getLogger(__name__)

CONTACT_HEADERS = ("email", "phone", "status", "lastStatusUpdate")
_EMAIL_COL, _PHONE_COL, _STATUS_COL, _UPDATED_COL = 1, 2, 3, 4
_TEXT_FORMAT = "@"


class WorkbookContactStore:
    """Keyed staging store persisted in an ``.xlsx`` workbook."""

    def __init__(self, settings: StoreSettings) -> None:
        self._settings = settings

    @property
    def path(self) -> Path:
        return self._settings.path

    # ------------------------------------------------------------------
    # Setup
    def initialise(self, *, last_checked: Optional[date] = None, stop_lists: Optional[StopLists] = None) -> None:
        """Create an empty workbook with both sheets if the file does not exist."""

        if self.path.exists():
            return
        workbook = Workbook()
        contacts = workbook.active
        contacts.title = self._settings.contact_sheet
        contacts.append(list(CONTACT_HEADERS))

        parameters = workbook.create_sheet(self._settings.parameters_sheet)
        check_cell = parameters[self._settings.last_check_cell]
        if check_cell.row > 1:
            parameters.cell(row=check_cell.row - 1, column=check_cell.column, value="lastCheckDate")
        if last_checked is not None:
            check_cell.value = format_checkpoint_date(last_checked)

        stop_lists = stop_lists or StopLists()
        self._write_column(parameters, self._settings.phone_stop_list_column, "phoneStopList", sorted(stop_lists.phones))
        self._write_column(parameters, self._settings.domain_stop_list_column, "domainStopList", sorted(stop_lists.domains))

        self.path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(self.path)
        LOGGER.info("Created staging workbook %s", self.path)

    # ------------------------------------------------------------------
    # Contacts
    def list_contacts(self) -> List[StagedContact]:
        workbook = self._load()
        return [contact for _, contact in self._read_contacts(self._contact_sheet(workbook))]

    def pending_contacts(self) -> List[StagedContact]:
        return [contact for contact in self.list_contacts() if contact.is_pending]

    def stage_new_contacts(self, found: Mapping[str, Sequence[str]], *, when: Optional[date] = None) -> List[StagedContact]:
        workbook = self._load()
        sheet = self._contact_sheet(workbook)
        existing = [contact for _, contact in self._read_contacts(sheet)]
        planned = plan_new_contacts(found, existing, when=when)
        if not planned:
            return []

        for contact in planned:
            sheet.append([contact.email, None, contact.status.value, contact.last_status_update])
            phone_cell = sheet.cell(row=sheet.max_row, column=_PHONE_COL)
            phone_cell.value = strip_text_marker(contact.phone_number)
            phone_cell.number_format = _TEXT_FORMAT
        workbook.save(self.path)
        LOGGER.info("Staged %s new contacts in %s", len(planned), self.path)
        return planned

    def apply_outcomes(self, outcomes: Iterable[ReconciliationOutcome], when: date) -> int:
        workbook = self._load()
        sheet = self._contact_sheet(workbook)
        rows = {email_key(contact.email): (row, contact) for row, contact in self._read_contacts(sheet)}

        applied = 0
        for outcome in outcomes:
            entry = rows.get(email_key(outcome.email))
            if entry is None:
                LOGGER.warning("No staged contact for %s; status %s dropped", outcome.email, outcome.status.value)
                continue
            row, contact = entry
            if not merge_outcome(contact, outcome, when):
                continue
            sheet.cell(row=row, column=_STATUS_COL, value=contact.status.value)
            sheet.cell(row=row, column=_UPDATED_COL, value=when)
            applied += 1

        if applied:
            workbook.save(self.path)
        return applied

    # ------------------------------------------------------------------
    # Parameters
    def get_last_checked_date(self) -> date:
        workbook = self._load()
        value = self._parameter_sheet(workbook)[self._settings.last_check_cell].value
        try:
            parsed = parse_checkpoint_date(value)
        except ValueError as exc:
            raise StoreError(str(exc)) from exc
        if parsed is None:
            raise StoreError(
                f"No last check date in {self._settings.parameters_sheet}!{self._settings.last_check_cell}"
            )
        return parsed

    def set_last_checked_date(self, value: date) -> None:
        workbook = self._load()
        self._parameter_sheet(workbook)[self._settings.last_check_cell].value = format_checkpoint_date(value)
        workbook.save(self.path)

    def get_stop_lists(self) -> StopLists:
        workbook = self._load()
        sheet = self._parameter_sheet(workbook)
        return StopLists.from_values(
            phones=self._column_values(sheet, self._settings.phone_stop_list_column),
            domains=self._column_values(sheet, self._settings.domain_stop_list_column),
        )

    # ------------------------------------------------------------------
    # Helpers
    def _load(self):
        if not self.path.exists():
            raise StoreError(f"Staging workbook '{self.path}' was not found")
        return load_workbook(self.path)

    def _contact_sheet(self, workbook) -> Worksheet:
        return self._sheet(workbook, self._settings.contact_sheet)

    def _parameter_sheet(self, workbook) -> Worksheet:
        return self._sheet(workbook, self._settings.parameters_sheet)

    @staticmethod
    def _sheet(workbook, name: str) -> Worksheet:
        if name not in workbook.sheetnames:
            raise StoreError(f"Workbook has no sheet named '{name}'")
        return workbook[name]

    @staticmethod
    def _read_contacts(sheet: Worksheet):
        for row_number, cells in enumerate(sheet.iter_rows(min_row=2, max_col=4, values_only=True), start=2):
            email, phone, status, updated = (list(cells) + [None] * 4)[:4]
            if email is None or not str(email).strip():
                continue
            try:
                parsed_status = ContactStatus.parse(status) if status not in (None, "") else ContactStatus.WAITING
            except ValueError as exc:
                raise StoreError(f"Row {row_number}: {exc}") from exc
            yield row_number, StagedContact(
                email=str(email).strip(),
                phone_number=_cell_text(phone),
                status=parsed_status,
                last_status_update=_cell_date(updated),
            )

    @staticmethod
    def _column_values(sheet: Worksheet, column: str) -> List[str]:
        index = column_index_from_string(column)
        values = []
        for (value,) in sheet.iter_rows(min_row=2, min_col=index, max_col=index, values_only=True):
            text = _cell_text(value)
            if text:
                values.append(text)
        return values

    @staticmethod
    def _write_column(sheet: Worksheet, column: str, header: str, values: Sequence[str]) -> None:
        index = column_index_from_string(column)
        sheet.cell(row=1, column=index, value=header)
        for offset, value in enumerate(values, start=2):
            cell = sheet.cell(row=offset, column=index, value=value)
            cell.number_format = _TEXT_FORMAT


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _cell_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None
