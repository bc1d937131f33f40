"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted storage backend because:
1. Users can view their accounts and transactions directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (the lifecycle manager handles this with careful ordering)
- Limited query capabilities (we filter in Python)

One worksheet per entity type, one row per entity, header row = model
field names. Nested values (account type, metadata) are JSON-serialized.
"""

import json
import typing
from typing import Any, Optional, Union
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from pydantic import BaseModel
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budget_manager.config import get_settings
from budget_manager.models.entities import utcnow
from budget_manager.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    EntityStore,
    EntityT,
    NotFoundError,
    Predicate,
    StorageError,
)


SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @property
    def settings(self):
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet, writing the header row on creation."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


def _is_json_annotation(annotation: Any) -> bool:
    """Whether a field holds a nested value stored as a JSON cell."""
    origin = typing.get_origin(annotation)
    if origin is Union:
        return any(
            _is_json_annotation(arg)
            for arg in typing.get_args(annotation)
            if arg is not type(None)
        )
    if annotation is dict or origin in (dict, list):
        return True
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)


class GoogleSheetsEntityStore(EntityStore[EntityT]):
    """
    Google Sheets implementation of an entity store.

    Rows are matched on the (id, owner_id) columns; reads always fetch the
    whole sheet and filter in Python.
    """

    def __init__(
        self,
        model_type: type[EntityT],
        sheet_name: str,
        client: Optional[GoogleSheetsClient] = None,
    ):
        self._model_type = model_type
        self._sheet_name = sheet_name
        self._client = client or GoogleSheetsClient()
        self._columns = list(model_type.model_fields)
        self._json_columns = {
            name
            for name, field in model_type.model_fields.items()
            if _is_json_annotation(field.annotation)
        }

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(self._sheet_name, self._columns)

    def _entity_to_row(self, entity: EntityT, header: list[str]) -> list[str]:
        """Convert an entity to a spreadsheet row laid out as `header`."""
        data = entity.model_dump(mode="json")
        row = []
        for column in header:
            value = data.get(column)
            if value is None:
                row.append("")
            elif column in self._json_columns:
                row.append(json.dumps(value))
            elif isinstance(value, bool):
                row.append("true" if value else "false")
            else:
                row.append(str(value))
        return row

    def _row_to_entity(self, row: list[str], header: list[str]) -> EntityT:
        """Convert a spreadsheet row to an entity."""
        data: dict[str, Any] = {}
        for index, column in enumerate(header):
            if column not in self._columns:
                continue
            cell = row[index] if index < len(row) else ""
            if cell == "":
                continue
            data[column] = json.loads(cell) if column in self._json_columns else cell
        return self._model_type.model_validate(data)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(ConnectionError),
        reraise=True,
    )
    def _load(self) -> tuple[gspread.Worksheet, list[str], list[list[str]]]:
        """Fetch the worksheet, its header and its data rows."""
        sheet = self._sheet()
        values = sheet.get_all_values()
        header = values[0] if values else list(self._columns)
        return sheet, header, values[1:]

    def _find_row(
        self,
        rows: list[list[str]],
        header: list[str],
        entity_id: UUID,
        owner_id: str,
    ) -> Optional[int]:
        """1-based sheet row number of an entity, or None."""
        id_index = header.index("id")
        owner_index = header.index("owner_id")
        for idx, row in enumerate(rows, start=2):  # Row 1 is the header
            if (
                len(row) > max(id_index, owner_index)
                and row[id_index] == str(entity_id)
                and row[owner_index] == owner_id
            ):
                return idx
        return None

    async def get_by_id(self, entity_id: UUID, owner_id: str) -> Optional[EntityT]:
        try:
            _, header, rows = self._load()
            row_number = self._find_row(rows, header, entity_id, owner_id)
            if row_number is None:
                return None
            return self._row_to_entity(rows[row_number - 2], header)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get {self._sheet_name} row: {e}")

    async def create(self, entity: EntityT) -> EntityT:
        try:
            sheet, header, rows = self._load()
            if self._find_row(rows, header, entity.id, entity.owner_id) is not None:
                raise DuplicateError(f"{self._sheet_name} row already exists: {entity.id}")

            now = utcnow()
            stored = entity.model_copy(update={"created_at": now, "updated_at": now})
            sheet.append_row(self._entity_to_row(stored, header), value_input_option="RAW")
            return stored
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {self._sheet_name} row: {e}")

    async def update(self, entity: EntityT) -> EntityT:
        try:
            sheet, header, rows = self._load()
            row_number = self._find_row(rows, header, entity.id, entity.owner_id)
            if row_number is None:
                raise NotFoundError(f"{self._sheet_name} row not found: {entity.id}")

            stored = entity.model_copy(update={"updated_at": utcnow()})
            sheet.update(
                range_name=f"A{row_number}",
                values=[self._entity_to_row(stored, header)],
                value_input_option="RAW",
            )
            return stored
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {self._sheet_name} row: {e}")

    async def delete(self, entity_id: UUID, owner_id: str) -> bool:
        try:
            sheet, header, rows = self._load()
            row_number = self._find_row(rows, header, entity_id, owner_id)
            if row_number is None:
                return False
            sheet.delete_rows(row_number)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {self._sheet_name} row: {e}")

    async def query(
        self,
        owner_id: str,
        predicate: Optional[Predicate] = None,
    ) -> list[EntityT]:
        try:
            _, header, rows = self._load()
            owner_index = header.index("owner_id")

            entities = []
            for row in rows:
                if not row or len(row) <= owner_index or row[owner_index] != owner_id:
                    continue
                entity = self._row_to_entity(row, header)
                if predicate is None or predicate(entity):
                    entities.append(entity)
            return entities
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list {self._sheet_name} rows: {e}")
