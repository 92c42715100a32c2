import io
import zipfile
from typing import Any, List, NamedTuple, Optional

import boto3
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException


class ReasonCodeError(Exception):
    pass


class ReasonCode(NamedTuple):
    row_reason: Optional[str]
    row_id: str


def _cell_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    # Excel stores whole numbers as floats
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _read_workbook(source) -> List[ReasonCode]:
    wb = load_workbook(source, read_only=True, data_only=True)
    try:
        ws = wb[wb.sheetnames[0]]
        rows = ws.iter_rows(values_only=True)
        header = [_cell_text(cell) for cell in next(rows, ())]
        try:
            reason_col = header.index("RowReason")
            id_col = header.index("RowID")
        except ValueError:
            raise ReasonCodeError(f"Workbook header must contain RowReason and RowID, got {header}")

        table = []
        for row in rows:
            row_id = _cell_text(row[id_col]) if id_col < len(row) else None
            if row_id is None:
                continue
            row_reason = _cell_text(row[reason_col]) if reason_col < len(row) else None
            table.append(ReasonCode(row_reason, row_id))
        return table
    finally:
        wb.close()


def load_reason_codes(path: Optional[str] = None, bucket: Optional[str] = None, key: Optional[str] = None) -> List[ReasonCode]:
    """Load the reason-code lookup table from S3 when a bucket is given, else from a local path."""
    if bucket:
        s3 = boto3.client("s3")
        try:
            obj = s3.get_object(Bucket=bucket, Key=key)
            data = obj["Body"].read()
        except Exception as exc:
            raise ReasonCodeError(f"Failed to read s3://{bucket}/{key}: {exc}") from exc
        try:
            return _read_workbook(io.BytesIO(data))
        except (OSError, KeyError, zipfile.BadZipFile, InvalidFileException) as exc:
            raise ReasonCodeError(f"Invalid workbook at s3://{bucket}/{key}: {exc}") from exc

    if not path:
        raise ReasonCodeError("No reason code workbook configured")
    try:
        return _read_workbook(path)
    except (OSError, KeyError, zipfile.BadZipFile, InvalidFileException) as exc:
        raise ReasonCodeError(f"Failed to read {path}: {exc}") from exc


def resolve_reason_code(reason: Optional[str], table: List[ReasonCode]) -> Optional[str]:
    """Map a free-text reason to the RowID of the first matching row.

    A row matches when either text contains the other. Unmatched reasons pass through unchanged.
    """
    if not reason:
        return reason
    for row in table:
        if row.row_reason and (reason in row.row_reason or row.row_reason in reason):
            return row.row_id
    return reason
