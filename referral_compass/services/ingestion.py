"""
Monthly Referral Import Service

Parses the wide-format referral spreadsheet practices keep outside the dashboard:

    Source,Jan,Feb,March,April,May,June,July,Aug,Sep,Oct,Nov,Dec,Total
    Dr. Smith's Dental,10,12,15,8,20,18,22,25,19,21,23,20,213

into MonthlyReferral rows for a given year, ready to be scored or written by the
application layer.

Key Features:
- Source column detection ('Source' or 'Name', case-insensitive)
- Month headers in short or long English form ('Sep', 'Sept', 'September')
- Grain uniqueness: one row per source, one column per month
- Cell validation: counts must be non-negative whole numbers; blanks mean zero
- Rows with no referrals at all are skipped

Parsing never raises for bad data; problems are returned as ValidationError
entries so the caller can show all of them at once.
"""

import io
import logging
from typing import BinaryIO, Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from referral_compass.models import ImportPreview, MonthlyReferral, ValidationError
from referral_compass.services.months import format_year_month

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

SOURCE_COLUMNS: List[str] = ['source', 'name']

MONTH_COLUMN_MAP: Dict[str, int] = {
    'jan': 1, 'january': 1,
    'feb': 2, 'february': 2,
    'mar': 3, 'march': 3,
    'apr': 4, 'april': 4,
    'may': 5,
    'jun': 6, 'june': 6,
    'jul': 7, 'july': 7,
    'aug': 8, 'august': 8,
    'sep': 9, 'sept': 9, 'september': 9,
    'oct': 10, 'october': 10,
    'nov': 11, 'november': 11,
    'dec': 12, 'december': 12,
}

# Counts at or above this cannot be stored as int64
MAX_CELL_COUNT: float = float(np.iinfo(np.int64).max)

TEMPLATE_CSV = (
    "Source,Jan,Feb,March,April,May,June,July,Aug,Sep,Oct,Nov,Dec,Total\n"
    "Dr. Smith's Dental,10,12,15,8,20,18,22,25,19,21,23,20,213\n"
    "City Medical Center,5,8,6,10,12,9,11,13,14,10,12,15,125\n"
)


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================

def find_source_column(df: pd.DataFrame) -> Optional[str]:
    """Return the normalized name of the source column, if present."""
    for col in SOURCE_COLUMNS:
        if col in df.columns:
            return col
    return None


def find_month_columns(df: pd.DataFrame) -> Tuple[Dict[str, int], List[ValidationError]]:
    """
    Map month header -> month number and report months given more than once.

    Args:
        df: DataFrame with normalized (lowercase, stripped) column names

    Returns:
        Tuple of ({column: month_number}, errors)
    """
    errors: List[ValidationError] = []
    month_columns: Dict[str, int] = {}
    seen: Dict[int, str] = {}

    for col in df.columns:
        month = MONTH_COLUMN_MAP.get(col)
        if month is None:
            continue
        if month in seen:
            errors.append(ValidationError(
                field=col,
                message=f"Month column '{col}' duplicates '{seen[month]}'",
                row_number=None
            ))
            continue
        seen[month] = col
        month_columns[col] = month

    return month_columns, errors


def validate_columns(df: pd.DataFrame) -> List[ValidationError]:
    """
    Validate that the sheet has a source column and at least one month column.
    """
    errors: List[ValidationError] = []

    if find_source_column(df) is None:
        errors.append(ValidationError(
            field='source',
            message="Required column 'Source' is missing",
            row_number=None
        ))

    month_columns, duplicate_errors = find_month_columns(df)
    errors.extend(duplicate_errors)
    if not month_columns and not duplicate_errors:
        errors.append(ValidationError(
            field='months',
            message='No month columns found. Use Jan, Feb, March, etc.',
            row_number=None
        ))

    return errors


def validate_grain_uniqueness(df: pd.DataFrame, source_col: str) -> List[ValidationError]:
    """
    Validate that each source appears on one row only.

    Source names are compared after stripping whitespace and ignoring case.
    """
    errors: List[ValidationError] = []

    keys = df[source_col].str.strip().str.lower()
    keys = keys[keys != '']
    duplicated_mask = keys.duplicated(keep=False)

    if duplicated_mask.any():
        duplicate_indices = keys[duplicated_mask].index.tolist()
        names = sorted(set(df.loc[duplicate_indices, source_col].str.strip()))
        errors.append(ValidationError(
            field=source_col,
            message=(
                f"Found {len(duplicate_indices)} rows sharing a source name "
                f"({', '.join(names[:5])})"
            ),
            # Convert 0-based DataFrame index to 1-based row number (add 1)
            row_number=duplicate_indices[0] + 1
        ))

    return errors


def validate_counts(df: pd.DataFrame, month_columns: Dict[str, int]) -> List[ValidationError]:
    """
    Validate that every non-blank month cell is a non-negative whole number.
    """
    errors: List[ValidationError] = []

    for col in month_columns:
        raw = df[col].str.strip()
        blank = raw == ''
        values = pd.to_numeric(raw.where(~blank, '0'), errors='coerce')

        # 'inf' and 'nan' parse as floats but are not counts
        not_numeric = values.isna().to_numpy() | ~np.isfinite(values.to_numpy(dtype=float))
        filled = np.where(not_numeric, 0.0, values.to_numpy(dtype=float))
        negative = ~not_numeric & (filled < 0)
        too_large = ~not_numeric & (filled >= MAX_CELL_COUNT)
        fractional = ~not_numeric & ~too_large & ~np.isclose(filled, np.round(filled))

        for idx in df.index[not_numeric]:
            errors.append(ValidationError(
                field=col,
                message=f"Value '{df.at[idx, col]}' in column '{col}' is not a number",
                row_number=idx + 1
            ))
        for idx in df.index[negative]:
            errors.append(ValidationError(
                field=col,
                message=f"Negative count {values[idx]:g} in column '{col}'",
                row_number=idx + 1
            ))
        for idx in df.index[too_large]:
            errors.append(ValidationError(
                field=col,
                message=f"Count {values[idx]:g} in column '{col}' is too large",
                row_number=idx + 1
            ))
        for idx in df.index[fractional & ~negative]:
            errors.append(ValidationError(
                field=col,
                message=f"Count {values[idx]:g} in column '{col}' is not a whole number",
                row_number=idx + 1
            ))

    return errors


def _normalize_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """Lowercase and strip column names; every cell stays a string."""
    df_normalized = df.copy()
    df_normalized.columns = df_normalized.columns.str.lower().str.strip()
    return df_normalized.fillna('').astype(str)


# =============================================================================
# INGESTION FUNCTIONS
# =============================================================================

def to_monthly_referrals(
    df: pd.DataFrame,
    source_col: str,
    month_columns: Dict[str, int],
    year: int
) -> Tuple[List[str], List[MonthlyReferral]]:
    """
    Melt a validated sheet into nonzero MonthlyReferral rows keyed by source name.

    Returns:
        Tuple of (source names with data, referral rows)
    """
    counts = pd.DataFrame({
        col: pd.to_numeric(df[col].str.strip().replace('', '0')).round().astype(np.int64)
        for col in month_columns
    }, index=df.index)
    counts[source_col] = df[source_col].str.strip()

    sources: List[str] = []
    referrals: List[MonthlyReferral] = []

    for _, row in counts.iterrows():
        source = row[source_col]
        if not source:
            continue

        row_referrals = [
            MonthlyReferral(
                officeId=source,
                yearMonth=format_year_month(year, month),
                patientCount=int(row[col]),
            )
            for col, month in sorted(month_columns.items(), key=lambda item: item[1])
            if int(row[col]) > 0
        ]
        # Only keep sources that actually referred someone this year
        if row_referrals:
            sources.append(source)
            referrals.extend(row_referrals)

    return sources, referrals


def ingest_referral_csv(
    file: Union[BinaryIO, str, bytes],
    year: int
) -> ImportPreview:
    """
    Parse and validate a monthly referral sheet for one year.

    Performs the following steps:
    1. Parse CSV using pandas (all cells as text)
    2. Validate source and month columns
    3. Validate one row per source
    4. Validate month cells
    5. Melt into MonthlyReferral rows

    Args:
        file: File object, raw bytes, or CSV text
        year: Calendar year the month columns belong to

    Returns:
        ImportPreview; success is False and referrals empty when any error was found
    """
    errors: List[ValidationError] = []

    if not 1900 <= year <= 9999:
        errors.append(ValidationError(
            field='year',
            message=f'Year {year} is out of range',
            row_number=None
        ))
        return ImportPreview(success=False, year=max(1900, min(year, 9999)), errors=errors)

    try:
        if isinstance(file, bytes):
            file_like = io.BytesIO(file)
        elif isinstance(file, str):
            file_like = io.StringIO(file)
        else:
            content = file.read()
            file_like = io.BytesIO(content) if isinstance(content, bytes) else io.StringIO(content)

        df = pd.read_csv(file_like, dtype=str, keep_default_na=False, skip_blank_lines=True)

        if df.empty:
            errors.append(ValidationError(
                field='file',
                message='CSV file is empty or contains no data rows',
                row_number=None
            ))
            return ImportPreview(success=False, year=year, errors=errors)

        logger.info(f"Parsed referral CSV with {len(df)} rows and {len(df.columns)} columns")

    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        errors.append(ValidationError(
            field='file',
            message=f'Failed to parse CSV file: {str(e)}',
            row_number=None
        ))
        return ImportPreview(success=False, year=year, errors=errors)

    df = _normalize_dataframe(df)

    column_errors = validate_columns(df)
    errors.extend(column_errors)

    # If critical columns are missing, stop validation
    if column_errors:
        return ImportPreview(success=False, year=year, rows_processed=len(df), errors=errors)

    source_col = find_source_column(df)
    month_columns, _ = find_month_columns(df)

    errors.extend(validate_grain_uniqueness(df, source_col))
    errors.extend(validate_counts(df, month_columns))

    if errors:
        logger.warning(f"Referral CSV rejected with {len(errors)} validation errors")
        return ImportPreview(success=False, year=year, rows_processed=len(df), errors=errors)

    sources, referrals = to_monthly_referrals(df, source_col, month_columns, year)
    logger.info(f"Referral CSV produced {len(referrals)} monthly counts for {len(sources)} sources")

    return ImportPreview(
        success=True,
        year=year,
        sources=sources,
        referrals=referrals,
        rows_processed=len(df),
        errors=[],
    )


__all__ = [
    "SOURCE_COLUMNS",
    "MONTH_COLUMN_MAP",
    "MAX_CELL_COUNT",
    "TEMPLATE_CSV",
    "find_source_column",
    "find_month_columns",
    "validate_columns",
    "validate_grain_uniqueness",
    "validate_counts",
    "to_monthly_referrals",
    "ingest_referral_csv",
]
