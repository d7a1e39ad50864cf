"""Load drillhole segment records and group them by hole.

Records arrive as JSON (a list of objects, or an object with a
``segments`` list) or CSV.  Column names are matched case-insensitively
against the usual logging-software variants (HoleID / BHID, From / To,
Easting / Northing / RL ...), then coerced into DrillholeSegment rows.
"""

import asyncio
import io
import json
import logging

import pandas as pd

from .constants import RESOURCE_KEYS
from .models import Dataset, DrillholeData, DrillholeSegment
from .resources import ResourceStore, ResourceError

logger = logging.getLogger(__name__)


class DrillholeLoadError(ValueError):
    """A record collection could not be fetched or has the wrong shape."""


# Standard column → accepted source spellings (already lower-cased)
COLUMN_VARIANTS = {
    'hole_id':    ['holeid', 'hole_id', 'hole', 'bhid', 'drillhole'],
    'x':          ['x', 'easting', 'east'],
    'y':          ['y', 'northing', 'north'],
    'z':          ['z', 'elevation', 'rl', 'collar_rl'],
    'depth_from': ['depthfrom', 'depth_from', 'from', 'from_m'],
    'depth_to':   ['depthto', 'depth_to', 'to', 'to_m'],
    'lithology':  ['lithology', 'lith', 'rock_type', 'rocktype'],
    'grade':      ['grade', 'value', 'cu', 'cu_pct'],
}

REQUIRED_COLUMNS = ('hole_id', 'x', 'y', 'z', 'depth_from', 'depth_to')
_NUMERIC_COLUMNS = ('x', 'y', 'z', 'depth_from', 'depth_to')


def _read_frame(payload: bytes, key: str) -> pd.DataFrame:
    if key.lower().endswith('.csv'):
        try:
            # Hole ids stay text; numeric columns are coerced below
            return pd.read_csv(io.BytesIO(payload), dtype=str)
        except (ValueError, pd.errors.ParserError) as e:
            raise DrillholeLoadError(f"{key}: unreadable CSV ({e})") from e

    try:
        data = json.loads(payload)
    except ValueError as e:
        raise DrillholeLoadError(f"{key}: invalid JSON ({e})") from e

    if isinstance(data, dict):
        data = data.get('segments', data.get('records'))
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise DrillholeLoadError(f"{key}: expected a list of segment records")
    return pd.DataFrame.from_records(data)


def _standardize_columns(df: pd.DataFrame, key: str) -> pd.DataFrame:
    df.columns = [str(col).lower().strip() for col in df.columns]

    renames = {}
    for standard, variants in COLUMN_VARIANTS.items():
        for variant in variants:
            if variant in df.columns:
                renames[variant] = standard
                break
    df = df.rename(columns=renames)

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise DrillholeLoadError(f"{key}: missing columns {', '.join(missing)}")
    return df


def _optional_text(value):
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _optional_float(value):
    if value is None or pd.isna(value):
        return None
    return float(value)


def parse_segments(payload: bytes, key: str) -> list:
    """Parse one record collection into DrillholeSegments (input order)."""
    df = _read_frame(payload, key)
    if df.empty:
        logger.info(f"{key}: no segment records")
        return []

    df = _standardize_columns(df, key)

    if df['hole_id'].isna().any():
        raise DrillholeLoadError(f"{key}: records without a hole id")
    for col in _NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors='coerce')
        if df[col].isna().any():
            raise DrillholeLoadError(f"{key}: non-numeric or missing '{col}' values")

    if 'grade' in df.columns:
        df['grade'] = pd.to_numeric(df['grade'], errors='coerce')
    has_lithology = 'lithology' in df.columns
    has_grade = 'grade' in df.columns

    segments = []
    for row in df.to_dict('records'):
        segments.append(DrillholeSegment(
            hole_id=str(row['hole_id']).strip(),
            x=float(row['x']),
            y=float(row['y']),
            z=float(row['z']),
            depth_from=float(row['depth_from']),
            depth_to=float(row['depth_to']),
            lithology=_optional_text(row['lithology']) if has_lithology else None,
            grade=_optional_float(row['grade']) if has_grade else None,
        ))

    skipped = sum(1 for s in segments if not s.is_renderable)
    logger.info(f"{key}: {len(segments)} segments"
                + (f" ({skipped} with non-positive span)" if skipped else ""))
    return segments


def group_by_hole(segments) -> dict:
    """Group renderable segments by hole id.

    Hole ids keep first-seen order; each group is stable-sorted by
    ``depth_from``.  Segments with ``depth_to <= depth_from`` are left
    out of the groups.
    """
    groups: dict[str, list] = {}
    for segment in segments:
        if not segment.is_renderable:
            continue
        groups.setdefault(segment.hole_id, []).append(segment)
    for hole_id in groups:
        groups[hole_id].sort(key=lambda s: s.depth_from)
    return groups


class DrillholeIndex:
    """Fetches both drillhole record collections.

    Both collections are loaded concurrently and both must succeed;
    a failure in either fails the whole load.
    """

    def __init__(self, store: ResourceStore, keys: dict = None):
        self.store = store
        self.keys = dict(RESOURCE_KEYS, **(keys or {}))
        self.data = None

    async def _load_dataset(self, dataset: Dataset) -> list:
        key = self.keys[dataset.value]
        try:
            payload = await asyncio.to_thread(self.store.fetch, key)
        except ResourceError as e:
            raise DrillholeLoadError(f"{dataset.value} records unavailable: {e}") from e
        return await asyncio.to_thread(parse_segments, payload, key)

    async def load(self) -> DrillholeData:
        lithology, assay = await asyncio.gather(
            self._load_dataset(Dataset.lithology),
            self._load_dataset(Dataset.assay),
        )
        self.data = DrillholeData(lithology=lithology, assay=assay)
        logger.info(f"Drillhole data loaded: {len(lithology)} lithology, "
                    f"{len(assay)} assay segments")
        return self.data

    def groups(self, dataset: Dataset) -> dict:
        if self.data is None:
            return {}
        return group_by_hole(self.data.segments(dataset))
