"""
Landmark CSV Import/Export

Reads and writes landmark positions as CSV rows of the form `name?, x, y, z`.
A header row is optional when reading; rows that do not contain three numeric
columns (including blank rows) are skipped and trailing columns are ignored.
"""

import csv
import io
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, TextIO, Union

from ..tps.types import LandmarkPair, Vec3

PathOrFile = Union[str, Path, TextIO]


@dataclass(frozen=True)
class Landmark:
    """A named (or unnamed) landmark position read from CSV"""
    name: Optional[str]
    position: Vec3


@contextmanager
def _open(target: PathOrFile, mode: str):
    if isinstance(target, (str, Path)):
        with open(target, mode, newline='', encoding='utf-8') as f:
            yield f
    else:
        yield target


def _try_parse_xyz(cols: Sequence[str]) -> Optional[Vec3]:
    if len(cols) < 3:
        return None
    try:
        return (float(cols[0]), float(cols[1]), float(cols[2]))
    except ValueError:
        return None


def parse_landmark_row(cols: Sequence[str]) -> Optional[Landmark]:
    """
    Parse one CSV row into a landmark.

    Args:
        cols: CSV columns

    Returns:
        Landmark, or None if the row does not hold three numeric columns
    """
    cols = [c.strip() for c in cols]
    if not any(cols):
        return None

    # unnamed: x, y, z[, ...]
    xyz = _try_parse_xyz(cols)
    if xyz is not None:
        return Landmark(None, xyz)

    # named: name, x, y, z[, ...]
    if len(cols) >= 4:
        xyz = _try_parse_xyz(cols[1:])
        if xyz is not None:
            return Landmark(cols[0] or None, xyz)

    return None


def read_landmarks_csv(source: PathOrFile) -> List[Landmark]:
    """
    Read landmarks from a CSV file.

    Args:
        source: Path to the CSV file or an open text stream

    Returns:
        Landmarks in file order
    """
    landmarks = []
    with _open(source, 'r') as f:
        for row in csv.reader(f):
            landmark = parse_landmark_row(row)
            if landmark is not None:
                landmarks.append(landmark)
    return landmarks


def _format(value: float) -> str:
    return repr(float(value))


def write_landmarks_csv(dest: PathOrFile,
                        landmarks: Iterable[Landmark],
                        header: bool = True,
                        names: bool = True) -> None:
    """
    Write landmarks to CSV.

    Args:
        dest: Path or open text stream
        landmarks: Landmarks to write
        header: Write a `name,x,y,z` (or `x,y,z`) header row
        names: Include the name column; unnamed landmarks get `landmark_<i>`
    """
    with _open(dest, 'w') as f:
        writer = csv.writer(f, lineterminator='\n')
        if header:
            writer.writerow(['name', 'x', 'y', 'z'] if names else ['x', 'y', 'z'])
        for i, lm in enumerate(landmarks):
            xyz = [_format(v) for v in lm.position]
            if names:
                writer.writerow([lm.name or f"landmark_{i}"] + xyz)
            else:
                writer.writerow(xyz)


def write_paired_landmarks_csv(dest: PathOrFile, pairs: Iterable[LandmarkPair], header: bool = True) -> None:
    """Write source/destination landmark pairs as six-column CSV rows."""
    with _open(dest, 'w') as f:
        writer = csv.writer(f, lineterminator='\n')
        if header:
            writer.writerow(['source.x', 'source.y', 'source.z', 'dest.x', 'dest.y', 'dest.z'])
        for pair in pairs:
            writer.writerow([_format(v) for v in pair.src] + [_format(v) for v in pair.dst])


def landmarks_to_csv_string(landmarks: Iterable[Landmark], header: bool = True, names: bool = True) -> str:
    buf = io.StringIO()
    write_landmarks_csv(buf, landmarks, header=header, names=names)
    return buf.getvalue()
