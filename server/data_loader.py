"""
data_loader.py
================

This module loads the optional seed files for a party: the guest list and
the album catalogue for the popular song game.  Both are CSV files read
with pandas, cleaned, and returned as plain dictionaries ready to be passed
to the store's ``create`` methods.

Expected files in ``data_dir``:

- ``players.csv`` with a ``Name`` column and an optional ``Photo`` column.
- ``albums.csv`` with one row per song: ``Album``, ``Song``, ``Streams``
  and an optional ``CoverArt`` column.

Example
-------

```python
from data_loader import load_players, load_albums

for row in load_players("data"):
    store.players.create(**row)
```
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List

import pandas as pd

logger = logging.getLogger("uvicorn.error")

PLAYERS_FILE = "players.csv"
ALBUMS_FILE = "albums.csv"


def _read_csv(data_dir: str, filename: str, required: List[str]) -> pd.DataFrame:
    """Internal helper to read a seed file.

    Returns an empty DataFrame when the file is missing, unreadable or lacks
    one of the ``required`` columns.
    """
    path = os.path.join(data_dir, filename)
    if not os.path.isfile(path):
        return pd.DataFrame(columns=required)
    try:
        df = pd.read_csv(path)
    except (OSError, ValueError, pd.errors.ParserError) as exc:
        logger.warning("could not read %s: %s", path, exc)
        return pd.DataFrame(columns=required)
    missing = [c for c in required if c not in df.columns]
    if missing:
        logger.warning("%s is missing columns %s", path, missing)
        return pd.DataFrame(columns=required)
    return df


def _clean_text(series: pd.Series) -> pd.Series:
    """Strip whitespace and turn blanks/NaN into empty strings."""
    return series.fillna("").astype(str).str.strip()


def load_players(data_dir: str) -> List[Dict[str, object]]:
    """Load the guest list.

    - Strips whitespace from names and drops blank rows.
    - Drops repeated names, keeping the first occurrence.
    - Keeps the file order, which becomes the auction order.

    Returns
    -------
    List[dict]
        ``{"name": ..., "photo": ...}`` per player.
    """
    df = _read_csv(data_dir, PLAYERS_FILE, ["Name"])
    if df.empty:
        return []
    df = df.copy()
    df["Name"] = _clean_text(df["Name"])
    df = df[df["Name"] != ""].drop_duplicates(subset=["Name"], keep="first").copy()
    if "Photo" in df.columns:
        df["Photo"] = _clean_text(df["Photo"])
    else:
        df["Photo"] = ""

    return [
        {"name": row["Name"], "photo": row["Photo"] or None}
        for _, row in df.iterrows()
    ]


def load_albums(data_dir: str) -> List[Dict[str, object]]:
    """Load the album catalogue, one dictionary per album.

    - Rows with a blank album or song title are dropped.
    - ``Streams`` is coerced to an integer; unparsable values become 0.
    - Albums and their songs keep the order of the file, so equal stream
      counts rank in the order they were listed.

    Returns
    -------
    List[dict]
        ``{"name", "cover_art", "songs": [{"title", "streams"}, ...]}``.
    """
    df = _read_csv(data_dir, ALBUMS_FILE, ["Album", "Song", "Streams"])
    if df.empty:
        return []
    df = df.copy()
    df["Album"] = _clean_text(df["Album"])
    df["Song"] = _clean_text(df["Song"])
    df = df[(df["Album"] != "") & (df["Song"] != "")].copy()
    df["Streams"] = pd.to_numeric(df["Streams"], errors="coerce").fillna(0).astype(int)
    if "CoverArt" not in df.columns:
        df["CoverArt"] = ""
    df["CoverArt"] = _clean_text(df["CoverArt"])

    albums: List[Dict[str, object]] = []
    for name, group in df.groupby("Album", sort=False):
        covers = [c for c in group["CoverArt"] if c]
        albums.append({
            "name": name,
            "cover_art": covers[0] if covers else None,
            "songs": [
                {"title": title, "streams": int(streams)}
                for title, streams in zip(group["Song"], group["Streams"])
            ],
        })
    return albums


if __name__ == "__main__":
    # Simple CLI check: print what a data directory would seed
    import argparse

    parser = argparse.ArgumentParser(description="Preview party seed data.")
    parser.add_argument("data_dir", help="Directory containing players.csv and albums.csv")
    args = parser.parse_args()

    for player in load_players(args.data_dir):
        print(player["name"])
    for album in load_albums(args.data_dir):
        print(f"{album['name']}: {len(album['songs'])} songs")
