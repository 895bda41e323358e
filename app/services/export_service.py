"""
Rankings export — CSV and JSON snapshots of the ranked list with scores.
"""
import csv
import io
from typing import Any, Iterable

from app.db.models import MediaTypeEnum, release_year
from app.services.rank_store import media_type_value
from app.services.ranking_math import calculate_all_scores, tier_value

CSV_HEADER = ["Rank", "Title", "Media Type", "Tier", "Score", "Genres", "Year", "Date Added"]

_MEDIA_LABELS = {
    MediaTypeEnum.MOVIE.value: "Movie",
    MediaTypeEnum.SHOW.value: "TV",
}


def _year(item: Any) -> str:
    year = release_year(item.release_date)
    return "" if year is None else str(year)


def _sorted(items: list[Any]) -> list[Any]:
    return sorted(items, key=lambda i: (media_type_value(i.media_type), i.rank))


def export_rankings_csv(items: Iterable[Any]) -> str:
    items = list(items)
    scores = calculate_all_scores(items)

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for item in _sorted(items):
        writer.writerow([
            item.rank,
            item.title,
            _MEDIA_LABELS.get(media_type_value(item.media_type), media_type_value(item.media_type)),
            tier_value(item.tier),
            f"{scores[item.id]:.1f}",
            "; ".join(item.genre_names or []),
            _year(item),
            item.date_added.strftime("%Y-%m-%d"),
        ])
    return buffer.getvalue()


def export_rankings_json(items: Iterable[Any]) -> list[dict]:
    items = list(items)
    scores = calculate_all_scores(items)

    rows = []
    for item in _sorted(items):
        row = {
            "rank": item.rank,
            "title": item.title,
            "catalog_id": item.catalog_id,
            "media_type": media_type_value(item.media_type),
            "tier": tier_value(item.tier),
            "score": scores[item.id],
            "date_added": item.date_added.strftime("%Y-%m-%d"),
            "genre_names": list(item.genre_names or []),
        }
        if _year(item):
            row["year"] = _year(item)
        if item.review:
            row["review"] = item.review
        if item.poster_path:
            row["poster_path"] = item.poster_path
        if item.overview:
            row["overview"] = item.overview
        if item.runtime_minutes:
            row["runtime_minutes"] = item.runtime_minutes
        rows.append(row)
    return rows
