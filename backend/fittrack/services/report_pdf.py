"""
Weekly fitness report as a PDF (reportlab platypus).

Layout: title and date range, weekly statistics, one block per workout
(per-set lines when sets were recorded, otherwise a summary line), then a
progress photo section with the images embedded.
"""
from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from datetime import date
from xml.sax.saxutils import escape

import httpx
from PIL import Image, UnidentifiedImageError
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Image as PdfImage
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer
from starlette.concurrency import run_in_threadpool

from fittrack.models.progress_photo import ProgressPhoto
from fittrack.models.workout_session import WorkoutSession
from fittrack.services.http_client import get_http_client
from fittrack.services.weekly_report import compute_week_stats, week_bounds

logger = logging.getLogger(__name__)

PHOTO_MAX_WIDTH = 150 * mm
PHOTO_MAX_HEIGHT = 100 * mm
IMAGE_FALLBACK_TEXT = "Image could not be loaded"


def report_filename(week_start: date) -> str:
    return f"fitness-report-{week_start.isoformat()}.pdf"


def _fmt_number(value: float | int) -> str:
    return f"{value:g}" if isinstance(value, float) else str(value)


def exercise_summary(exercise) -> str:
    parts = []
    if exercise.sets:
        parts.append(f"{exercise.sets} sets")
    if exercise.reps:
        parts.append(f"{exercise.reps} reps")
    if exercise.weight_kg:
        parts.append(f"{_fmt_number(exercise.weight_kg)}kg")
    if exercise.distance_km:
        parts.append(f"{_fmt_number(exercise.distance_km)}km")
    if exercise.time_minutes:
        parts.append(f"{_fmt_number(exercise.time_minutes)} min")
    if exercise.laps:
        parts.append(f"{exercise.laps} laps")
    return " • ".join(parts)


def set_line(s) -> str:
    line = f"Set {s.set_number}: {s.reps} reps"
    if s.weight_kg:
        line += f" @ {_fmt_number(s.weight_kg)}kg"
    return line


async def fetch_image(url: str) -> bytes | None:
    """Image bytes from `url`, or None when it cannot be downloaded."""
    try:
        resp = await get_http_client().get(url)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("report_pdf: could not fetch photo %s: %s", url, e)
        return None
    return resp.content


def _photo_flowable(data: bytes | None):
    if not data:
        return None
    try:
        with Image.open(io.BytesIO(data)) as img:
            w, h = img.size
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("report_pdf: photo is not a readable image: %s", e)
        return None
    scale = min(PHOTO_MAX_WIDTH / w, PHOTO_MAX_HEIGHT / h)
    return PdfImage(io.BytesIO(data), width=w * scale, height=h * scale)


def _build_pdf(
    week_start: date,
    sessions: Sequence[WorkoutSession],
    photos: Sequence[ProgressPhoto],
    photo_bytes: list[bytes | None],
) -> bytes:
    styles = getSampleStyleSheet()
    normal, small = styles["Normal"], styles["BodyText"]
    start, end = week_bounds(week_start)
    stats = compute_week_stats(sessions)

    story = [
        Paragraph("Weekly Fitness Report", styles["Title"]),
        Paragraph(f"{start.strftime('%b %d, %Y')} - {end.strftime('%b %d, %Y')}", styles["Heading3"]),
        Spacer(1, 8 * mm),
        Paragraph("Weekly Statistics", styles["Heading2"]),
        Paragraph(f"Total Workouts: {stats['total_workouts']}", normal),
        Paragraph(f"Total Exercises: {stats['total_exercises']}", normal),
        Paragraph(f"Total Sets: {stats['total_sets']}", normal),
        Paragraph(f"Categories: {escape(', '.join(stats['categories_worked']))}", normal),
        Spacer(1, 6 * mm),
    ]

    if sessions:
        story.append(Paragraph("Workout Details", styles["Heading2"]))
        for ws in sessions:
            story.append(Paragraph(f"{ws.date.strftime('%A, %B %d, %Y')} - {ws.category.upper()}", styles["Heading3"]))
            if ws.duration_minutes:
                story.append(Paragraph(f"Duration: {ws.duration_minutes} minutes", normal))
            if ws.notes:
                story.append(Paragraph(f"Notes: {escape(ws.notes)}", normal))
            story.append(Paragraph("Exercises:", normal))
            for ex in ws.exercises:
                story.append(Paragraph(f"• {escape(ex.exercise_name)} ({ex.exercise_type})", normal))
                if ex.exercise_sets:
                    for s in sorted(ex.exercise_sets, key=lambda x: x.set_number):
                        story.append(Paragraph(f"&nbsp;&nbsp;&nbsp;&nbsp;{set_line(s)}", small))
                else:
                    summary = exercise_summary(ex)
                    if summary:
                        story.append(Paragraph(f"&nbsp;&nbsp;&nbsp;&nbsp;{summary}", small))
                if ex.notes:
                    story.append(Paragraph(f"&nbsp;&nbsp;&nbsp;&nbsp;Notes: {escape(ex.notes)}", small))
            story.append(Spacer(1, 4 * mm))

    if photos:
        story.append(PageBreak())
        story.append(Paragraph("Progress Photos", styles["Heading2"]))
        for i, (photo, data) in enumerate(zip(photos, photo_bytes), start=1):
            story.append(Paragraph(f"Photo {i}", styles["Heading3"]))
            if photo.created_at:
                story.append(Paragraph(f"Uploaded: {photo.created_at.strftime('%b %d, %Y')}", normal))
            if photo.notes:
                story.append(Paragraph(f"Notes: {escape(photo.notes)}", normal))
            flowable = _photo_flowable(data)
            story.append(flowable if flowable is not None else Paragraph(IMAGE_FALLBACK_TEXT, small))
            story.append(Spacer(1, 6 * mm))

    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, title="Weekly Fitness Report")
    doc.build(story)
    return buf.getvalue()


async def render_weekly_pdf(
    week_start: date,
    sessions: Sequence[WorkoutSession],
    photos: Sequence[ProgressPhoto],
) -> bytes:
    photo_bytes = [await fetch_image(p.photo_url) for p in photos]
    pdf = await run_in_threadpool(_build_pdf, week_start, sessions, photos, photo_bytes)
    logger.info(
        "report_pdf: week=%s workouts=%d photos=%d size=%d", week_start, len(sessions), len(photos), len(pdf)
    )
    return pdf
