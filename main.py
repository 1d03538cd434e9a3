"""Kite-Tagesplanung — Haupt-CLI.

Verwendung:
  python main.py config init              Standard-Konfiguration anlegen
  python main.py config show              Konfiguration anzeigen
  python main.py generate                 Fake-Stunden erzeugen (JSON)
  python main.py show <stunden.json>      Tagespläne mit Lücken anzeigen
  python main.py compact <stunden.json>   Update-Set einer Verdichtung
  python main.py shift <stunden.json>     Update-Set einer Verschiebung
  python main.py queue <stunden.json>     Offene Stunden über die Warteschlange einplanen
"""

import logging
import sys
from datetime import date as _date
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()

# Standard-Pfad für erzeugte Stunden
DEFAULT_LESSONS_JSON = Path("output/lessons.json")


def _load_config_or_abort():
    """Lädt die Konfiguration (oder Standardwerte) oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    try:
        return mgr, mgr.load_or_default()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def _load_lessons_or_abort(lessons_path: Path):
    from data.lesson_import import LessonImportError, load_lessons_json
    try:
        return load_lessons_json(lessons_path)
    except LessonImportError as e:
        console.print(f"[red bold]Import fehlgeschlagen:[/red bold]\n{e}")
        sys.exit(1)


def _load_schedules_or_abort(lessons_path: Path, day: str, config):
    """Liest die Stunden und baut die Tagespläne, bricht bei Fehlern ab."""
    from data.lesson_import import create_event_id_map, create_schedules_from_lessons

    lessons = _load_lessons_or_abort(lessons_path)
    schedules = create_schedules_from_lessons(day, lessons, config)
    return schedules, create_event_id_map(lessons, day)


def _pick_schedule_or_abort(schedules: dict, teacher_id: str):
    schedule = schedules.get(teacher_id)
    if schedule is None:
        known = ", ".join(sorted(schedules)) or "—"
        console.print(f"[red]Lehrer '{teacher_id}' hat an diesem Tag keine Termine.[/red] "
                      f"Bekannt: {known}")
        sys.exit(1)
    return schedule


def _print_updates(updates, title: str) -> None:
    if not updates:
        console.print("[dim]Keine Termine im Speicher betroffen.[/dim]")
        return
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Termin", style="bold")
    table.add_column("Neuer Zeitpunkt (UTC)")
    for u in updates:
        table.add_row(u.event_id, u.new_date_time)
    console.print(table)


_date_option = click.option(
    "--date", "day", default=None,
    help="Tag im Format YYYY-MM-DD (Standard: heute).",
)


def _resolve_day(day: Optional[str]) -> str:
    return day or _date.today().isoformat()


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen oder anlegen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    mgr, config = _load_config_or_abort()

    source = "Standardwerte" if mgr.first_run_check() else str(mgr.path)
    console.print(Panel(
        f"[bold]{config.school_name}[/bold]  |  {config.default_location}",
        title=f"Engine-Konfiguration ({source})",
        border_style="cyan",
    ))

    table = Table(title="Zeiten", box=box.ROUNDED)
    table.add_column("Einstellung")
    table.add_column("Wert")
    table.add_row("Arbeitstag", f"{config.working_day_start}–{config.working_day_end}")
    table.add_row("Start Warteschlange", config.default_start_time)
    table.add_row("Erster freier Slot", config.default_slot_start)
    table.add_row("Zeitfenster Warteschlange",
                  f"{config.queue_earliest_time}–{config.queue_latest_time}")
    table.add_row("Schrittweite", f"{config.adjustment_step_minutes} min")
    table.add_row("Mindestdauer", f"{config.min_lesson_duration} min")
    table.add_row("Lücken ab", f"{config.min_gap_minutes} min")
    console.print(table)

    caps = config.duration_caps
    console.print(
        f"\n[bold]Standarddauern:[/bold] 1 Schüler {caps.cap_one} min | "
        f"2-3 Schüler {caps.cap_two} min | 4+ Schüler {caps.cap_three} min"
    )


@cmd_config.command("init")
@click.option("--force", is_flag=True, default=False,
              help="Vorhandene Konfiguration überschreiben.")
def config_init(force: bool):
    """Legt die Standard-Konfiguration als YAML an."""
    from config.manager import ConfigManager
    from config.defaults import default_engine_config

    mgr = ConfigManager()
    if not mgr.first_run_check() and not force:
        console.print(
            f"[yellow]Eine Konfiguration existiert bereits: {mgr.path}[/yellow]\n"
            "Verwenden Sie [bold]--force[/bold] zum Überschreiben."
        )
        return
    path = mgr.save(default_engine_config())
    console.print(f"[green]✓[/green] Konfiguration gespeichert: {path}")


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@_date_option
@click.option("--teachers", default=3, help="Anzahl Lehrer.")
@click.option("--lessons", "lessons_per_teacher", default=4, help="Stunden pro Lehrer.")
@click.option("--output", "-o", default=str(DEFAULT_LESSONS_JSON),
              help="Pfad für die JSON-Datei.")
def cmd_generate(seed: int, day: Optional[str], teachers: int,
                 lessons_per_teacher: int, output: str):
    """Erzeugt Test-Stunden mit Terminen und speichert sie als JSON."""
    mgr, config = _load_config_or_abort()
    from data.fake_data import FakeLessonGenerator
    from data.lesson_import import ImportReport, create_schedules_from_lessons, save_lessons_json

    day = _resolve_day(day)
    console.print("[bold]Test-Stunden werden generiert...[/bold]")
    gen = FakeLessonGenerator(config, seed=seed)
    lessons = gen.generate(day, num_teachers=teachers, lessons_per_teacher=lessons_per_teacher)

    report = ImportReport()
    create_schedules_from_lessons(day, lessons, config, report)
    report.print_rich()

    out_path = Path(output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    save_lessons_json(lessons, out_path)
    console.print(f"[green]✓[/green] {len(lessons)} Stunden gespeichert: {out_path}")


# ─── SHOW ─────────────────────────────────────────────────────────────────────

@click.command("show")
@click.argument("lessons_file", type=click.Path(exists=True, path_type=Path))
@_date_option
@click.option("--teacher", "teacher_id", default=None, help="Nur diesen Lehrer anzeigen.")
def cmd_show(lessons_file: Path, day: Optional[str], teacher_id: Optional[str]):
    """Zeigt die Tagespläne (Termine und Lücken) je Lehrer."""
    from engine.gaps import calculate_total_gap_time
    from models.time_of_day import format_duration
    from view.tui_renderer import render_day_rows

    mgr, config = _load_config_or_abort()
    day = _resolve_day(day)
    schedules, _ = _load_schedules_or_abort(lessons_file, day, config)
    if teacher_id:
        schedules = {teacher_id: _pick_schedule_or_abort(schedules, teacher_id)}
    if not schedules:
        console.print(f"[dim]Keine Termine am {day}.[/dim]")
        return

    for tid in sorted(schedules):
        schedule = schedules[tid]
        table = Table(title=f"{schedule.teacher_name} ({tid}) — {day}", box=box.ROUNDED)
        for col in ("Zeit", "Dauer", "Stunde", "Ort", "Schüler"):
            table.add_column(col)
        for row in render_day_rows(schedule):
            style = "dim" if row[2].startswith("↕") else None
            table.add_row(*row, style=style)
        console.print(table)

        nodes = schedule.get_stored_nodes()
        console.print(
            f"[bold]Unterricht:[/bold] {format_duration(schedule.total_minutes)} | "
            f"[bold]Lücken:[/bold] {format_duration(calculate_total_gap_time(nodes))}\n"
        )


# ─── COMPACT / SHIFT ──────────────────────────────────────────────────────────

@click.command("compact")
@click.argument("lessons_file", type=click.Path(exists=True, path_type=Path))
@_date_option
@click.option("--teacher", "teacher_id", required=True, help="Lehrer-ID.")
def cmd_compact(lessons_file: Path, day: Optional[str], teacher_id: str):
    """Zeigt die Updates, die eine Verdichtung des Tages auslösen würde."""
    from engine.reorganization import ScheduleReorganizer

    mgr, config = _load_config_or_abort()
    day = _resolve_day(day)
    schedules, id_map = _load_schedules_or_abort(lessons_file, day, config)
    schedule = _pick_schedule_or_abort(schedules, teacher_id)

    reorganizer = ScheduleReorganizer(schedule)
    if not reorganizer.perform_compact_reorganization():
        console.print("[yellow]Nichts zu verdichten (weniger als zwei Termine).[/yellow]")
        return
    updates = reorganizer.get_database_updates_for_compact_reorganization(day, id_map)
    _print_updates(updates, f"Verdichtung {teacher_id} — {day}")


@click.command("shift")
@click.argument("lessons_file", type=click.Path(exists=True, path_type=Path))
@_date_option
@click.option("--teacher", "teacher_id", required=True, help="Lehrer-ID.")
@click.option("--offset", type=int, required=True, help="Verschiebung in Minuten (±).")
def cmd_shift(lessons_file: Path, day: Optional[str], teacher_id: str, offset: int):
    """Verschiebt den ersten Termin, alle weiteren folgen lückenlos."""
    from engine.reorganization import ScheduleReorganizer

    mgr, config = _load_config_or_abort()
    day = _resolve_day(day)
    schedules, id_map = _load_schedules_or_abort(lessons_file, day, config)
    schedule = _pick_schedule_or_abort(schedules, teacher_id)

    reorganizer = ScheduleReorganizer(schedule)
    if not reorganizer.shift_first_event_and_reorganize(offset):
        console.print(f"[red]Verschiebung um {offset} min nicht möglich.[/red]")
        sys.exit(1)
    updates = reorganizer.get_database_updates_for_shifted_schedule(day, id_map)
    _print_updates(updates, f"Verschiebung {teacher_id} um {offset:+d} min — {day}")


# ─── QUEUE ────────────────────────────────────────────────────────────────────

@click.command("queue")
@click.argument("lessons_file", type=click.Path(exists=True, path_type=Path))
@_date_option
@click.option("--teacher", "teacher_id", required=True, help="Lehrer-ID.")
@click.option("--start", "start_time", default=None,
              help="Startzeit der Warteschlange (HH:MM).")
@click.option("--location", default=None,
              help="Spot für die neuen Termine (Standard: aus der Konfiguration).")
@click.option("--commit", is_flag=True, default=False,
              help="Termine in einem In-Memory-Speicher anlegen (Probelauf).")
def cmd_queue(lessons_file: Path, day: Optional[str], teacher_id: str,
              start_time: Optional[str], location: Optional[str], commit: bool):
    """Plant Stunden ohne Termin an diesem Tag über die Warteschlange ein."""
    from data.lesson_import import create_schedules_from_lessons
    from models.time_of_day import is_same_utc_date
    from view.tui_renderer import render_queue_rows

    mgr, config = _load_config_or_abort()
    day = _resolve_day(day)
    lessons = _load_lessons_or_abort(lessons_file)
    schedule = _pick_schedule_or_abort(
        create_schedules_from_lessons(day, lessons, config), teacher_id
    )
    queue = schedule.queue
    if start_time:
        try:
            queue.set_queue_start_time(start_time)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)

    for lesson in lessons:
        if lesson.teacher is None or lesson.teacher.id != teacher_id:
            continue
        if any(is_same_utc_date(e.date, day) for e in lesson.events):
            continue
        duration = queue.default_duration_for(len(lesson.student_names))
        queue.add_lesson_to_queue(lesson.id, duration, lesson.student_names, duration)

    if not len(queue):
        console.print(f"[dim]Keine offenen Stunden für {teacher_id} am {day}.[/dim]")
        return

    table = Table(title=f"Warteschlange {schedule.teacher_name} ({teacher_id}) — {day}",
                  box=box.ROUNDED)
    for col in ("Zeit", "Dauer", "Stunde", "Anpassung", "Schüler"):
        table.add_column(col)
    for row in render_queue_rows(schedule):
        table.add_row(*row)
    console.print(table)

    if not commit:
        return
    from sync.driver import ScheduleSyncDriver
    from sync.store import InMemoryEventStore

    report = ScheduleSyncDriver(InMemoryEventStore()).commit_queue(
        schedule, location or config.default_location, day
    )
    for failure in report.failures:
        console.print(f"[red]✗ {failure}[/red]")
    if not report.ok:
        sys.exit(1)
    console.print(f"[green]✓[/green] {len(report.created)} Termine angelegt")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Protokoll ausgeben.")
def cli(verbose: bool):
    """Tagesplanung für Kite-Lehrer (Termine, Lücken, Warteschlange).

    Starten Sie mit: python main.py generate
    """
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


def main():
    """Einstiegspunkt."""
    cli()


# Befehle registrieren
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_show)
cli.add_command(cmd_compact)
cli.add_command(cmd_shift)
cli.add_command(cmd_queue)


if __name__ == "__main__":
    main()
