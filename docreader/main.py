#!/usr/bin/env python3
"""
Smart Document Reader - Main CLI

Reads documents aloud sentence by sentence with synchronized highlighting,
and reports accessibility barriers for readers with vision or hearing
impairments.

Features:
- Plain text, Markdown and PDF input
- Structure-aware sentence segmentation
- Accessibility barrier scoring with a recommended reading mode
- Read-aloud through system voices with live highlighting
- Persisted accessibility mode and reading speed
"""

import asyncio
import importlib.util
import json
import math
import sys
from pathlib import Path
from typing import Optional

import click

from docreader.display import ConsoleRenderer, print_report, print_sentences
from docreader.extract_text import InputError, is_pdf, read_document
from docreader.readalong.barrier_analyzer import BarrierAnalyzer
from docreader.readalong.events import EventChannel, PlaybackStatus, PlaybackStatusChanged
from docreader.readalong.reader import (
    ACCESSIBILITY_DESCRIPTION,
    NORMAL_DESCRIPTION,
    DocumentReader,
)
from docreader.readalong.sentence_splitter import SentenceSplitter
from docreader.readalong.speech_engine import Pyttsx3SpeechEngine, SpeechEngineError
from docreader.readalong.voice_selector import rank_voices
from docreader.structure import StructureFormatter
from docreader.utils import logger
from docreader.utils.config import config
from docreader.utils.settings import JsonSettingsRepository


@click.group()
@click.version_option(version="1.0.0")
@click.option("--verbose", is_flag=True, help="Show debug output")
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False),
    default=None,
    help=f"Settings file (default: {config.get_path('settings')})",
)
@click.pass_context
def cli(ctx, verbose: bool, settings_path: Optional[str]):
    """
    Smart Document Reader

    Analyze documents for accessibility barriers and read them aloud
    with sentence highlighting.
    """
    if verbose:
        logger.set_verbose(True)
    ctx.obj = {
        "settings": JsonSettingsRepository(Path(settings_path) if settings_path else None),
    }


def _segment_file(input_path: Path):
    """Read, structure and split a file. Exits on unreadable input."""
    try:
        text = read_document(input_path)
    except InputError as e:
        logger.error(str(e))
        sys.exit(1)

    units = StructureFormatter().parse(text, markup=not is_pdf(input_path))
    return text, SentenceSplitter().split(units)


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
def analyze(input_file: str, as_json: bool):
    """
    Report accessibility barriers in a document.
    """
    input_path = Path(input_file)
    text, sentences = _segment_file(input_path)
    report = BarrierAnalyzer().analyze(text, sentences)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
        return

    logger.header(f"Accessibility Analysis: {input_path.name}")
    logger.info(f"{len(sentences)} sentences")
    print_report(report)


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print sentences as JSON")
def sentences(input_file: str, as_json: bool):
    """
    List the sentences of a document in reading order.
    """
    input_path = Path(input_file)
    _, found = _segment_file(input_path)

    if as_json:
        data = [
            {"index": s.index, "text": s.text, "context": s.context.value}
            for s in found
        ]
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    logger.header(f"Sentences: {input_path.name}")
    print_sentences(found)
    logger.info(f"Total: {len(found)} sentences")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-s", "--speed", type=click.FloatRange(min=0, min_open=True), default=None, help="Reading speed for this session")
@click.option("--start", "start_at", type=int, default=1, help="Sentence number to start from")
@click.pass_obj
def read(obj, input_file: str, speed: Optional[float], start_at: int):
    """
    Read a document aloud with sentence highlighting.

    Press Ctrl+C to stop.
    """
    if speed is not None and not math.isfinite(speed):
        logger.error("Speed must be a finite number greater than 0")
        sys.exit(1)

    input_path = Path(input_file)
    engine = Pyttsx3SpeechEngine()

    logger.header(f"Reading: {input_path.name}")

    try:
        asyncio.run(_read_aloud(input_path, engine, obj["settings"], speed, start_at))
    except InputError:
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Reading stopped")
    finally:
        engine.close()


async def _read_aloud(input_path, engine, repository, speed, start_at) -> None:
    events = EventChannel()
    reader = DocumentReader(engine, repository, events=events, announcer=logger.announce)
    document = reader.load_file(input_path)

    if speed is not None:
        reader.controller.set_rate(speed)

    for _ in range(max(0, start_at - 1)):
        if not reader.next_sentence():
            break

    print_report(reader.report)

    renderer = ConsoleRenderer(accessibility_mode=reader.settings.accessibility_mode)
    renderer.sentences = document.sentences
    events.subscribe(renderer)

    done = asyncio.Event()

    def on_status(event) -> None:
        if isinstance(event, PlaybackStatusChanged) and event.status in (
            PlaybackStatus.FINISHED,
            PlaybackStatus.PAUSED,
        ):
            done.set()

    events.subscribe(on_status)

    if not reader.start():
        return

    try:
        await done.wait()
    finally:
        reader.pause()


@cli.command()
def voices():
    """
    List available system voices, best first.
    """
    logger.header("Available Voices")

    engine = Pyttsx3SpeechEngine()
    try:
        ranked = rank_voices(engine.list_voices())
    except SpeechEngineError as e:
        logger.error(str(e))
        sys.exit(1)
    finally:
        engine.close()

    if not ranked:
        logger.warning("No voices available; the engine default voice will be used")
        return

    for position, voice in enumerate(ranked):
        marker = "*" if position == 0 else " "
        logger.console.print(f"  {marker} {voice.name:<40} {voice.lang or '-'}", highlight=False)

    logger.console.print("\n* Selected for reading")


@cli.command()
@click.pass_obj
def mode(obj):
    """
    Toggle accessibility mode.
    """
    repository = obj["settings"]
    settings = repository.load()
    settings.accessibility_mode = not settings.accessibility_mode
    repository.save(settings)

    if settings.accessibility_mode:
        logger.success("Accessibility mode activated")
        logger.info(ACCESSIBILITY_DESCRIPTION)
    else:
        logger.success("Normal mode activated")
        logger.info(NORMAL_DESCRIPTION)


@cli.command()
@click.argument("value", type=float)
@click.pass_obj
def speed(obj, value: float):
    """
    Set the default reading speed (1.0 = normal).
    """
    if not (math.isfinite(value) and value > 0):
        logger.error("Speed must be a finite number greater than 0")
        sys.exit(1)

    repository = obj["settings"]
    settings = repository.load()
    settings.speed = value
    repository.save(settings)

    logger.success(f"Reading speed set to {value}")


@cli.command()
@click.pass_obj
def info(obj):
    """
    Show configuration, settings and dependency status.
    """
    logger.header("Smart Document Reader")

    repository = obj["settings"]
    settings = repository.load()

    logger.console.print("[bold]Paths:[/bold]")
    logger.console.print(f"  Project root:  {config.project_root}")
    logger.console.print(f"  Settings file: {repository.path}")

    logger.console.print("\n[bold]Settings:[/bold]")
    logger.console.print(f"  Accessibility mode: {settings.accessibility_mode}")
    logger.console.print(f"  Speed:              {settings.speed}")

    logger.console.print("\n[bold]Speech:[/bold]")
    logger.console.print(f"  Pitch:         {config.speech_pitch}")
    logger.console.print(f"  Volume:        {config.speech_volume}")
    logger.console.print(f"  Settle delay:  {config.settle_delay}s")
    logger.console.print(f"  Base rate:     {config.base_wpm} wpm")

    logger.console.print("\n[bold]Dependencies:[/bold]")
    for module, label in (("pyttsx3", "pyttsx3"), ("fitz", "pymupdf")):
        found = importlib.util.find_spec(module) is not None
        status = "[green]OK[/green]" if found else "[red]NOT FOUND[/red]"
        logger.console.print(f"  {label:<12} {status}")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
