"""CLI entry point for PixelLearn."""

from __future__ import annotations

import asyncio
import logging
import random
import sys
import time
from pathlib import Path
from typing import Optional

import click

from pixellearn.config.settings import Settings
from pixellearn.engine.adaptive import AdaptiveLevelPolicy
from pixellearn.engine.questions import QuestionRecord, Subject
from pixellearn.state.profiles import ProfileStore


def _build_selector(settings: Settings):
    from pixellearn.engine.question_bank import ContentSource, QuestionBank
    from pixellearn.engine.selector import QuestionSelector

    bank = QuestionBank(ContentSource.from_settings(settings))
    return QuestionSelector(
        bank,
        scope=settings.used_question_scope,
        rng=random.Random(settings.content.seed),
    )


def _profile_store(settings: Settings, policy: AdaptiveLevelPolicy) -> ProfileStore:
    return ProfileStore(
        db_path=settings.data_dir / "profiles.db",
        min_level=policy.min_level,
        max_level=policy.max_level,
    )


def _parse_subject(raw: str) -> Subject:
    try:
        return Subject.parse(raw)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="SUBJECT") from None


def _show_question(question: QuestionRecord) -> None:
    click.echo()
    click.echo(question.text)
    for i, option in enumerate(question.options, start=1):
        click.echo(f"  {i}. {option}")


def _read_choice(question: QuestionRecord, prompt: str) -> Optional[int]:
    """Return a 0-based option index, -1 for a skipped turn, None to quit."""
    while True:
        raw = click.prompt(prompt, default="", show_default=False).strip().lower()
        if raw in ("q", "quit"):
            return None
        if raw == "":
            return -1
        if raw.isdigit() and 1 <= int(raw) <= len(question.options):
            return int(raw) - 1
        click.echo(f"Enter 1-{len(question.options)}, or q to quit.")


@click.group()
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Path to a config.yaml (default ~/.pixellearn/config.yaml)")
@click.option("--data-dir", type=click.Path(path_type=Path), default=None,
              help="Override the data directory holding profiles.db")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[Path], data_dir: Optional[Path]) -> None:
    """PixelLearn: adaptive grammar, math and spelling quizzes."""
    settings = Settings.load(config_path)
    if data_dir is not None:
        settings.data_dir = data_dir
    logging.basicConfig(stream=sys.stderr, level=settings.log_level.upper())
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["policy"] = AdaptiveLevelPolicy.from_settings(settings)


@main.command()
def subjects() -> None:
    """List quiz subjects."""
    for subject in Subject:
        click.echo(f"  {subject.value}: {subject.display_name}")


@main.command()
@click.pass_context
def profiles(ctx: click.Context) -> None:
    """List saved profiles and their levels."""
    store = _profile_store(ctx.obj["settings"], ctx.obj["policy"])
    rows = store.list_profiles()
    if not rows:
        click.echo("No profiles yet. Use `pixellearn play SUBJECT --profile NAME`.")
        return
    for p in rows:
        levels = ", ".join(f"{s.value} {p.level_for(s)}" for s in Subject)
        click.echo(f"  {p.name}: {levels} | {p.total_correct}/{p.total_answered} correct, "
                   f"{p.wins} wins")


async def _play(settings: Settings, policy: AdaptiveLevelPolicy, subject: Subject,
                level: int, max_questions: int):
    from pixellearn.engine.quiz_controller import QuizSessionController

    controller = QuizSessionController(_build_selector(settings), policy)
    await controller.start_session(subject, level)

    while max_questions == 0 or controller.progress.questions_answered < max_questions:
        question = controller.current_question
        if question is None:
            click.echo(controller.load_error or "No question available.")
            if not click.confirm("Retry?", default=True):
                break
            await controller.load_question()
            continue

        progress = controller.progress
        click.echo(f"\n[{subject.display_name} · Level {progress.current_level}]")
        _show_question(question)
        started = time.monotonic()
        choice = _read_choice(question, "Your answer (1-4, q to quit)")
        if choice is None:
            break
        elapsed_ms = int((time.monotonic() - started) * 1000)

        result = controller.submit_answer(choice, elapsed_ms)
        if result.is_correct:
            click.echo("Correct!")
        else:
            click.echo(f"Not quite. The answer is: {result.correct_answer}")
        if result.explanation:
            click.echo(f"  {result.explanation}")
        if result.level_change.message:
            click.echo(f"  {result.level_change.message}")
        await controller.continue_after_result()

    return controller.end_session()


@main.command()
@click.argument("subject")
@click.option("--level", type=int, default=None, help="Starting level (default: saved level)")
@click.option("--profile", "profile_name", default=None, help="Profile to load and save")
@click.option("--questions", "max_questions", type=int, default=0,
              help="Stop after this many questions (0 = until you quit)")
@click.pass_context
def play(ctx: click.Context, subject: str, level: Optional[int],
         profile_name: Optional[str], max_questions: int) -> None:
    """Play an adaptive quiz in the terminal."""
    settings: Settings = ctx.obj["settings"]
    policy: AdaptiveLevelPolicy = ctx.obj["policy"]
    subj = _parse_subject(subject)

    store = _profile_store(settings, policy)
    profile = None
    if profile_name:
        profile = store.find_by_name(profile_name) or store.create_profile(profile_name)
    if level is None:
        level = store.get_level(profile.id, subj) if profile else policy.min_level

    session = asyncio.run(_play(settings, policy, subj, level, max_questions))
    if session is None:
        return
    if profile is not None:
        store.record_session(profile.id, session)

    click.echo(
        f"\nSession over: {session.correct_count}/{session.total_questions} correct "
        f"({session.accuracy:.0%}), level {session.start_level} → {session.current_level}"
    )


def _parse_player(raw: str, default_level: int):
    from pixellearn.engine.multiplayer import PlayerConfig

    name, _, level = raw.partition(":")
    if not name:
        raise click.BadParameter(f"bad player {raw!r}", param_hint="--player")
    try:
        return PlayerConfig(name=name, level=int(level) if level else default_level)
    except ValueError:
        raise click.BadParameter(f"bad level in {raw!r}", param_hint="--player") from None


async def _run_match(game) -> None:
    while not game.is_finished:
        player = game.current_player
        click.echo(f"\n--- Turn {game.turn + 1}/{game.total_turns}: "
                   f"{player.name} (Level {player.level}) ---")
        question = await game.next_question()
        _show_question(question)
        choice = _read_choice(question, "Answer (blank = time's up)")
        if choice is None:
            break
        result = game.answer(choice) if choice >= 0 else game.time_out()
        if result.is_correct:
            click.echo("Correct!")
        else:
            click.echo(f"{'Time is up! ' if result.timed_out else ''}"
                       f"The answer is: {result.correct_answer}")
        game.advance()


@main.command("match")
@click.argument("subject")
@click.option("-p", "--player", "players", multiple=True, required=True,
              help="Player as NAME or NAME:LEVEL (2-4 players)")
@click.option("--turns", type=int, default=10, show_default=True, help="Total turns")
@click.pass_context
def match_cmd(ctx: click.Context, subject: str, players: tuple[str, ...], turns: int) -> None:
    """Pass-and-play match on one terminal."""
    from pixellearn.engine.multiplayer import MultiplayerMatch

    settings: Settings = ctx.obj["settings"]
    policy: AdaptiveLevelPolicy = ctx.obj["policy"]
    subj = _parse_subject(subject)
    store = _profile_store(settings, policy)

    configs = [_parse_player(p, policy.min_level) for p in players]
    for config in configs:
        profile = store.find_by_name(config.name)
        if profile is not None:
            config.profile_id = profile.id

    try:
        game = MultiplayerMatch(subj, configs, _build_selector(settings), policy, total_turns=turns)
    except ValueError as e:
        raise click.UsageError(str(e)) from None

    asyncio.run(_run_match(game))

    click.echo("\nFinal standings:")
    for standing in game.standings():
        trophy = f" [{standing.trophy}]" if standing.trophy else ""
        click.echo(f"  {standing.placement}. {standing.player_name}: "
                   f"{standing.score} points, level {standing.level}{trophy}")
        if game.is_finished and standing.profile_id is not None:
            store.award_placement(standing.profile_id, standing.placement)


@main.command("export-bank")
@click.argument("out_dir", type=click.Path(file_okay=False, path_type=Path))
@click.pass_context
def export_bank(ctx: click.Context, out_dir: Path) -> None:
    """Write every subject's question pools to JSON files."""
    from pixellearn.engine.question_bank import ContentSource, export_question_bank

    settings: Settings = ctx.obj["settings"]
    policy: AdaptiveLevelPolicy = ctx.obj["policy"]
    levels = range(policy.min_level, policy.max_level + 1)
    counts = export_question_bank(ContentSource.from_settings(settings), out_dir, levels)
    for subject, count in counts.items():
        click.echo(f"  {subject.value}: {count} questions")
    click.echo(f"Total: {sum(counts.values())} questions in {out_dir}")
