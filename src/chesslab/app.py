"""Application entry point.

``chesslab review game.pgn`` reviews the first game of a PGN file;
``chesslab play`` plays against the engine in the terminal.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

import chess
import chess.pgn

from chesslab.engine.process import UciProcess
from chesslab.engine.session import EngineSession
from chesslab.game.controller import GameController
from chesslab.game.player import HumanPlayer
from chesslab.play.humanizer import HumanizedMoveSelector
from chesslab.play.opponent import EngineOpponent
from chesslab.review.models import ReviewReport
from chesslab.review.pipeline import ReviewPipeline
from chesslab.settings import EngineSettings, EngineUnavailableError

_LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    level = os.environ.get("CHESSLAB_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chesslab")
    sub = parser.add_subparsers(dest="command", required=True)

    review = sub.add_parser("review", help="review a finished game")
    review.add_argument("pgn", type=Path)
    review.add_argument("--depth", type=int)
    review.add_argument("--time-ms", type=int)

    play = sub.add_parser("play", help="play against the engine")
    play.add_argument("--skill", type=int)
    play.add_argument("--error-bias", type=float)
    play.add_argument("--black", action="store_true", help="play the black pieces")
    return parser


def format_report(report: ReviewReport) -> str:
    lines = [
        f"Analyzed {report.analyzed}/{len(report.plies)} positions "
        f"({report.phase.name.lower()})."
    ]
    for side, summary in (("White", report.white), ("Black", report.black)):
        lines.append(
            f"{side}: {summary.moves} moves, {summary.severe} blunders, "
            f"{summary.moderate} mistakes, {summary.minor} inaccuracies"
        )
    plies = report.plies
    for record in report.mistakes:
        label = plies[record.ply].move_label
        lines.append(
            f"  {label}{record.severity.nag}  {record.severity.value} "
            f"(-{record.swing / 100:.2f})"
        )
    return "\n".join(lines)


def run_review(settings: EngineSettings, pgn_path: Path) -> int:
    from PyQt6.QtCore import QCoreApplication

    with pgn_path.open(encoding="utf-8") as handle:
        game = chess.pgn.read_game(handle)
    if game is None:
        print(f"No game found in {pgn_path}", file=sys.stderr)
        return 1
    engine_path = settings.require_engine_path()

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    process = UciProcess(engine_path)
    session = EngineSession(process)
    failures: list[str] = []

    def _done(report: ReviewReport) -> None:
        print(format_report(report))
        app.quit()

    def _unavailable(message: str) -> None:
        print(f"Engine unavailable: {message}", file=sys.stderr)
        failures.append(message)
        pipeline.cancel()

    pipeline = ReviewPipeline(
        session,
        depth=settings.review_depth,
        time_budget_ms=settings.review_time_ms,
        on_progress=lambda done, total: _LOGGER.info("Analyzed %d/%d", done, total),
        on_finished=_done,
        on_cancelled=_done,
    )
    session.events.on_unavailable.append(_unavailable)
    session.setup()
    pipeline.start(game.board().fen(), game.mainline_moves())

    code = 0
    if pipeline.report is None:
        code = app.exec()
    session.shutdown()
    return 2 if failures else code


def run_play(settings: EngineSettings, *, human_color: chess.Color) -> int:
    from PyQt6.QtCore import QCoreApplication, QSocketNotifier

    engine_path = settings.require_engine_path()
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    process = UciProcess(engine_path)
    session = EngineSession(process)
    controller = GameController()
    opponent = EngineOpponent(
        not human_color,
        session=session,
        controller=controller,
        skill=settings.skill,
        selector=HumanizedMoveSelector(error_bias=settings.error_bias),
        set_status=print,
    )
    session.configure(settings.skill)
    session.events.on_unavailable.append(lambda message: app.exit(1))

    def _show(_move: chess.Move, san: str, board: chess.Board) -> None:
        print(f"{san}\n{board}\n")

    def _game_over(result: str) -> None:
        print(f"{controller.status_text()} Result: {result}")
        app.quit()

    controller.events.on_move.append(_show)
    controller.events.on_game_over.append(_game_over)

    def _read_line() -> None:
        text = sys.stdin.readline()
        if not text:
            app.quit()
            return
        command = text.strip()
        if command == "undo":
            controller.undo_move()
            print(controller.board)
        elif command:
            cp = controller.current_player
            if cp is None or not cp.is_human or not controller.submit_move(command):
                print("Illegal or untimely move.")

    notifier = QSocketNotifier(sys.stdin.fileno(), QSocketNotifier.Type.Read)
    notifier.activated.connect(_read_line)

    session.setup()
    human = HumanPlayer(human_color, "You")
    if human_color == chess.WHITE:
        controller.new_game(white=human, black=opponent)
    else:
        controller.new_game(white=opponent, black=human)
    print(f"{controller.board}\n{controller.status_text()}")

    code = app.exec()
    session.shutdown()
    return code


def main(argv: list[str] | None = None) -> int:
    """Launch the chesslab console application."""
    _configure_logging()
    args = _build_parser().parse_args(argv)

    settings = EngineSettings.from_env()
    try:
        if args.command == "review":
            if args.depth is not None:
                settings.review_depth = max(1, args.depth)
            if args.time_ms is not None:
                settings.review_time_ms = max(50, args.time_ms)
            return run_review(settings, args.pgn)

        if args.skill is not None:
            settings = replace(settings, skill=args.skill)
        if args.error_bias is not None:
            settings = replace(settings, error_bias=args.error_bias)
        return run_play(
            settings,
            human_color=chess.BLACK if args.black else chess.WHITE,
        )
    except EngineUnavailableError as exc:
        print(str(exc), file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
