from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from .config import Settings
from .modes import Mode, format_countdown
from .runner import SessionRunner
from .service import FocusService, TriggerBusy


def parse_mode(value: str) -> Mode:
    try:
        return Mode.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="focusdeck",
        description="FocusDeck: focus/rest timer, objective stack and AI coaching",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database path (default: $FOCUSDECK_DB or focusdeck/data/focusdeck.sqlite)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="show credit, history and the recommended next mode")

    mode_parser = subparsers.add_parser("mode", help="show a mode's duration and label")
    mode_parser.add_argument("mode", type=parse_mode, help="focus | short_break | long_break")

    run_parser = subparsers.add_parser("run", help="run one session in the foreground")
    run_parser.add_argument(
        "--mode",
        type=parse_mode,
        default=None,
        help="mode to run (default: the recommended mode)",
    )
    run_parser.add_argument("--yes", action="store_true", help="confirm the pre-flight check up front")

    skip_parser = subparsers.add_parser("skip", help="record a session as completed without running it")
    skip_parser.add_argument("--mode", type=parse_mode, default=Mode.FOCUS, help="mode to record")

    reset_parser = subparsers.add_parser("reset", help="stop the countdown and restore the full duration")
    reset_parser.add_argument("--mode", type=parse_mode, default=Mode.FOCUS, help="mode to reset")

    tasks_parser = subparsers.add_parser("tasks", help="manage the objective stack")
    task_sub = tasks_parser.add_subparsers(dest="task_command", required=True)
    task_sub.add_parser("list", help="list tasks")
    add_parser = task_sub.add_parser("add", help="add a task")
    add_parser.add_argument("text", nargs="+", help="task text")
    done_parser = task_sub.add_parser("done", help="toggle a task's completed flag")
    done_parser.add_argument("id", type=int)
    rm_parser = task_sub.add_parser("rm", help="delete a task")
    rm_parser.add_argument("id", type=int)
    clear_parser = task_sub.add_parser("clear", help="delete every task")
    clear_parser.add_argument("--yes", action="store_true", help="skip the confirmation prompt")
    split_parser = task_sub.add_parser("split", help="break a task into steps with the AI coach")
    split_parser.add_argument("id", type=int)

    coach_parser = subparsers.add_parser("coach", help="ask the AI coach for a mindset protocol")
    coach_parser.add_argument("--mode", type=parse_mode, default=Mode.FOCUS, help="session context")

    serve_parser = subparsers.add_parser("serve", help="serve the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8765)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = Settings.from_env(db_path=Path(args.db) if args.db else None)

    if args.command == "serve":
        return _handle_serve(args, settings)
    if args.command == "mode":
        return _handle_mode(args)

    service = build_service(settings)
    try:
        if args.command == "status":
            return _handle_status(service)
        if args.command == "run":
            return _handle_run(args, service)
        if args.command == "skip":
            return _handle_skip(args, service)
        if args.command == "reset":
            return _handle_reset(args, service)
        if args.command == "tasks":
            return _handle_tasks(args, service)
        if args.command == "coach":
            return _handle_coach(args, service)
    finally:
        service.shutdown()

    parser.print_help()
    return 2


def build_service(settings: Settings) -> FocusService:
    # the foreground runner drives ticks itself
    return FocusService.from_settings(settings, auto_tick=False)


def _handle_status(service: FocusService) -> int:
    snap = service.snapshot()
    rec = service.recommendation()
    print(f"Credit: {snap.credit}")
    if snap.history:
        recent = ", ".join(mode.name for mode in snap.history[-5:])
        print(f"Sessions: {len(snap.history)} (recent: {recent})")
    else:
        print("Sessions: 0")
    suggestion = f" -> {rec.suggested_mode.label}" if rec.suggested_mode else ""
    print(f"Advice: {rec.text}{suggestion}")
    open_tasks = service.tasks.open_texts()
    print(f"Open objectives: {len(open_tasks)}")
    return 0


def _handle_mode(args: argparse.Namespace) -> int:
    mode: Mode = args.mode
    print(f"{mode.name}: {mode.label}, {format_countdown(mode.duration_sec)}, {mode.spec.description}")
    return 0


def _handle_run(args: argparse.Namespace, service: FocusService) -> int:
    mode: Mode | None = args.mode
    if mode is None:
        mode = service.recommendation().suggested_mode or Mode.FOCUS

    def confirm() -> bool:
        return True if args.yes else _ask("Confirm engagement? [y/N] ")

    runner = SessionRunner(service=service, clock=service.clock, confirm=confirm, stream=sys.stdout)
    result = runner.run(mode)
    if result.cancelled:
        return 1
    return 130 if result.interrupted else 0


def _handle_skip(args: argparse.Namespace, service: FocusService) -> int:
    service.switch_mode(args.mode)
    completion = service.skip()
    print(
        f"Recorded {completion.mode.label}: +{completion.credit_awarded} credit "
        f"(total {service.snapshot().credit})."
    )
    return 0


def _handle_reset(args: argparse.Namespace, service: FocusService) -> int:
    service.switch_mode(args.mode)
    snap = service.reset()
    print(f"{snap.mode.label} reset to {format_countdown(snap.remaining_sec)}.")
    return 0


def _handle_tasks(args: argparse.Namespace, service: FocusService) -> int:
    command = args.task_command
    if command == "add":
        task = service.add_task(" ".join(args.text))
        if task is None:
            print("Nothing to add.")
        else:
            print(f"Added [{task.id}] {task.text}")
        return 0
    if command == "done":
        if not service.toggle_task(args.id):
            print(f"No task with id {args.id}.")
        return _print_tasks(service)
    if command == "rm":
        if not service.remove_task(args.id):
            print(f"No task with id {args.id}.")
        return _print_tasks(service)
    if command == "clear":
        if not args.yes and not _ask("Wipe every objective? [y/N] "):
            print("Cancelled.")
            return 1
        removed = service.clear_tasks()
        print(f"Removed {removed} task(s).")
        return 0
    if command == "split":
        if service.tasks.get(args.id) is None:
            print(f"No task with id {args.id}.")
            return 1
        try:
            created = service.decompose_task(args.id)
        except TriggerBusy as exc:
            print(str(exc))
            return 1
        if not created:
            print("Coach unavailable; task left unchanged.")
            return 1
        return _print_tasks(service)
    return _print_tasks(service)


def _handle_coach(args: argparse.Namespace, service: FocusService) -> int:
    service.switch_mode(args.mode)
    result = service.request_coaching()
    if result.text is None:
        print("Coach unavailable; try again later.")
        return 1
    print(result.text.strip())
    return 0


def _handle_serve(args: argparse.Namespace, settings: Settings) -> int:
    try:
        import uvicorn
    except Exception as exc:
        print(f"serve needs uvicorn: {exc}")
        return 2

    from .api.app import create_app

    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port, log_level="warning")
    return 0


def _print_tasks(service: FocusService) -> int:
    items = service.task_items()
    if not items:
        print("No objectives.")
        return 0
    for task in items:
        mark = "x" if task.completed else " "
        print(f"[{mark}] {task.id}: {task.text}")
    return 0


def _ask(prompt: str) -> bool:
    try:
        answer = input(prompt)
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}
