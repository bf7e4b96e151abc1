"""Project scripts for running and operating the booking service.

Usage (from project root):
  dental-runserver --host=0.0.0.0 --port=8000 --no-reload
  dental-run-tests -k booking
  dental-migrate                 # alembic upgrade head
  dental-init-env                # .env from .env.example
  dental-dispatch-reminders      # one reminder sweep, for cron
"""
from __future__ import annotations

import shutil
import subprocess
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _argv() -> List[str]:
    return sys.argv[1:]


def _flag_value(name: str, args: List[str]) -> Optional[str]:
    prefix = f"--{name}="
    for arg in args:
        if arg.startswith(prefix):
            return arg[len(prefix):]
    return None


def runserver() -> None:
    """Serve ``app.main:app`` with uvicorn.

    --host=<host>  (default 127.0.0.1)
    --port=<port>  (default 8000)
    --no-reload / --reload
    """
    try:
        import uvicorn
    except ImportError:
        print("uvicorn is missing; install it with `pip install uvicorn[standard]`.")
        raise

    args = _argv()
    host = _flag_value("host", args) or "127.0.0.1"
    raw_port = _flag_value("port", args) or "8000"
    try:
        port = int(raw_port)
    except ValueError:
        print(f"Invalid port {raw_port!r}, using 8000")
        port = 8000
    reload = "--no-reload" not in args

    print(f"Booking API on http://{host}:{port} (reload={reload})")
    uvicorn.run("app.main:app", host=host, port=port, reload=reload)


def run_tests() -> None:
    subprocess.run(["pytest", *_argv()], check=True, cwd=PROJECT_ROOT)


def run_migrations() -> None:
    """``alembic`` with the given arguments, or ``upgrade head`` when none are given."""
    args = _argv() or ["upgrade", "head"]
    subprocess.run(["alembic", *args], check=True, cwd=PROJECT_ROOT)


def init_env() -> None:
    example = PROJECT_ROOT / ".env.example"
    target = PROJECT_ROOT / ".env"
    if target.exists():
        print(f"Keeping existing {target}")
        return
    if not example.exists():
        print(f"No .env.example at {example}")
        return
    shutil.copy(example, target)
    print(f"Wrote {target}; fill in DATABASE_URL and the API tokens before starting")


def dispatch_reminders() -> None:
    """Run a single reminder sweep and print the counts."""
    from app.core.logger import setup_logging
    from app.tasks.reminder_tasks import run_reminder_sweep

    setup_logging()
    stats = run_reminder_sweep()
    print(f"Reminders sent={stats['sent']} failed={stats['failed']} skipped={stats['skipped']}")


COMMANDS: Dict[str, Callable[[], None]] = {
    "runserver": runserver,
    "run-tests": run_tests,
    "migrate": run_migrations,
    "init-env": init_env,
    "dispatch-reminders": dispatch_reminders,
}


if __name__ == "__main__":
    # python -m app.cli <command> [args...]
    if len(sys.argv) <= 1 or sys.argv[1] not in COMMANDS:
        print(__doc__)
        print("Commands: " + ", ".join(COMMANDS))
        sys.exit(0 if len(sys.argv) <= 1 else 2)
    command = COMMANDS[sys.argv.pop(1)]
    command()
