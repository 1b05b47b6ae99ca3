#!/usr/bin/env python3
"""
Policy Records Management Tool

Single entry point for running the backend locally or in a container.
Usage: python manage.py <command> [options]
"""

import json
import logging
import os
import subprocess
import sys
import time
from datetime import datetime
from typing import List, Optional

BACKEND_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "backend")


# ═══════════════════════════════════════════════════════════
#  Logging Setup
# ═══════════════════════════════════════════════════════════

class ColorFormatter(logging.Formatter):
    """Console formatter with ANSI colors and level symbols."""

    COLORS = {
        "INFO": "\033[96m",
        "SUCCESS": "\033[92m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[91m\033[1m",
        "DEBUG": "\033[94m",
        "HEADER": "\033[95m",
        "BOLD": "\033[1m",
        "RESET": "\033[0m",
    }

    SYMBOLS = {
        "INFO": "→",
        "SUCCESS": "✓",
        "WARNING": "⚠",
        "ERROR": "✗",
        "CRITICAL": "☠",
        "DEBUG": "•",
        "STEP": "▶",
    }

    MARKERS = ("SUCCESS", "WARNING", "ERROR", "STEP")

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty() and sys.platform != "win32"

    def _colorize(self, text: str, color_name: str) -> str:
        color = self.COLORS.get(color_name, "")
        return f"{color}{text}{self.COLORS['RESET']}" if color and self.use_colors else text

    def format(self, record: logging.LogRecord) -> str:
        msg = str(record.msg)

        symbol, color = self.SYMBOLS.get(record.levelname, ""), record.levelname
        for marker in self.MARKERS:
            if f"[{marker}]" in msg:
                msg = msg.replace(f"[{marker}] ", "").replace(f"[{marker}]", "")
                symbol = self.SYMBOLS[marker]
                color = "INFO" if marker == "STEP" else marker
                break

        if msg.startswith("==="):
            record.msg = self._colorize(msg, "HEADER")
        elif symbol and not msg.startswith(" "):
            record.msg = self._colorize(f"{symbol} {msg}", color)
        else:
            record.msg = self._colorize(msg, color)

        return super().format(record)


def _setup_logging() -> logging.Logger:
    log_dir = "logs"
    os.makedirs(log_dir, exist_ok=True)
    file_handler = logging.FileHandler(
        os.path.join(log_dir, f"manage-{datetime.now():%Y%m%d}.log"), encoding="utf-8"
    )
    file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ColorFormatter())

    logging.basicConfig(level=logging.INFO, handlers=[file_handler, console_handler])
    return logging.getLogger("manage")


logger = _setup_logging()


# ═══════════════════════════════════════════════════════════
#  Server Manager
# ═══════════════════════════════════════════════════════════

class ServerManager:
    """Runs the API under a restart supervisor, plus Celery and database chores."""

    RESTART_DELAY_SECONDS = 2

    def __init__(self, host: Optional[str] = None, port: Optional[int] = None):
        self.host = host or os.getenv("HOST", "0.0.0.0")
        self.port = port or int(os.getenv("PORT", "3000"))

    @property
    def base_url(self) -> str:
        host = "localhost" if self.host in ("0.0.0.0", "::") else self.host
        return f"http://{host}:{self.port}"

    # ─── Helpers ──────────────────────────────────────────
    def _run(self, cmd: List[str], check: bool = True) -> subprocess.CompletedProcess:
        logger.info(f"[STEP] Running: {' '.join(cmd)}")
        try:
            return subprocess.run(cmd, check=check, cwd=BACKEND_DIR)
        except subprocess.CalledProcessError as exc:
            logger.error(f"Command failed (exit {exc.returncode})")
            raise

    def _uvicorn_cmd(self, reload: bool) -> List[str]:
        cmd = [
            sys.executable, "-m", "uvicorn", "app.main:app",
            "--host", self.host,
            "--port", str(self.port),
        ]
        if reload:
            cmd.append("--reload")
        return cmd

    # ─── Server ───────────────────────────────────────────
    def serve(self, reload: bool = False, max_restarts: Optional[int] = None) -> None:
        """
        Run the API and restart it whenever it exits with a non-zero code.

        The CPU watchdog exits the server with status 1 to get a fresh
        process; a clean exit (status 0) or Ctrl-C stops the supervisor.
        """
        logger.info("\n=== Policy Records API ===")
        restarts = 0
        while True:
            started = time.monotonic()
            logger.info(f"[STEP] Starting server on {self.base_url}")
            proc = subprocess.Popen(self._uvicorn_cmd(reload), cwd=BACKEND_DIR)
            try:
                code = proc.wait()
            except KeyboardInterrupt:
                proc.terminate()
                proc.wait()
                logger.info("\n[SUCCESS] Server stopped")
                return

            if code == 0:
                logger.info("[SUCCESS] Server exited cleanly")
                return

            restarts += 1
            uptime = time.monotonic() - started
            logger.warning(f"[WARNING] Server exited with status {code} after {uptime:.1f}s (restart #{restarts})")
            if max_restarts is not None and restarts > max_restarts:
                logger.error(f"[ERROR] Giving up after {max_restarts} restarts")
                sys.exit(code)
            time.sleep(self.RESTART_DELAY_SECONDS)

    # ─── Celery ───────────────────────────────────────────
    def worker(self, queues: str = "ingestion,default") -> None:
        logger.info("\n=== Celery Worker ===")
        self._run([sys.executable, "-m", "celery", "-A", "app.tasks", "worker", "-Q", queues, "--loglevel=INFO"])

    def beat(self) -> None:
        logger.info("\n=== Celery Beat ===")
        self._run([sys.executable, "-m", "celery", "-A", "app.tasks", "beat", "--loglevel=INFO"])

    # ─── Database ─────────────────────────────────────────
    def init_db(self) -> None:
        """Apply Alembic migrations."""
        logger.info("\n=== Database Initialisation ===")
        self._run([sys.executable, "-m", "alembic", "upgrade", "head"])
        logger.info("[SUCCESS] Database migrations applied!")

    # ─── Health ───────────────────────────────────────────
    def health(self) -> None:
        """Probe the running API."""
        import urllib.request

        url = f"{self.base_url}/api/health"
        logger.info(f"[STEP] Probing {url}")
        try:
            with urllib.request.urlopen(url, timeout=10) as resp:
                data = json.loads(resp.read().decode())
        except OSError as exc:
            logger.error(f"[ERROR] Health check failed: {exc}")
            sys.exit(1)
        logger.info(f"[SUCCESS] status={data.get('status')} uptime={data.get('uptime', 0):.0f}s")

    def urls(self) -> None:
        logger.info("\n=== Access URLs ===")
        logger.info(f"  Upload page:    {self.base_url}/")
        logger.info(f"  API docs:       {self.base_url}/docs")
        logger.info(f"  Health check:   {self.base_url}/api/health")


# ═══════════════════════════════════════════════════════════
#  CLI
# ═══════════════════════════════════════════════════════════

USAGE = f"""
{ColorFormatter.COLORS['HEADER']}Policy Records Management{ColorFormatter.COLORS['RESET']}
{'═' * 50}

{ColorFormatter.COLORS['BOLD']}Usage:{ColorFormatter.COLORS['RESET']} python manage.py <command> [options]

{ColorFormatter.COLORS['BOLD']}Commands:{ColorFormatter.COLORS['RESET']}
    serve           Run the API under the restart supervisor (--reload, --max-restarts=N)
    worker          Start a Celery worker (--queues=a,b)
    beat            Start Celery beat (due-queue sweep)
    init-db         Run Alembic migrations
    health          Probe /api/health
    urls            Show access URLs

{ColorFormatter.COLORS['BOLD']}Options:{ColorFormatter.COLORS['RESET']}
    --host=HOST     Bind address (default $HOST or 0.0.0.0)
    --port=PORT     Port (default $PORT or 3000)
"""


def _option(opts: List[str], name: str) -> Optional[str]:
    prefix = f"--{name}="
    for o in opts:
        if o.startswith(prefix):
            return o[len(prefix):]
    return None


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] in ("-h", "--help"):
        print(USAGE)
        sys.exit(0)

    command = sys.argv[1]
    opts = sys.argv[2:]

    port = _option(opts, "port")
    mgr = ServerManager(host=_option(opts, "host"), port=int(port) if port else None)

    try:
        if command == "serve":
            max_restarts = _option(opts, "max-restarts")
            mgr.serve(
                reload="--reload" in opts,
                max_restarts=int(max_restarts) if max_restarts else None,
            )
        elif command == "worker":
            mgr.worker(queues=_option(opts, "queues") or "ingestion,default")
        elif command == "beat":
            mgr.beat()
        elif command == "init-db":
            mgr.init_db()
        elif command == "health":
            mgr.health()
        elif command == "urls":
            mgr.urls()
        else:
            logger.error(f"Unknown command: {command}")
            print(USAGE)
            sys.exit(1)
    except subprocess.CalledProcessError as exc:
        logger.error(f"Operation failed: {exc}")
        sys.exit(exc.returncode or 1)


if __name__ == "__main__":
    main()
