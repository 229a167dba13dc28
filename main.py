"""galmode — dev launcher. Starts the API server in watch mode."""

import argparse
import os
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="galmode dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--demo", action="store_true",
                        help="Serve the built-in demo story even if a host is configured")
    parser.add_argument("--log-level", default="info",
                        help="uvicorn log level (debug shows reconciliation passes)")
    args = parser.parse_args()

    # Build env for the server process so it picks up the same data dir
    env = os.environ.copy()
    if args.data_dir:
        env["DATA_DIR"] = str(args.data_dir.resolve())
    if args.demo:
        env["GALMODE_DEMO"] = "1"

    print(f"Starting galmode on http://localhost:{PORT} ...")
    proc = subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "galmode.app:app", "--reload",
         "--host", HOST, "--port", PORT, "--log-level", args.log_level],
        cwd=ROOT, env=env,
    )
    try:
        proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down...")
        proc.terminate()
        proc.wait()


if __name__ == "__main__":
    main()
