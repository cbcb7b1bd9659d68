"""Module entry point for `python -m pte.cli`."""
import os
import sys

if __name__ == "__main__":  # pragma: no cover (invocation driven)
    # Progress bars and summary marks are non-ASCII
    if sys.platform == "win32":
        os.environ["PYTHONIOENCODING"] = "utf-8"
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    from pte.cli import cli

    cli()
