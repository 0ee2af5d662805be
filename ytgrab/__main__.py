"""
Entry point for running ytgrab as a module: python -m ytgrab

Usage:
    python -m ytgrab                  → Launches the web backend (default)
    python -m ytgrab --cli [URL ...]  → Runs the CLI version
    python -m ytgrab --web            → Launches the web backend
"""

import sys


def main():
    try:
        if "--cli" in sys.argv:
            from ytgrab.cli import main as cli_main
            cli_main([a for a in sys.argv[1:] if not a.startswith("--")])
        else:
            from ytgrab.web import run_web
            run_web()
    except KeyboardInterrupt:
        print("\n\nInterrupted. Goodbye!")
        sys.exit(0)


if __name__ == "__main__":
    main()
