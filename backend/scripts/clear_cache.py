import argparse
import sys
from pathlib import Path


def main(argv=None):
    here = Path(__file__).resolve()
    backend_dir = here.parent.parent
    if str(backend_dir) not in sys.path:
        sys.path.append(str(backend_dir))

    from cache_control.actions import CLEAR_ALL, registry
    from cache_control.config import settings
    from cache_control.exceptions import CacheControlError
    from cache_control.tools import build_tools

    parser = argparse.ArgumentParser(description="Run a cache-control action.")
    parser.add_argument("action", nargs="?", default=CLEAR_ALL)
    parser.add_argument("--silent", action="store_true", help="don't write routine operation-log entries")
    parser.add_argument("--list", action="store_true", help="list registered actions and exit")
    args = parser.parse_args(argv)

    if args.list:
        for action in registry.actions():
            print(f"{action.name}\t{action.title}")
        return 0

    tools = build_tools(settings)
    if args.silent:
        tools = tools.silent()

    print(f"Running '{args.action}'...")
    try:
        messages = registry.execute(args.action, tools)
    except CacheControlError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    for message in messages:
        print(f"  {message}")
    print("Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
