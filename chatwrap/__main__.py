"""Package entry point for ``python -m chatwrap``.

Delegates to the CLI's main(). ``--serve`` starts the HTTP API instead.
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from chatwrap.server.app import run_api
        run_api()
    else:
        from chatwrap.cli import main
        main()
