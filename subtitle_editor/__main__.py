"""Package entry point for ``python -m subtitle_editor``.

HOW: ``--serve`` starts the HTTP editing API; anything else is handed to
the CLI converter.
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from subtitle_editor.server.app import run_api
        run_api()
    else:
        from subtitle_editor.cli import main
        main()
