"""Package entry point for ``python -m univsrg``.

WHY: Users run the converter as
``python -m univsrg a.osz b.osz -o merged.osz``.

HOW: Delegates to the CLI's main() and exits with its return code.
"""

import sys

if __name__ == "__main__":
    from univsrg.cli import main
    sys.exit(main())
