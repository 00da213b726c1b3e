"""Entry point for ``python -m video_collage``."""

import sys

from video_collage.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
