"""Allow `python -m scripts` by running the embedding generator."""

import asyncio
import sys

from scripts.generate_embeddings import _run

sys.exit(asyncio.run(_run(sys.argv[1:])))
