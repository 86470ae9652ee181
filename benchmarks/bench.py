import json
import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeAlias

from .dispatch import PIPELINE_SIZE, dispatch_measure

logger = logging.getLogger(__name__)

Results: TypeAlias = dict[str, dict[str, float]]

RESULTS_FILE = Path("./benchmarks/benches.json")


@contextmanager
def timer() -> Iterator[None]:
    logger.info("Dispatching pipelines of %d steps...", PIPELINE_SIZE)
    start = time.monotonic()
    yield None
    logger.info("Benchmarks completed in: %.2fs.", time.monotonic() - start)


def report(results: Results) -> None:
    for group, cases in results.items():
        for case, seconds in cases.items():
            logger.info("%s.%s: %.4fs", group, case, seconds)


def write_results(results: Results) -> None:
    with RESULTS_FILE.open(mode="w", encoding="utf-8") as fp:
        json.dump(results, fp, indent=2)
    logger.info("Results saved to: %s", RESULTS_FILE)


def main() -> None:
    with timer():
        results: Results = dispatch_measure()
    report(results)
    write_results(results)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="[%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler()],
    )
    main()
