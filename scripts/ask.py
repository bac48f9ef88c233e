import argparse
import json
import logging

from medfaq.pipeline import answer_query, build_orchestrator
from medfaq.qa import build_composer
from medfaq.settings import load_settings


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def main() -> None:
    """Answer one medication question and print the JSON response."""
    parser = argparse.ArgumentParser(description="Ask the medication FAQ a question.")
    parser.add_argument("query", help="free-text question")
    parser.add_argument("-k", type=positive_int, default=None, help="number of passages to retrieve")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
    settings = load_settings()

    try:
        response = answer_query(
            args.query,
            orchestrator=build_orchestrator(settings),
            composer=build_composer(settings.openai),
            k=args.k or settings.retrieval.top_k,
        )
    except ValueError as exc:
        parser.error(str(exc))
    print(json.dumps(response.to_dict(), indent=2))


if __name__ == "__main__":
    main()
