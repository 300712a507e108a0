"""Run a launcher query from the terminal against a local Ollama server."""
from __future__ import annotations
import argparse
import logging
import sys
import time

from localllm_plugin.common.logging_setup import setup_logging
from localllm_plugin.common.settings import load_settings
from localllm_plugin.query.processor import QueryProcessor, StaticClipboard

LOGGER = logging.getLogger("localllm.cli")

def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Send a LocalLLM launcher query")
    ap.add_argument("--text", help="Raw query text, including the send trigger")
    ap.add_argument("--cfg", "--config", dest="cfg", default=None, help="YAML config path")
    ap.add_argument("--clipboard", default="", help="Text substituted for the clipboard trigger")
    ap.add_argument("--list-models", action="store_true", help="List models and exit")
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args(argv)
    if not args.list_models and args.text is None:
        ap.error("--text is required unless --list-models is given")

    setup_logging(args.log_level)
    settings = load_settings(args.cfg)
    processor = QueryProcessor(settings, StaticClipboard(args.clipboard))
    try:
        if args.list_models:
            names = processor.available_models()
            if not names:
                LOGGER.error("No models available at %s", settings.endpoint)
                return 1
            for name in names:
                print(name)
            return 0

        start = time.time()
        result = processor.query(args.text)[0]
        LOGGER.info("Latency: %sms", int((time.time() - start) * 1000))
    finally:
        processor.close()

    print(result.subtitle)
    return 1 if result.is_error else 0

if __name__ == "__main__":
    sys.exit(main())
