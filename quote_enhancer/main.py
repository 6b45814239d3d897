"""Command-line entry point for the quote enhancer."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from quote_enhancer.config.exceptions import ConfigurationError
from quote_enhancer.config.loader import load_config
from quote_enhancer.config.models import EnhancerConfig
from quote_enhancer.currency.factory import get_currency_provider
from quote_enhancer.domain.exceptions import QuoteEnhancementError
from quote_enhancer.domain.models import MultiProviderResult, QuoteType
from quote_enhancer.enhancement.engine import EnhancementEngine
from quote_enhancer.logging import get_logger
from quote_enhancer.logging.config import configure_logging

logger = get_logger(__name__, component="cli")


def read_json_file(path: Path, label: str) -> Dict[str, Any]:
    """
    Read a JSON object from disk.

    Raises:
        ConfigurationError: If the file is missing, unreadable or not a JSON object
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"{label} file not found", source=path) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {label} file", errors=[str(e)], source=path) from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{label} file must contain a JSON object", source=path)
    return data


async def run_enhancement(
    config: EnhancerConfig,
    form_data: Dict[str, Any],
    provider_quotes: Dict[str, Any],
    quote_type: Optional[str] = None,
) -> MultiProviderResult:
    """Enhance every provider quote with the deterministic pipeline."""
    async with httpx.AsyncClient() as client:
        engine = EnhancementEngine.from_config(
            config,
            currency_provider=get_currency_provider(config.currency, client=client),
        )
        return await engine.enhance_all_providers(provider_quotes, form_data, quote_type)


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the quote enhancer CLI.

    Returns:
        Exit code (0 when every provider was enhanced, 1 when some failed,
        2 on configuration or input errors)
    """
    start_time = time.time()
    parser = argparse.ArgumentParser(
        description="EOR quote enhancer - add legally required costs missing from provider quotes"
    )
    parser.add_argument("--form", type=Path, required=True, help="Path to the form data JSON file")
    parser.add_argument(
        "--quotes",
        type=Path,
        required=True,
        help="Path to a JSON object mapping provider names to quotes",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: quote_enhancer.yaml if present)",
    )
    parser.add_argument(
        "--quote-type",
        default=None,
        choices=[qt.value for qt in QuoteType],
        help="Enhancement mode (overrides the form data)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        configure_logging(
            level=args.log_level or config.logging.level,
            format_type=config.logging.format,
            environment=config.environment,
        )

        logger.info(
            "Quote enhancer starting",
            extra={
                "event": "cli.starting",
                "config_path": str(args.config) if args.config else None,
                "quote_type": args.quote_type,
            },
        )

        form_data = read_json_file(args.form, "Form data")
        provider_quotes = read_json_file(args.quotes, "Quotes")
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        result = asyncio.run(run_enhancement(config, form_data, provider_quotes, args.quote_type))
    except QuoteEnhancementError as e:
        logger.error(
            f"Enhancement failed: {e.message}",
            extra={"event": "cli.failed", "error_code": e.code},
        )
        return 2
    except ValueError as e:
        logger.error(f"Invalid input: {e}", extra={"event": "cli.invalid_input"})
        return 2

    print(result.model_dump_json(indent=2))

    logger.info(
        f"Enhanced {len(result.enhancements)} of {len(provider_quotes)} providers",
        extra={
            "event": "cli.completed",
            "duration_seconds": round(time.time() - start_time, 2),
            "failed_providers": sorted(result.errors),
        },
    )
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(main())
