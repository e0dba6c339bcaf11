##########################################################################################
#
# Script name: main.py
#
# Description: CLI entrypoint for generating the daily InfoHound digest.
#
##########################################################################################

import argparse
import logging
import os
import sys
from datetime import date, datetime
from zoneinfo import ZoneInfo

from .cache import DEFAULT_CACHE_DIR, ContentCache
from .config import DEFAULT_CONFIG_PATH, PipelineSettings, get_ai_config, load_config
from .fetchers import build_sample_articles
from .pipeline import generate_digest
from .render import write_outputs
from .summarizer import create_ai_service


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger('infohound')
log.setLevel(logging.DEBUG)
formatter = logging.Formatter(
    '%(asctime)-15s [%(name)s:%(funcName)s:%(lineno)-5s] %(levelname)-8s %(message)s'
)

LOG_FILE = 'infohound.log'
RUN_COMMANDS = {None, 'fetch', 'generate'}


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _resolve_digest_date(explicit_date: str | None) -> date:
    if explicit_date:
        return date.fromisoformat(explicit_date)
    tz_name = os.getenv('FEED_TIMEZONE') or 'America/New_York'
    try:
        now = datetime.now(ZoneInfo(tz_name))
    except Exception:  # noqa: BLE001
        now = datetime.now(ZoneInfo('UTC'))
    return now.date()


def run_digest(args: argparse.Namespace) -> int:
    '''
    Run the full pipeline once and persist its outputs.

    Returns the process exit code: 0 on success or a normal early exit,
    1 on any fatal error.
    '''
    try:
        log.info('Starting InfoHound digest generation...')
        digest_date = _resolve_digest_date(args.date)
        app_config = load_config(args.config)
        service = create_ai_service(get_ai_config())
        cache = ContentCache(args.cache_dir)
        raw_articles = None
        if args.sample:
            raw_articles = build_sample_articles()
            log.debug('Using sample data for digest generation.')

        digest = generate_digest(
            sources=app_config.sources,
            service=service,
            digest_date=digest_date,
            settings=PipelineSettings(),
            cache=cache,
            raw_articles=raw_articles,
        )
        if digest is None:
            return 0

        log.info('Step 5: Rendering outputs...')
        write_outputs(
            digest,
            output_dir=args.output_dir,
            archive_dir=args.archive_dir,
            retention_days=app_config.settings.retention_days,
        )
        log.info('InfoHound digest generation completed!')
        return 0
    except Exception as exc:  # noqa: BLE001
        log.exception('Fatal error during digest generation: %s', exc)
        return 1


# ****************************************************************************************
# Handle the arguments
# ****************************************************************************************


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='infohound',
        description='Generate the daily InfoHound tech digest.',
        usage='infohound [fetch|generate] [options]',
    )
    parser.add_argument('command', nargs='?', default=None, help='fetch or generate (both run the full pipeline).')
    parser.add_argument('--date', help='Digest date in YYYY-MM-DD format.', default=None)
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help='Path to the source config (JSON or YAML).')
    parser.add_argument('--output-dir', default='dist', help='Directory for the dated Markdown and index.html.')
    parser.add_argument('--archive-dir', default='data/archive', help='Directory for archived digests.')
    parser.add_argument('--cache-dir', default=DEFAULT_CACHE_DIR, help='Directory for cached article content.')
    parser.add_argument(
        '--sample',
        action='store_true',
        help='Use local sample articles instead of fetching sources.',
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output to stdout.')
    parser.add_argument('-q', '--quiet', action='store_true', help='Minimal stdout.')
    return parser


def handle_args(argv: list[str] | None = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)

    # File handler for logging
    if not any(isinstance(handler, logging.FileHandler) for handler in log.handlers):
        fh = logging.FileHandler(LOG_FILE, mode='w')
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        log.addHandler(fh)

    # Configure stdout logging based on arguments
    for handler in list(log.handlers):
        if type(handler) is logging.StreamHandler:
            log.removeHandler(handler)
    ch = logging.StreamHandler(sys.stdout)
    if args.verbose:
        ch.setLevel(logging.DEBUG)
    elif args.quiet:
        ch.setLevel(logging.ERROR)
    else:
        ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)
    log.addHandler(ch)

    log.debug('Checking script requirements...')
    if not args.verbose and not args.quiet:
        log.debug('No output level specified. Defaulting to INFO.')

    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    log.info('+  %s', os.path.basename(sys.argv[0]))
    log.info('+  Python Version: %s', sys.version.split()[0])
    log.info('+  Today is: %s', date.today())
    log.info('+  Command: %s', args.command or 'generate')
    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    return args


# ****************************************************************************************
# Main
# ****************************************************************************************


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    known, extras = parser.parse_known_args(argv)
    if extras or known.command not in RUN_COMMANDS:
        parser.print_usage()
        return 0
    args = handle_args(argv)
    return run_digest(args)


if __name__ == '__main__':
    sys.exit(main())
