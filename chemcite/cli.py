"""Command-line interface for ChemCite.

Formats pasted 1H NMR and HRMS characterization text into citation-ready
strings and reports everything that keeps a record from being citable.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

import yaml

from . import __version__
from .annotation import Citation
from .citation import format_text
from .constants import COUNTER_IONS
from .data_io import annotations_to_frame, citations_to_frame, load_input_text, write_report
from .errors import InvalidFormulaError
from .formula import canonical_string, exact_mass, parse_formula
from .h1 import format_h1
from .hrms import calculate_mass, format_hrms
from .messages import Language
from .options import ParseOptions
from .validation import generate_qc_report, summarize_citations

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def load_config(config_path: Path | None) -> dict:
    """Load configuration from YAML file or return defaults."""
    defaults = {
        'parsing': {
            'strict': True,
            'auto_fix_j': True,
            'general_multiplet': False,
        },
        'input': {
            'text_column': None,  # Auto-detect for CSV/TSV/Parquet inputs
        },
        'output': {
            'language': 'english',
            'format': 'tsv',
            'include_annotations': True,
        },
    }

    if config_path and config_path.exists():
        with open(config_path) as f:
            user_config = yaml.safe_load(f) or {}
        # Deep merge user config over defaults
        defaults = _deep_merge(defaults, user_config)

    return defaults


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override dict into base dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def build_options(args: argparse.Namespace, config: dict) -> ParseOptions:
    """Config file values, overridden by any flags given on the command line."""
    options = ParseOptions.from_config(config)
    if getattr(args, 'strict', None) is not None:
        options = replace(options, strict=args.strict)
    if getattr(args, 'no_auto_fix_j', False):
        options = replace(options, auto_fix_j=False)
    if getattr(args, 'general_multiplet', False):
        options = replace(options, general_multiplet=True)
    if getattr(args, 'language', None):
        options = replace(options, language=Language.parse(args.language))
    return options


def _read_input(args: argparse.Namespace, config: dict) -> str:
    if args.input is None or args.input == '-':
        return sys.stdin.read()
    text_column = args.text_column or config['input'].get('text_column')
    return load_input_text(Path(args.input), text_column=text_column)


def _output_path(path: str, config: dict) -> Path:
    output_path = Path(path)
    if not output_path.suffix:
        output_path = output_path.with_suffix('.' + config['output'].get('format', 'tsv'))
    return output_path


def _log_annotations(citations: list[Citation]) -> None:
    for c in citations:
        for a in c.annotations:
            log = logger.error if a.is_blocking else logger.warning
            log(f"Line {c.line + 1} ({c.kind}) {a.target!r}: {a.message}")


def _emit_citations(citations: list[Citation], args: argparse.Namespace, config: dict) -> int:
    if config['output'].get('include_annotations', True):
        _log_annotations(citations)

    if args.output:
        write_report(citations_to_frame(citations), _output_path(args.output, config))
    else:
        for c in citations:
            print(c.plain)

    ready = all(c.is_citation_ready for c in citations)
    logger.info(f"{sum(c.is_citation_ready for c in citations)}/{len(citations)} records citation-ready")
    return 0 if ready else 1


def cmd_format(args: argparse.Namespace) -> int:
    """Format a whole text, copying everything outside the records through."""
    config = load_config(Path(args.config) if args.config else None)
    options = build_options(args, config)

    result = format_text(_read_input(args, config), options)
    if config['output'].get('include_annotations', True):
        _log_annotations(list(result.citations))

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(result.plain, encoding='utf-8')
        logger.info(f"Saved formatted text to {output_path}")
    else:
        sys.stdout.write(result.plain)
        if not result.plain.endswith('\n'):
            sys.stdout.write('\n')

    return 0 if result.is_citation_ready else 1


def cmd_h1(args: argparse.Namespace) -> int:
    """Format 1H NMR records only."""
    config = load_config(Path(args.config) if args.config else None)
    options = build_options(args, config)
    citations = format_h1(_read_input(args, config), options)
    return _emit_citations(citations, args, config)


def cmd_hrms(args: argparse.Namespace) -> int:
    """Validate HRMS records only."""
    config = load_config(Path(args.config) if args.config else None)
    options = build_options(args, config)
    citations = format_hrms(_read_input(args, config), options)
    return _emit_citations(citations, args, config)


def cmd_mass(args: argparse.Namespace) -> int:
    """Print the canonical formula, monoisotopic mass and calculated m/z."""
    if args.ion not in COUNTER_IONS:
        logger.error(f"Unknown counter ion: {args.ion!r} (expected one of {sorted(COUNTER_IONS)})")
        return 1
    try:
        formula = parse_formula(args.formula)
    except InvalidFormulaError as e:
        logger.error(str(e))
        return 1

    label = f"[M + {args.ion}]+" if args.ion else "[M]+"
    print(f"{canonical_string(formula)}\t{exact_mass(formula):.5f}\t{label}\t"
          f"{calculate_mass(formula, args.ion):.4f}")
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    """Write citation and annotation tables plus an optional HTML QC report."""
    config = load_config(Path(args.config) if args.config else None)
    options = build_options(args, config)

    result = format_text(_read_input(args, config), options)
    citations = list(result.citations)
    summary = summarize_citations(citations)

    output_path = write_report(citations_to_frame(citations), _output_path(args.output, config))
    if config['output'].get('include_annotations', True):
        annotations_path = output_path.with_name(f"{output_path.stem}_annotations{output_path.suffix}")
        write_report(annotations_to_frame(citations), annotations_path)

    if args.html:
        generate_qc_report(
            summary,
            citations,
            output_path=args.html,
            processing_log=[
                f"Input: {args.input or 'stdin'}",
                f"Mode: {'strict' if options.strict else 'lenient'}",
                f"J auto-fix: {'on' if options.auto_fix_j else 'off'}",
                f"General multiplet: {'on' if options.general_multiplet else 'off'}",
                f"Language: {options.language.value}",
            ],
        )

    for w in summary.warnings:
        logger.warning(w)

    return 0 if summary.passed else 1


def _add_parsing_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('-i', '--input', help='Input text/CSV/TSV/Parquet file (default: stdin)')
    parser.add_argument('-c', '--config', help='Configuration YAML file')
    parser.add_argument('--text-column', help='Column holding the text in tabular inputs')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--strict', dest='strict', action='store_true', default=None,
                      help='Strict grammar and format checks (default)')
    mode.add_argument('--lenient', dest='strict', action='store_false',
                      help='Lenient grammar; skip decimal and tolerance checks')
    parser.add_argument('--no-auto-fix-j', action='store_true',
                        help='Do not enforce or round coupling constants')
    parser.add_argument('--general-multiplet', action='store_true',
                        help='Report anything beyond d/t/q/dd as a general multiplet')
    parser.add_argument('--language', choices=[lang.value for lang in Language],
                        help='Language of annotation messages')


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog='chemcite',
        description='ChemCite: citation formatting for NMR and HRMS characterization data\n\n'
                    'Turns pasted 1H NMR and HRMS text into publication strings and flags\n'
                    'every format, data and consistency problem.\n\n'
                    'Primary usage:\n'
                    '  chemcite format -i si.txt -o si_formatted.txt\n'
                    '  chemcite report -i si.txt -o citations.tsv --html qc.html',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    format_parser = subparsers.add_parser(
        'format',
        help='Format a whole text (recommended)',
        description='Replace every 1H NMR and HRMS record in the text with its formatted '
                    'citation; all other text is copied through.'
    )
    _add_parsing_args(format_parser)
    format_parser.add_argument('-o', '--output', help='Output text file (default: stdout)')

    h1_parser = subparsers.add_parser('h1', help='Format 1H NMR records only')
    _add_parsing_args(h1_parser)
    h1_parser.add_argument('-o', '--output', help='Output table (TSV/CSV/Parquet)')

    hrms_parser = subparsers.add_parser('hrms', help='Validate HRMS records only')
    _add_parsing_args(hrms_parser)
    hrms_parser.add_argument('-o', '--output', help='Output table (TSV/CSV/Parquet)')

    mass_parser = subparsers.add_parser('mass', help='Calculate the m/z of an ion formula')
    mass_parser.add_argument('formula', help='Ion formula, e.g. C10H13N2O')
    mass_parser.add_argument('--ion', default='H', help="Counter ion (H, Na, K, Cs, or '' for [M]+)")

    report_parser = subparsers.add_parser('report', help='Write citation tables and a QC report')
    _add_parsing_args(report_parser)
    report_parser.add_argument('-o', '--output', required=True, help='Output table (TSV/CSV/Parquet)')
    report_parser.add_argument('--html', help='Output HTML QC report path')

    args = parser.parse_args()

    setup_logging(args.verbose)

    if args.command == 'format':
        return cmd_format(args)
    elif args.command == 'h1':
        return cmd_h1(args)
    elif args.command == 'hrms':
        return cmd_hrms(args)
    elif args.command == 'mass':
        return cmd_mass(args)
    elif args.command == 'report':
        return cmd_report(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
