from __future__ import annotations

import argparse
import logging
from pathlib import Path

from . import latex_parser, latex_serializer, markdown_parser, yaml_parser
from .utils import configure_logging, read_text, resolve_output_path, write_text

LATEX_SUFFIXES = {".tex"}
MARKDOWN_SUFFIXES = {".md", ".markdown"}
TREE_SUFFIXES = {".yaml", ".yml", ".json"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="richtex",
        description="Convert between LaTeX, Markdown and rich-text document trees.",
    )
    parser.add_argument("input", type=str, help="Path to a .tex, .md or .yaml/.json document")
    parser.add_argument("-o", "--output", type=str, help="Output path (.yaml for LaTeX input, .tex otherwise)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)
    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    suffix = input_path.suffix.lower()
    if suffix not in LATEX_SUFFIXES | MARKDOWN_SUFFIXES | TREE_SUFFIXES:
        parser.error(f"unsupported input type: {input_path.suffix or '(none)'}")

    logging.info("Reading %s", input_path)
    source = read_text(input_path)
    logging.debug("Source length: %d chars", len(source))

    if suffix in LATEX_SUFFIXES:
        output_path = resolve_output_path(input_path, args.output, ".yaml")
        logging.info("Parsing LaTeX...")
        document = latex_parser.parse_latex(source)
        logging.info("Writing node tree to %s", output_path)
        write_text(output_path, yaml_parser.dump_yaml_document(document))
    else:
        output_path = resolve_output_path(input_path, args.output, ".tex")
        if suffix in MARKDOWN_SUFFIXES:
            logging.info("Parsing markdown...")
            document = markdown_parser.parse_markdown(source)
        else:
            logging.info("Loading node tree...")
            document = yaml_parser.parse_yaml_document(source)
        logging.info("Writing LaTeX to %s", output_path)
        write_text(output_path, latex_serializer.serialize_latex(document))

    logging.debug(
        "Converted %d top-level blocks, %d list items",
        len(document.blocks),
        sum(1 for _ in document.iter_list_items()),
    )
    logging.info("Done. Saved to %s", output_path)


if __name__ == "__main__":
    main()
