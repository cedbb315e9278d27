"""
maskgen CLI - Bitmask type generator Command Line Interface

Usage:
    maskgen validate <spec>
    maskgen gen <spec> [--output OUT]
    maskgen describe <spec> [--format table|json]
    maskgen --version
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

from maskgen import __version__
from maskgen.backends.py_bitmask import generate_bitmask_file
from maskgen.core.base.errors import MaskGenError
from maskgen.core.base.ir import ResolvedMask
from maskgen.core.engine.config_model import GeneratorConfig, load_config
from maskgen.core.engine.loader import load_spec
from maskgen.core.engine.pipeline import resolve_ir
from maskgen.core.engine.resolver import resolve_mask
from maskgen.core.engine.validate import validate_ir
from maskgen.core.export.card_exporter import export_mask_cards


def _load_config(args: argparse.Namespace) -> GeneratorConfig:
    if args.config:
        return load_config(args.config)
    return GeneratorConfig()


def _report_error(exc: Exception, args: argparse.Namespace) -> int:
    print(f"❌ Error: {exc}", file=sys.stderr)
    if args.debug:
        import traceback

        traceback.print_exc()
    return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate spec file for correctness."""
    spec_path = Path(args.spec_file)
    if not spec_path.exists():
        print(f"❌ Error: Spec file not found: {spec_path}", file=sys.stderr)
        return 1

    try:
        config = _load_config(args)
        print(f"📖 Loading spec: {spec_path}")
        ir = load_spec(spec_path, default_type=config.default_type)
        print(f"✅ Loaded {len(ir.masks)} bitmask declaration(s)")

        print("🔍 Validating...")
        errors = validate_ir(ir)
        if not errors:
            # 検証を通過した宣言だけビット割当まで確認する
            for mask in ir.masks:
                try:
                    resolve_mask(mask, config.native_width)
                except MaskGenError as exc:
                    errors.append(exc)

        if errors:
            print(f"\n❌ Validation failed with {len(errors)} error(s):", file=sys.stderr)
            for i, error in enumerate(errors, 1):
                print(f"  {i}. {error}", file=sys.stderr)
            return 1

        print("✅ Validation passed")
        return 0

    except Exception as e:
        return _report_error(e, args)


def cmd_gen(args: argparse.Namespace) -> int:
    """Generate bitmask module from spec file."""
    spec_path = Path(args.spec_file)
    if not spec_path.exists():
        print(f"❌ Error: Spec file not found: {spec_path}", file=sys.stderr)
        return 1

    try:
        config = _load_config(args)
        print(f"📖 Loading spec: {spec_path}")
        ir = load_spec(spec_path, default_type=config.default_type)

        print("🔍 Validating and resolving...")
        resolved = resolve_ir(ir, config)

        if args.output:
            output_path = Path(args.output)
        else:
            output_path = Path(ir.meta.name.replace("-", "_") + config.output_suffix)

        print(f"🔨 Generating {output_path}...")
        generate_bitmask_file(resolved, output_path, config.module_docstring, config.emit_descriptions)
        for mask in resolved:
            print(f"  ✅ {mask.name}: {len(mask.variants)} variant(s), {mask.int_type.describe()}")

        print("\n✅ Code generation complete!")
        print(f"   Generated file: {output_path}")
        return 0

    except Exception as e:
        return _report_error(e, args)


def _format_variant_row(mask: ResolvedMask, name: str, implicit: bool, bits: int | None, expr: str | None) -> str:
    if implicit and bits is not None:
        width = mask.int_type.width
        value = format(bits & mask.int_type.mask, f"0{width}b")
        return f"  {name:<20} implicit  0b{value}"
    flattened = " ".join((expr or "").split())
    return f"  {name:<20} explicit  {flattened}"


def cmd_describe(args: argparse.Namespace) -> int:
    """Describe resolved bit assignment of each bitmask."""
    spec_path = Path(args.spec_file)
    if not spec_path.exists():
        print(f"❌ Error: Spec file not found: {spec_path}", file=sys.stderr)
        return 1

    try:
        config = _load_config(args)
        ir = load_spec(spec_path, default_type=config.default_type)
        resolved = resolve_ir(ir, config)

        if args.format == "json":
            print(json.dumps(export_mask_cards(resolved), ensure_ascii=False, indent=2))
            return 0

        for mask in resolved:
            print(f"📦 {mask.name}: {mask.int_type.describe()}")
            for variant in mask.variants:
                print(
                    _format_variant_row(
                        mask, variant.name, variant.implicit, variant.bit_pattern, variant.source_expression
                    )
                )
        return 0

    except Exception as e:
        return _report_error(e, args)


def main() -> NoReturn:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="maskgen",
        description="maskgen - Bitmask type generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"maskgen {__version__}")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--config", help="Path to generator config YAML")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate spec file for correctness",
    )
    validate_parser.add_argument("spec_file", help="Path to spec file (.yaml/.json/.mask)")

    # gen command
    gen_parser = subparsers.add_parser(
        "gen",
        help="Generate bitmask module from spec file",
    )
    gen_parser.add_argument("spec_file", help="Path to spec file (.yaml/.json/.mask)")
    gen_parser.add_argument(
        "--output",
        "-o",
        help="Output file (default: <meta.name>_masks.py)",
    )

    # describe command
    describe_parser = subparsers.add_parser(
        "describe",
        help="Show resolved bits of each variant",
    )
    describe_parser.add_argument("spec_file", help="Path to spec file (.yaml/.json/.mask)")
    describe_parser.add_argument("--format", choices=["table", "json"], default="table")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(0)

    # Dispatch to command handlers
    if args.command == "validate":
        sys.exit(cmd_validate(args))
    elif args.command == "gen":
        sys.exit(cmd_gen(args))
    elif args.command == "describe":
        sys.exit(cmd_describe(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
