from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from stagebuilder.core.config import GenerationConfig
from stagebuilder.core.derive import derive_many
from stagebuilder.core.descriptor_schema import RecordDecl
from stagebuilder.core.errors import DeclarationError
from stagebuilder.core.frontend import load_declarations, parse_file
from stagebuilder.core.generators import render_python_module

log = logging.getLogger("stagebuilder.cli")

DECLARATION_SUFFIXES = {".yaml", ".yml", ".json"}


def _load(source: Path, names: Sequence[str]) -> Tuple[List[RecordDecl], List[str]]:
    """Returns (records, import lines to reproduce)."""
    if source.suffix.lower() in DECLARATION_SUFFIXES:
        records = load_declarations(source)
        if names:
            wanted = set(names)
            records = [r for r in records if r.name in wanted]
        return records, []

    module = parse_file(source)
    records = module.select(names) if names else module.select_marked()
    return records, module.imports


def _default_out(source: Path) -> Path:
    return source.with_name(f"{source.stem}_builders.py")


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="stagebuilder", description="Generate typestate builders for record classes")
    ap.add_argument("source", help="Python source (.py) or declaration file (.yaml/.yml/.json)")
    ap.add_argument("--records", nargs="*", default=[], help="Record names (default: classes marked @derive_builder)")
    ap.add_argument("--out", default=None, help="Output path (default <source stem>_builders.py)")
    ap.add_argument("--check", action="store_true", help="Fail if the output file differs from regenerated")
    ap.add_argument("--json", action="store_true", help="Print derivations as JSON instead of writing a module")
    ap.add_argument("--config", default=None, help="Generation settings as a JSON object")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    payload = None
    if args.config:
        try:
            payload = json.loads(args.config)
        except json.JSONDecodeError as exc:
            print(f"ERROR: --config is not valid JSON: {exc}", file=sys.stderr)
            return 2
    cfg = GenerationConfig.from_env(GenerationConfig.from_payload(payload))

    source = Path(args.source)
    try:
        records, imports = _load(source, args.records)
    except DeclarationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    if not records:
        print(f"ERROR: no records selected in {source}", file=sys.stderr)
        return 2

    report = derive_many(records, cfg)
    if report.failures:
        for failure in report.failures:
            if failure.diagnostic is not None:
                print(failure.diagnostic.render(), file=sys.stderr)
            else:
                print(f"error: {failure.record_name}: {failure.error}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps([d.model_dump() for d in report.derivations], indent=2, sort_keys=True))
        return 0

    code = render_python_module(report.derivations, imports=imports, config=cfg)
    out_path = Path(args.out) if args.out else _default_out(source)

    if args.check:
        if not out_path.exists():
            print(f"ERROR: {out_path} missing. Run without --check to generate.", file=sys.stderr)
            return 2
        if out_path.read_text(encoding="utf-8") != code:
            print(f"ERROR: {out_path} drift detected. Regenerate and commit.", file=sys.stderr)
            return 3
        print(f"OK: {out_path} matches.")
        return 0

    out_path.write_text(code, encoding="utf-8")
    log.info("wrote %s records=%s", out_path, len(report.derivations))
    print(f"Wrote: {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
